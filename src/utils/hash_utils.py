"""해싱 유틸리티"""
import hashlib


def hash_string(text: str) -> str:
    """
    문자열을 MD5 해시로 변환

    Args:
        text: 해시할 문자열

    Returns:
        MD5 해시 문자열
    """
    return hashlib.md5(text.encode()).hexdigest()


def hash_bytes(data: bytes) -> str:
    """바이트를 SHA-256 해시로 변환 (이미지 지문용)"""
    return hashlib.sha256(data).hexdigest()


def similarity_bucket(similarity: float, size: int = 5) -> int:
    """유사도를 size 단위 구간으로 내림 (예: 86 → 85, 89.9 → 85)"""
    return int(similarity // size) * size


def generate_dedup_key(site_name: str, normalized_url: str, similarity: float) -> str:
    """
    중복 제거 키 생성

    (소문자 도메인, 정규화 URL, 5단위 유사도 구간)의 MD5 앞 12자리.

    Args:
        site_name: 사이트/도메인명
        normalized_url: normalize_url()을 거친 URL
        similarity: 유사도 (0~100)

    Returns:
        12자리 16진수 키
    """
    raw = f"{(site_name or '').lower()}:{normalized_url}:{similarity_bucket(similarity)}"
    return hash_string(raw)[:12]
