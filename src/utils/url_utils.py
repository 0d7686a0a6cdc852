"""URL 파싱 유틸리티"""
import re
from urllib.parse import urlparse


_INDEX_FILE_PATTERN = re.compile(r"index\.(html?|php|aspx?|jsp)$")
_TRAILING_SLASHES = re.compile(r"/+$")


def normalize_url(url: str) -> str:
    """
    중복 판단용 URL 정규화

    - scheme/query/fragment 제거, host + path 만 사용
    - 소문자화
    - 끝의 index 파일(index.html, index.php 등) 제거
    - 끝의 슬래시 제거

    Examples:
        >>> normalize_url("https://Example.com/Gallery/")
        'example.com/gallery'
        >>> normalize_url("http://example.com/gallery/index.html?ref=1")
        'example.com/gallery'
        >>> normalize_url("not a url")
        'not a url'

    Args:
        url: 원본 URL

    Returns:
        정규화된 문자열. 파싱 불가 시 소문자화한 원본
    """
    if not url:
        return ""

    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return url.lower()

    if not parsed.scheme or not parsed.netloc:
        return url.lower()

    host = parsed.hostname or ""
    normalized = f"{host}{parsed.path}".lower()
    normalized = _INDEX_FILE_PATTERN.sub("", normalized)
    return _TRAILING_SLASHES.sub("", normalized)


def extract_domain(url: str) -> str:
    """
    URL에서 도메인 추출 (www. 접두사 제거)

    Examples:
        >>> extract_domain("https://www.example.com/a.jpg")
        'example.com'
        >>> extract_domain("garbage")
        'unknown'
    """
    if not url:
        return "unknown"

    try:
        host = urlparse(url.strip()).hostname
    except ValueError:
        return "unknown"

    if not host:
        return "unknown"

    return host[4:] if host.startswith("www.") else host


def domain_matches(domain: str, patterns: list[str]) -> bool:
    """도메인이 패턴 목록 중 하나를 포함하는지 (대소문자 무시)"""
    d = (domain or "").lower()
    return any(p.lower() in d for p in patterns if p)
