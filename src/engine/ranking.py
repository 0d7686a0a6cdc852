"""Ranking - 집계 결과의 5단계 우선순위 정렬

우선순위 (앞 단계에서 동률이 아닐 때 결정):
1. 상태: violation > partial > clean
2. 저작권 위험도 metadata: high > medium > low (없으면 low)
3. 유사도: 차이가 1점을 넘을 때만
4. 프로바이더 신뢰도 (고정 테이블)
5. 최신 탐지 시각
"""

from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Iterable

from src.schemas.search_schema import CopyrightRisk, MatchStatus, SearchResult


# 프로바이더 표시 이름
PROPRIETARY_PROVIDER_NAME = "Proprietary Scanner"
TINEYE_PROVIDER_NAME = "TinEye API"
GOOGLE_VISION_PROVIDER_NAME = "Google Vision API"
YANDEX_PROVIDER_NAME = "Yandex Images"
BING_VISUAL_PROVIDER_NAME = "Bing Visual Search"

PROVIDER_RELIABILITY: dict[str, int] = {
    PROPRIETARY_PROVIDER_NAME: 10,
    TINEYE_PROVIDER_NAME: 9,  # 완전 일치에 강함
    GOOGLE_VISION_PROVIDER_NAME: 8,  # 넓은 커버리지
    YANDEX_PROVIDER_NAME: 7,
    BING_VISUAL_PROVIDER_NAME: 6,
}
DEFAULT_RELIABILITY = 5

STATUS_PRIORITY: dict[MatchStatus, int] = {
    MatchStatus.VIOLATION: 3,
    MatchStatus.PARTIAL: 2,
    MatchStatus.CLEAN: 1,
}

RISK_PRIORITY: dict[CopyrightRisk, int] = {
    CopyrightRisk.HIGH: 3,
    CopyrightRisk.MEDIUM: 2,
    CopyrightRisk.LOW: 1,
}

# 이 값 이하의 유사도 차이는 동률로 본다
SIMILARITY_TIE_TOLERANCE = 1.0


def get_provider_reliability(provider_name: str) -> int:
    """프로바이더 신뢰도 (알 수 없으면 중간값 5)"""
    return PROVIDER_RELIABILITY.get(provider_name, DEFAULT_RELIABILITY)


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _epoch(moment: datetime) -> float:
    # naive datetime은 UTC로 간주
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def compare_results(a: SearchResult, b: SearchResult) -> int:
    """두 결과 비교

    Returns:
        int: a가 앞이면 음수, b가 앞이면 양수, 완전 동률이면 0
    """
    status_diff = STATUS_PRIORITY[b.status] - STATUS_PRIORITY[a.status]
    if status_diff:
        return status_diff

    risk_diff = RISK_PRIORITY[b.copyright_risk] - RISK_PRIORITY[a.copyright_risk]
    if risk_diff:
        return risk_diff

    similarity_diff = b.similarity - a.similarity
    if abs(similarity_diff) > SIMILARITY_TIE_TOLERANCE:
        return _sign(similarity_diff)

    provider_diff = get_provider_reliability(b.provider) - get_provider_reliability(a.provider)
    if provider_diff:
        return provider_diff

    return _sign(_epoch(b.detected_at) - _epoch(a.detected_at))


def rank_results(results: Iterable[SearchResult]) -> list[SearchResult]:
    """결과를 랭킹 순서로 정렬한 새 리스트 반환 (안정 정렬)"""
    return sorted(results, key=cmp_to_key(compare_results))
