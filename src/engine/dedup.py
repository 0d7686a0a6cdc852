"""Deduplication - 프로바이더 간 동일 매치 병합

같은 dedup key(도메인, 정규화 URL, 5단위 유사도 구간)를 갖는 결과를 한 그룹으로 묶고
그룹마다 대표 1건만 남깁니다. 단일 패스 그리디 방식이며 전이적 클러스터링은 하지 않습니다.
유사도가 구간 경계를 넘으면 같은 항목이라도 병합되지 않습니다.
"""

from typing import Iterable

from src.engine.ranking import get_provider_reliability
from src.schemas.search_schema import MatchStatus, SearchResult
from src.utils.hash_utils import generate_dedup_key
from src.utils.url_utils import normalize_url


def dedup_key(result: SearchResult) -> str:
    """결과의 중복 제거 키"""
    return generate_dedup_key(result.site_name, normalize_url(result.url), result.similarity)


def pick_representative(best: SearchResult, current: SearchResult) -> SearchResult:
    """그룹 대표 선택

    1. violation 상태 우선
    2. 높은 유사도
    3. 신뢰도 높은 프로바이더
    모두 같으면 먼저 본 결과(best) 유지
    """
    best_violation = best.status == MatchStatus.VIOLATION
    current_violation = current.status == MatchStatus.VIOLATION
    if current_violation != best_violation:
        return current if current_violation else best

    if current.similarity != best.similarity:
        return current if current.similarity > best.similarity else best

    if get_provider_reliability(current.provider) > get_provider_reliability(best.provider):
        return current
    return best


def deduplicate(results: Iterable[SearchResult]) -> list[SearchResult]:
    """중복 제거 (그룹 최초 등장 순서 유지)

    Args:
        results: 병합된 결과 목록

    Returns:
        list[SearchResult]: 키마다 대표 1건
    """
    groups: dict[str, SearchResult] = {}
    for result in results:
        key = dedup_key(result)
        existing = groups.get(key)
        groups[key] = result if existing is None else pick_representative(existing, result)
    return list(groups.values())
