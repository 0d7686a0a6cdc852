"""프로바이더 공통 베이스

요청 한도 기록, 도메인 기반 상태/위험도 분류, 프로바이더 측 결과 필터링을 제공합니다.
엔진은 BaseProvider가 아니라 SearchProvider 프로토콜에만 의존합니다.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from src.schemas.search_schema import (
    CopyrightRisk,
    MatchStatus,
    ProviderMetadata,
    RateLimitStatus,
    SearchQuery,
    SearchResult,
)
from src.utils.url_utils import domain_matches


VIOLATION_KEYWORDS = (
    "leaked", "expose", "revenge", "ex-gf", "ex-bf", "stolen", "hacked",
    "private", "candid", "voyeur",
)
PARTIAL_KEYWORDS = ("tube", "pics", "gallery", "photo", "image", "upload")

HIGH_RISK_KEYWORDS = (
    "leaked", "expose", "revenge", "stolen", "hacked", "pirated", "torrent",
)
MEDIUM_RISK_KEYWORDS = (
    "tube", "pics", "gallery", "photo", "image", "upload", "share", "host",
)
SOCIAL_PLATFORMS = ("twitter", "instagram", "facebook", "reddit", "tumblr", "pinterest")


def _next_utc_midnight(now: datetime) -> datetime:
    tomorrow = (now + timedelta(days=1)).date()
    return datetime(tomorrow.year, tomorrow.month, tomorrow.day, tzinfo=timezone.utc)


class BaseProvider(ABC):
    """프로바이더 베이스 클래스"""

    name: str = "base"

    def __init__(self, daily_quota: int = 1000) -> None:
        self.daily_quota = daily_quota
        now = datetime.now(timezone.utc)
        self._remaining = daily_quota
        self._reset_time = _next_utc_midnight(now)

    # ------------------------------------------------------------------
    # 요청 한도 (권고용 기록만, 차단하지 않음)
    # ------------------------------------------------------------------

    def _consume_quota(self) -> None:
        now = datetime.now(timezone.utc)
        if now >= self._reset_time:
            self._remaining = self.daily_quota
            self._reset_time = _next_utc_midnight(now)
        self._remaining = max(0, self._remaining - 1)

    def get_rate_limit(self) -> RateLimitStatus:
        return RateLimitStatus(remaining=self._remaining, reset_time=self._reset_time)

    # ------------------------------------------------------------------
    # 계약
    # ------------------------------------------------------------------

    @abstractmethod
    async def is_available(self) -> bool:
        ...

    @abstractmethod
    async def search(self, query: SearchQuery) -> list[SearchResult]:
        ...

    @abstractmethod
    def get_metadata(self) -> ProviderMetadata:
        ...

    # ------------------------------------------------------------------
    # 분류 헬퍼
    # ------------------------------------------------------------------

    @staticmethod
    def classify_status(url: str, domain: str) -> MatchStatus:
        """URL/도메인 키워드로 매치 상태 추정"""
        haystack = f"{domain} {url}".lower()
        if any(term in haystack for term in VIOLATION_KEYWORDS):
            return MatchStatus.VIOLATION
        if any(term in haystack for term in PARTIAL_KEYWORDS):
            return MatchStatus.PARTIAL
        return MatchStatus.CLEAN

    @staticmethod
    def assess_copyright_risk(domain: str) -> CopyrightRisk:
        """도메인 키워드로 저작권 위험도 추정"""
        d = (domain or "").lower()
        if any(term in d for term in HIGH_RISK_KEYWORDS):
            return CopyrightRisk.HIGH
        if any(term in d for term in MEDIUM_RISK_KEYWORDS):
            return CopyrightRisk.MEDIUM
        # 사용자 생성 콘텐츠 플랫폼
        if any(platform in d for platform in SOCIAL_PLATFORMS):
            return CopyrightRisk.MEDIUM
        return CopyrightRisk.LOW

    @staticmethod
    def filter_results(
        results: list[SearchResult],
        query: SearchQuery,
        default_threshold: Optional[float] = None,
    ) -> list[SearchResult]:
        """프로바이더 측 필터링

        - similarity_threshold (없으면 default_threshold)
        - domain_whitelist / domain_blacklist, exclude_sites
        - target_sites 결과를 앞으로 (나머지 순서는 유지)
        - max_results 절단
        """
        options = query.options
        threshold = options.similarity_threshold
        if threshold is None:
            threshold = default_threshold

        filtered = results
        if threshold is not None:
            filtered = [r for r in filtered if r.similarity >= threshold]

        if options.domain_whitelist:
            filtered = [r for r in filtered if domain_matches(r.site_name, options.domain_whitelist)]

        blocked = list(options.domain_blacklist) + list(options.exclude_sites)
        if blocked:
            filtered = [r for r in filtered if not domain_matches(r.site_name, blocked)]

        if options.target_sites:
            filtered = sorted(filtered, key=lambda r: not domain_matches(r.site_name, options.target_sites))

        return filtered[: options.max_results]
