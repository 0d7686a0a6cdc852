"""자체 스캐너 - 내부 지문 인덱스 기반 매칭

외부 API 없이 항상 사용 가능한 기본 프로바이더입니다.
이미지 바이트의 SHA-256 지문으로 인덱스를 조회하여, 이미 알려진 유포 위치를 결과로 돌려줍니다.
인덱스는 운영 중 add_occurrence()로 채워집니다 (크롤러/신고 파이프라인 등 외부 책임).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from src.core.logging import logger
from src.engine.ranking import PROPRIETARY_PROVIDER_NAME
from src.schemas.search_schema import (
    CopyrightRisk,
    MatchStatus,
    ProviderCoverage,
    ProviderMetadata,
    SearchQuery,
    SearchResult,
)
from src.utils.hash_utils import hash_bytes, hash_string
from src.utils.url_utils import extract_domain

from .base import BaseProvider


@dataclass(frozen=True)
class KnownOccurrence:
    """지문에 연결된 알려진 게시 위치"""

    url: str
    risk: CopyrightRisk = CopyrightRisk.MEDIUM
    category: str = "imagehost"
    status: MatchStatus = MatchStatus.VIOLATION
    similarity: float = 100.0
    web_page_url: Optional[str] = None
    title: Optional[str] = None
    first_seen: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class FingerprintIndex:
    """지문 → 게시 위치 목록 (프로세스 메모리)"""

    def __init__(self) -> None:
        self._entries: dict[str, list[KnownOccurrence]] = {}
        self._lock = asyncio.Lock()

    async def add(self, fingerprint: str, occurrence: KnownOccurrence) -> None:
        async with self._lock:
            self._entries.setdefault(fingerprint, []).append(occurrence)

    async def lookup(self, fingerprint: str) -> list[KnownOccurrence]:
        async with self._lock:
            return list(self._entries.get(fingerprint, ()))

    def __len__(self) -> int:
        return len(self._entries)


class ProprietaryProvider(BaseProvider):
    """자체 스캐너 (항상 사용 가능)"""

    name = PROPRIETARY_PROVIDER_NAME

    def __init__(self, index: Optional[FingerprintIndex] = None, daily_quota: int = 10000) -> None:
        super().__init__(daily_quota=daily_quota)
        self.index = index or FingerprintIndex()

    @staticmethod
    def fingerprint(query: SearchQuery) -> str:
        """쿼리 지문 (호출자가 준 image_hash 우선)"""
        if query.image_hash:
            return query.image_hash.lower()
        return hash_bytes(query.image_data)

    async def add_occurrence(self, image_data: bytes, occurrence: KnownOccurrence) -> str:
        """이미지의 알려진 게시 위치 등록. 지문 반환"""
        fingerprint = hash_bytes(image_data)
        await self.index.add(fingerprint, occurrence)
        return fingerprint

    async def is_available(self) -> bool:
        return True

    async def search(self, query: SearchQuery) -> list[SearchResult]:
        fingerprint = self.fingerprint(query)
        occurrences = await self.index.lookup(fingerprint)
        self._consume_quota()

        logger.debug(f"Proprietary scan: fingerprint={fingerprint[:12]}, matches={len(occurrences)}")

        results = [self._to_result(fingerprint, occ) for occ in occurrences]
        return self.filter_results(results, query)

    def _to_result(self, fingerprint: str, occ: KnownOccurrence) -> SearchResult:
        domain = extract_domain(occ.url)
        return SearchResult(
            id=f"prop-{hash_string(f'{fingerprint}:{occ.url}')[:16]}",
            url=occ.url,
            site_name=domain,
            title=occ.title or f"Known occurrence on {domain}",
            similarity=occ.similarity,
            status=occ.status,
            detected_at=datetime.now(timezone.utc),
            provider=self.name,
            web_page_url=occ.web_page_url,
            metadata={
                "domain": domain,
                "copyright_risk": occ.risk.value,
                "category": occ.category,
                "first_seen": occ.first_seen.isoformat(),
                "context_text": f"Fingerprint match on {occ.category} site",
            },
        )

    def get_metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            description="In-house scanner matching image fingerprints against known unauthorized postings",
            capabilities=["hash_matching", "known_occurrence_lookup", "unauthorized_content_detection"],
            coverage=ProviderCoverage.SPECIALIZED,
        )
