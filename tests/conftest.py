"""전역 테스트 설정

역할:
- 테스트 환경 구성
- 공통 Fake 프로바이더/설정 주입
- 엔진 팩토리는 테스트마다 새로 생성 (캐시 격리)

금지:
- 실제 외부 API 호출 (프로바이더 HTTP는 httpx.MockTransport 사용)
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional

import pytest


# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    """테스트 환경 변수 설정 (세션 전역)"""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "INFO"


from src.core.config import Settings  # noqa: E402
from src.schemas.search_schema import (  # noqa: E402
    MatchStatus,
    ProviderCoverage,
    ProviderMetadata,
    RateLimitStatus,
    SearchQuery,
    SearchResult,
)
from src.utils.hash_utils import hash_string  # noqa: E402
from src.utils.url_utils import extract_domain  # noqa: E402


def make_result(
    url: str = "https://example.com/images/photo.jpg",
    similarity: float = 90.0,
    status: MatchStatus = MatchStatus.CLEAN,
    provider: str = "Fake Provider",
    site_name: Optional[str] = None,
    risk: Optional[str] = None,
    detected_at: Optional[datetime] = None,
    result_id: Optional[str] = None,
) -> SearchResult:
    """테스트용 SearchResult 생성 (site_name 생략 시 URL 도메인 사용)"""
    metadata = {"copyright_risk": risk} if risk else {}
    return SearchResult(
        id=result_id or f"r-{hash_string(f'{url}:{similarity}:{provider}')[:10]}",
        url=url,
        site_name=site_name or extract_domain(url),
        similarity=similarity,
        status=status,
        provider=provider,
        detected_at=detected_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
        metadata=metadata,
    )


class FakeProvider:
    """SearchProvider 프로토콜을 만족하는 테스트용 프로바이더

    - results: search()가 돌려줄 결과
    - error: search()에서 던질 예외
    - delay: search() 지연 (초) - 타임아웃 테스트용
    - available: is_available() 값 (예외 인스턴스면 raise)
    """

    def __init__(
        self,
        name: str = "Fake Provider",
        results: Optional[list[SearchResult]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        available: object = True,
    ):
        self.name = name
        self.results = results or []
        self.error = error
        self.delay = delay
        self.available = available
        self.search_calls = 0
        self.availability_calls = 0
        self.last_query: Optional[SearchQuery] = None

    async def is_available(self) -> bool:
        self.availability_calls += 1
        if isinstance(self.available, BaseException):
            raise self.available
        return self.available  # type: ignore[return-value]

    async def search(self, query: SearchQuery) -> list[SearchResult]:
        self.search_calls += 1
        self.last_query = query
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.results)

    def get_rate_limit(self) -> RateLimitStatus:
        return RateLimitStatus(remaining=100, reset_time=datetime(2030, 1, 1, tzinfo=timezone.utc))

    def get_metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            description="fake provider for tests",
            capabilities=["testing"],
            coverage=ProviderCoverage.SPECIALIZED,
        )


@pytest.fixture
def fake_provider_cls():
    return FakeProvider


@pytest.fixture
def make_search_result():
    return make_result


@pytest.fixture
def sample_query() -> SearchQuery:
    return SearchQuery(image_data=b"\x89PNG fake image bytes")


@pytest.fixture
def no_credentials_settings() -> Settings:
    """외부 프로바이더 자격 증명이 전혀 없는 설정"""
    return Settings(
        _env_file=None,
        google_vision_api_key=None,
        tineye_api_key=None,
        tineye_private_key=None,
        yandex_api_key=None,
        bing_search_api_key=None,
    )


@pytest.fixture
def full_credentials_settings() -> Settings:
    """Google Vision / TinEye 자격 증명이 있는 설정"""
    return Settings(
        _env_file=None,
        google_vision_api_key="gv-test-key",
        tineye_api_key="te-public",
        tineye_private_key="te-private",
        yandex_api_key=None,
        bing_search_api_key=None,
    )
