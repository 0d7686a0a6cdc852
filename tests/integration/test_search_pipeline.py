"""검색 파이프라인 통합 테스트

Factory → Engine → 실제 프로바이더 어댑터 3종 → 병합/중복 제거/랭킹.
원격 API(Google Vision, TinEye)는 호스트별 httpx.MockTransport 핸들러로 대체합니다.
"""

from __future__ import annotations

import httpx
import pytest

from src.app import create_app
from src.engine.factory import SearchEngineFactory
from src.engine.ranking import GOOGLE_VISION_PROVIDER_NAME, PROPRIETARY_PROVIDER_NAME, TINEYE_PROVIDER_NAME
from src.providers.http_client import SharedHttpClient
from src.providers.proprietary import KnownOccurrence
from src.schemas.search_schema import CopyrightRisk, MatchStatus, SearchQuery
from src.utils.hash_utils import hash_bytes
from tests.fixtures.api_payloads import KNOWN_IMAGE_B64
from tests.fixtures.provider_payloads import GOOGLE_VISION_RESPONSES, TINEYE_RESPONSES


IMAGE = b"known-leaked-image"


def remote_apis(tineye_upload_status: int = 200):
    """호스트별 원격 API 응답"""

    def handler(request: httpx.Request) -> httpx.Response:
        host = request.url.host
        path = request.url.path
        if host == "vision.googleapis.com":
            return httpx.Response(200, json=GOOGLE_VISION_RESPONSES["web_detection"])
        if host == "api.tineye.com":
            if path.endswith("/remaining_searches/"):
                return httpx.Response(200, json=TINEYE_RESPONSES["remaining"])
            if path.endswith("/upload/"):
                if tineye_upload_status != 200:
                    return httpx.Response(tineye_upload_status)
                return httpx.Response(200, json=TINEYE_RESPONSES["upload"])
            if path.endswith("/search/"):
                return httpx.Response(200, json=TINEYE_RESPONSES["search"])
        return httpx.Response(404)

    return handler


async def seeded_factory(cfg, tineye_upload_status: int = 200) -> SearchEngineFactory:
    factory = SearchEngineFactory(
        cfg=cfg,
        http_client=SharedHttpClient(cfg, transport=httpx.MockTransport(remote_apis(tineye_upload_status))),
    )
    await factory.context.fingerprint_index.add(
        hash_bytes(IMAGE),
        KnownOccurrence(url="https://leaked.example.com/a.jpg", risk=CopyrightRisk.HIGH),
    )
    return factory


@pytest.mark.integration
class TestSearchPipeline:
    @pytest.mark.asyncio
    async def test_pro_plan_all_providers(self, full_credentials_settings):
        factory = await seeded_factory(full_credentials_settings)
        engine = factory.create_engine("pro", "general_search", "standard")

        out = await engine.search(SearchQuery(image_data=IMAGE, image_hash=hash_bytes(IMAGE)))

        assert out.metadata.providers_used == ["proprietary", "tineye", "google_vision"]
        assert out.metadata.providers_failures == []
        assert out.metadata.total_results == len(out.results) == 7

        top = out.results[:3]
        assert [r.provider for r in top] == [
            PROPRIETARY_PROVIDER_NAME,
            GOOGLE_VISION_PROVIDER_NAME,
            TINEYE_PROVIDER_NAME,
        ]
        assert all(r.status == MatchStatus.VIOLATION for r in top)
        assert all(r.similarity >= 75 for r in out.results)

    @pytest.mark.asyncio
    async def test_failing_provider_isolated(self, full_credentials_settings):
        factory = await seeded_factory(full_credentials_settings, tineye_upload_status=500)
        engine = factory.create_engine("pro")

        out = await engine.search(SearchQuery(image_data=IMAGE))

        assert out.metadata.providers_used == ["proprietary", "google_vision"]
        assert [f.provider for f in out.metadata.providers_failures] == ["tineye"]
        assert "TinEye API request failed" in out.metadata.providers_failures[0].error
        assert all(r.provider != TINEYE_PROVIDER_NAME for r in out.results)

    @pytest.mark.asyncio
    async def test_free_plan_ignores_external_credentials(self, full_credentials_settings):
        factory = await seeded_factory(full_credentials_settings)

        out = await factory.create_engine("free").search(SearchQuery(image_data=IMAGE))

        assert out.metadata.providers_used == ["proprietary"]
        assert [r.url for r in out.results] == ["https://leaked.example.com/a.jpg"]

    @pytest.mark.asyncio
    async def test_http_api_end_to_end(self, full_credentials_settings):
        factory = await seeded_factory(full_credentials_settings)
        app = create_app(engine_factory=factory)

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            response = await client.post(
                "/api/v1/search",
                json={"image_data": KNOWN_IMAGE_B64, "user_plan": "basic", "search_type": "copyright_detection"},
            )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "success"
        assert body["data"]["metadata"]["providers_used"] == ["proprietary", "google_vision"]
        assert body["data"]["query"]["image_data"] == KNOWN_IMAGE_B64
        assert body["data"]["results"][0]["provider"] == PROPRIETARY_PROVIDER_NAME
