"""TinEye API 프로바이더

요청 서명 방식:
    api_sig = sha256(private_key + VERB + url + sorted(params) + date + nonce)

검색은 2단계입니다.
1. /upload/ 로 이미지 업로드 → image_id
2. /search/ 로 image_id 검색 (score 내림차순)
"""

from __future__ import annotations

import hashlib
import secrets
import time
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from src.core.exceptions import ProviderAuthException, ProviderRequestException
from src.core.logging import logger
from src.engine.ranking import TINEYE_PROVIDER_NAME
from src.schemas.search_schema import (
    ProviderCoverage,
    ProviderMetadata,
    SearchQuery,
    SearchResult,
)
from src.utils.url_utils import extract_domain

from .base import BaseProvider
from .http_client import SharedHttpClient, get_shared_http_client


DEFAULT_THRESHOLD = 80.0


def sign_request(
    private_key: str,
    method: str,
    url: str,
    params: dict[str, Any],
    date: int,
    nonce: str,
) -> str:
    """TinEye 요청 서명 생성"""
    ordered = urlencode(sorted((k, str(v)) for k, v in params.items()))
    to_sign = f"{private_key}{method.upper()}{url}{ordered}{date}{nonce}"
    return hashlib.sha256(to_sign.encode("utf-8")).hexdigest()


class TinEyeProvider(BaseProvider):
    """TinEye API 어댑터"""

    name = TINEYE_PROVIDER_NAME

    def __init__(
        self,
        api_key: str,
        private_key: str,
        base_url: str = "https://api.tineye.com/rest",
        http_client: Optional[SharedHttpClient] = None,
        daily_quota: int = 150,
    ) -> None:
        if not api_key or not private_key:
            raise ProviderAuthException(self.name)
        super().__init__(daily_quota=daily_quota)
        self.api_key = api_key
        self.private_key = private_key
        self.base_url = base_url.rstrip("/")
        self.http = http_client or get_shared_http_client()

    def _signed_params(self, method: str, url: str, params: dict[str, Any]) -> dict[str, Any]:
        date = int(time.time())
        nonce = secrets.token_hex(12)
        signature = sign_request(self.private_key, method, url, params, date, nonce)
        return {
            **params,
            "api_key": self.api_key,
            "date": date,
            "nonce": nonce,
            "api_sig": signature,
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}/{path.strip('/')}/"
        signed = self._signed_params(method, url, params or {})
        client = await self.http.get_client()

        try:
            response = await client.request(method, url, params=signed, files=files)
        except httpx.HTTPError as e:
            raise ProviderRequestException(self.name, f"{type(e).__name__}: {e}")

        if response.status_code in (401, 403):
            raise ProviderAuthException(self.name, {"status_code": response.status_code})
        if response.status_code != 200:
            raise ProviderRequestException(self.name, response.reason_phrase or "HTTP error", response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderRequestException(self.name, f"invalid response body: {e}")

        if body.get("code") not in (None, 200):
            messages = body.get("messages") or ["API error"]
            raise ProviderRequestException(self.name, "; ".join(str(m) for m in messages), body.get("code"))
        return body

    async def is_available(self) -> bool:
        try:
            await self._request("GET", "remaining_searches")
        except (ProviderRequestException, ProviderAuthException) as e:
            logger.warning(f"[TinEye] availability probe failed: {e}")
            return False
        return True

    async def search(self, query: SearchQuery) -> list[SearchResult]:
        upload = await self._request(
            "POST",
            "upload",
            files={"image": ("query.jpg", query.image_data, "application/octet-stream")},
        )
        image_id = (upload.get("results") or {}).get("image_id") or upload.get("image_id")
        if not image_id:
            raise ProviderRequestException(self.name, "upload returned no image_id")

        body = await self._request(
            "GET",
            "search",
            params={
                "image_id": image_id,
                "limit": query.options.max_results,
                "sort": "score",
                "order": "desc",
            },
        )
        self._consume_quota()

        matches = (body.get("results") or {}).get("matches") or []
        results = [self._to_result(match, i) for i, match in enumerate(matches)]
        logger.debug(f"[TinEye] image_id={image_id}, matches={len(matches)}")

        return self.filter_results(results, query, default_threshold=DEFAULT_THRESHOLD)

    def _to_result(self, match: dict[str, Any], index: int) -> SearchResult:
        backlinks = match.get("backlinks") or []
        first_link = backlinks[0] if backlinks else {}
        page_url = first_link.get("backlink")
        image_url = first_link.get("url") or match.get("image_url") or page_url or ""
        domain = match.get("domain") or extract_domain(image_url)

        score = float(match.get("score") or 0)
        similarity = max(0.0, min(100.0, score))

        crawl_date = self._parse_crawl_date(first_link.get("crawl_date"))

        status = self.classify_status(image_url, domain)
        return SearchResult(
            id=f"tineye-{match.get('image_id') or index}",
            url=image_url,
            site_name=domain,
            title=f"Match on {domain}",
            similarity=similarity,
            status=status,
            thumbnail=match.get("image_url"),
            detected_at=crawl_date,
            provider=self.name,
            web_page_url=page_url,
            metadata={
                "domain": domain,
                "copyright_risk": self.assess_copyright_risk(domain).value,
                "backlink_count": len(backlinks),
                "width": match.get("width"),
                "height": match.get("height"),
                "score": score,
            },
        )

    @staticmethod
    def _parse_crawl_date(value: Optional[str]) -> datetime:
        if value:
            try:
                parsed = datetime.fromisoformat(value)
                return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
            except ValueError:
                pass
        return datetime.now(timezone.utc)

    def get_metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            description="TinEye reverse image search with exact and modified copy detection",
            capabilities=["reverse_image_search", "exact_match", "modified_copy_detection", "backlinks"],
            coverage=ProviderCoverage.GLOBAL,
            cost_per_search=0.20,
        )
