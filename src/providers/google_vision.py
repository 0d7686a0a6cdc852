"""Google Vision API 프로바이더 (WEB_DETECTION 기반 역이미지 검색)"""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

import httpx

from src.core.exceptions import ProviderAuthException, ProviderRequestException
from src.core.logging import logger, mask_secret
from src.engine.ranking import GOOGLE_VISION_PROVIDER_NAME
from src.schemas.search_schema import (
    CopyrightRisk,
    MatchStatus,
    ProviderCoverage,
    ProviderMetadata,
    SearchQuery,
    SearchResult,
)
from src.utils.url_utils import extract_domain

from .base import BaseProvider
from .http_client import SharedHttpClient, get_shared_http_client


# 1x1 PNG (가용성 probe용)
_PROBE_IMAGE = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/5+hHgAHggJ/PchI7wAAAABJRU5ErkJggg=="
)

# 매치 유형별 유사도
FULL_MATCH_SIMILARITY = 100.0
PARTIAL_MATCH_SIMILARITY = 95.0
VISUALLY_SIMILAR_SIMILARITY = 92.0
PAGE_MATCH_SIMILARITY = 90.0

DEFAULT_THRESHOLD = 90.0

_SAFE_SEARCH_SCALE = ["VERY_UNLIKELY", "UNLIKELY", "POSSIBLE", "LIKELY", "VERY_LIKELY"]


class GoogleVisionProvider(BaseProvider):
    """Google Vision API 어댑터"""

    name = GOOGLE_VISION_PROVIDER_NAME

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://vision.googleapis.com/v1",
        http_client: Optional[SharedHttpClient] = None,
        daily_quota: int = 1000,
    ) -> None:
        if not api_key:
            raise ProviderAuthException(self.name)
        super().__init__(daily_quota=daily_quota)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http = http_client or get_shared_http_client()

    async def _annotate(self, payload: dict[str, Any]) -> httpx.Response:
        client = await self.http.get_client()
        return await client.post(
            f"{self.base_url}/images:annotate",
            params={"key": self.api_key},
            json=payload,
        )

    async def is_available(self) -> bool:
        payload = {
            "requests": [{
                "image": {"content": _PROBE_IMAGE},
                "features": [{"type": "WEB_DETECTION", "maxResults": 1}],
            }]
        }
        try:
            response = await self._annotate(payload)
        except httpx.HTTPError as e:
            logger.warning(f"[GoogleVision] availability probe failed: {type(e).__name__}")
            return False

        if response.status_code != 200:
            logger.warning(
                f"[GoogleVision] availability probe status={response.status_code}, "
                f"key={mask_secret(self.api_key)}"
            )
            return False
        return True

    async def search(self, query: SearchQuery) -> list[SearchResult]:
        payload = {
            "requests": [{
                "image": {"content": base64.b64encode(query.image_data).decode("ascii")},
                "features": self._build_features(query),
                "imageContext": {
                    "webDetectionParams": {"includeGeoResults": query.options.include_geo_results},
                    "languageHints": query.options.language_hints,
                },
            }]
        }

        try:
            response = await self._annotate(payload)
        except httpx.HTTPError as e:
            raise ProviderRequestException(self.name, f"{type(e).__name__}: {e}")

        if response.status_code != 200:
            raise ProviderRequestException(self.name, response.reason_phrase or "HTTP error", response.status_code)

        try:
            data = response.json()
            annotation = (data.get("responses") or [{}])[0]
        except (ValueError, AttributeError, IndexError) as e:
            raise ProviderRequestException(self.name, f"invalid response body: {e}")

        self._consume_quota()

        if "error" in annotation:
            raise ProviderRequestException(self.name, str(annotation["error"].get("message", "annotate error")))

        results = self.parse_web_detection(annotation)
        logger.debug(f"[GoogleVision] parsed {len(results)} results before filtering")

        ordered = self._order(results, query)
        return self.filter_results(ordered, query, default_threshold=DEFAULT_THRESHOLD)

    def _build_features(self, query: SearchQuery) -> list[dict[str, Any]]:
        options = query.options
        features: list[dict[str, Any]] = [
            {"type": "WEB_DETECTION", "maxResults": options.max_results},
            {"type": "SAFE_SEARCH_DETECTION"},
        ]
        toggles = [
            (options.detect_objects, {"type": "OBJECT_LOCALIZATION", "maxResults": 20}),
            (options.analyze_labels, {"type": "LABEL_DETECTION", "maxResults": 20}),
            (options.detect_text, {"type": "DOCUMENT_TEXT_DETECTION"}),
            (options.detect_faces, {"type": "FACE_DETECTION", "maxResults": 10}),
            (options.detect_logos, {"type": "LOGO_DETECTION", "maxResults": 10}),
            (options.detect_landmarks, {"type": "LANDMARK_DETECTION", "maxResults": 10}),
        ]
        features.extend(feature for enabled, feature in toggles if enabled)
        return features

    # ------------------------------------------------------------------
    # 응답 매핑
    # ------------------------------------------------------------------

    def parse_web_detection(self, annotation: dict[str, Any]) -> list[SearchResult]:
        """annotate 응답 1건 → SearchResult 목록"""
        web = annotation.get("webDetection") or {}
        safe_search = annotation.get("safeSearchAnnotation")
        pages = web.get("pagesWithMatchingImages") or []
        risk_level = self._risk_level(safe_search)

        results: list[SearchResult] = []
        image_groups = [
            ("visuallySimilarImages", "similar", VISUALLY_SIMILAR_SIMILARITY),
            ("fullMatchingImages", "full", FULL_MATCH_SIMILARITY),
            ("partialMatchingImages", "partial", PARTIAL_MATCH_SIMILARITY),
        ]
        for key, match_type, similarity in image_groups:
            for image in web.get(key) or []:
                url = image.get("url")
                if not url:
                    continue
                page = self._find_containing_page(pages, url)
                domain = extract_domain(url)
                results.append(self._make_result(
                    url=url,
                    domain=domain,
                    similarity=similarity,
                    status=self._image_status(safe_search, url, domain),
                    match_type=match_type,
                    page=page,
                    thumbnail=url,
                    extra={"is_adult_content": self._is_adult(safe_search), "risk_level": risk_level},
                ))

        for page in pages:
            page_url = page.get("url")
            if not page_url:
                continue
            full = page.get("fullMatchingImages") or []
            partial = page.get("partialMatchingImages") or []
            thumbnail = (full or partial or [{}])[0].get("url")
            match_type = "full" if full else ("partial" if partial else "generic")
            domain = extract_domain(page_url)
            results.append(self._make_result(
                url=thumbnail or page_url,
                domain=domain,
                similarity=PAGE_MATCH_SIMILARITY,
                status=self._page_status(domain),
                match_type=match_type,
                page=page,
                thumbnail=thumbnail,
                extra={"image_count": len(full) + len(partial)},
            ))

        return results

    def _make_result(
        self,
        *,
        url: str,
        domain: str,
        similarity: float,
        status: MatchStatus,
        match_type: str,
        page: Optional[dict[str, Any]],
        thumbnail: Optional[str],
        extra: dict[str, Any],
    ) -> SearchResult:
        page_title = (page or {}).get("pageTitle")
        return SearchResult(
            id=f"gv-{match_type}-{uuid4().hex[:12]}",
            url=url,
            site_name=domain,
            title=page_title or f"Match on {domain}",
            similarity=similarity,
            status=status,
            thumbnail=thumbnail,
            detected_at=datetime.now(timezone.utc),
            provider=self.name,
            web_page_url=(page or {}).get("url"),
            metadata={
                "domain": domain,
                "copyright_risk": self.assess_copyright_risk(domain).value,
                "context_text": page_title,
                "match_type": match_type,
                **extra,
            },
        )

    @staticmethod
    def _find_containing_page(pages: list[dict[str, Any]], image_url: str) -> Optional[dict[str, Any]]:
        """이미지를 포함한 페이지 (없으면 같은 도메인 페이지, 그것도 없으면 첫 페이지)"""
        image_domain = extract_domain(image_url)
        for page in pages:
            images = (page.get("fullMatchingImages") or []) + (page.get("partialMatchingImages") or [])
            if any(img.get("url") == image_url for img in images):
                return page
            if page.get("url") and extract_domain(page["url"]) == image_domain:
                return page
        return pages[0] if pages else None

    @staticmethod
    def _likelihood(value: Optional[str]) -> int:
        try:
            return _SAFE_SEARCH_SCALE.index(value or "VERY_UNLIKELY")
        except ValueError:
            return 0

    def _is_adult(self, safe_search: Optional[dict[str, Any]]) -> bool:
        if not safe_search:
            return False
        return self._likelihood(safe_search.get("adult")) >= 3

    def _risk_level(self, safe_search: Optional[dict[str, Any]]) -> str:
        if not safe_search:
            return CopyrightRisk.LOW.value
        worst = max(
            self._likelihood(safe_search.get(k)) for k in ("adult", "racy", "violence")
        )
        if worst >= 4:
            return CopyrightRisk.HIGH.value
        if worst >= 3:
            return CopyrightRisk.MEDIUM.value
        return CopyrightRisk.LOW.value

    def _image_status(self, safe_search: Optional[dict[str, Any]], url: str, domain: str) -> MatchStatus:
        if self.classify_status(url, domain) == MatchStatus.VIOLATION:
            return MatchStatus.VIOLATION
        if safe_search and (
            self._likelihood(safe_search.get("adult")) >= 3
            or self._likelihood(safe_search.get("racy")) >= 3
        ):
            return MatchStatus.VIOLATION
        return MatchStatus.CLEAN

    def _page_status(self, domain: str) -> MatchStatus:
        # 페이지는 이미지 자체가 아니므로 보수적으로 partial
        if self.classify_status("", domain) == MatchStatus.VIOLATION:
            return MatchStatus.VIOLATION
        return MatchStatus.PARTIAL

    @staticmethod
    def _order(results: list[SearchResult], query: SearchQuery) -> list[SearchResult]:
        """프로바이더 측 정렬 (max_results 절단 전에 좋은 후보를 앞으로)"""

        def score(result: SearchResult) -> float:
            value = result.similarity
            if result.web_page_url:
                value += 5
            if result.status == MatchStatus.VIOLATION:
                value += 10
            if query.options.exact_match_priority and result.similarity >= FULL_MATCH_SIMILARITY:
                value += 1000
            return value

        return sorted(results, key=score, reverse=True)

    def get_metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            description="Google Vision API reverse image search with web detection",
            capabilities=["reverse_image_search", "safe_search", "web_detection", "visual_similarity"],
            coverage=ProviderCoverage.GLOBAL,
            cost_per_search=0.0015,
        )
