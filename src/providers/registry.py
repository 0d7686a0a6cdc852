"""프로바이더 어댑터 레지스트리

설정 키(proprietary, google_vision, tineye ...) → 어댑터 생성 함수.
팩토리는 "설정상 enabled AND 필요한 자격 증명 존재"일 때만 build()를 호출합니다.
어댑터가 없는 키(yandex, bing_visual 등)는 선언만 된 것으로 보고 건너뜁니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from src.core.config import Settings, settings as default_settings
from src.core.logging import logger
from src.engine.provider import SearchProvider
from src.engine.resolver import GOOGLE_VISION, PROPRIETARY, TINEYE
from src.schemas.search_schema import ProviderConfig

from .google_vision import GoogleVisionProvider
from .http_client import SharedHttpClient
from .proprietary import FingerprintIndex, ProprietaryProvider
from .tineye import TinEyeProvider


@dataclass
class ProviderContext:
    """어댑터 생성에 필요한 공유 자원"""

    settings: Settings = field(default_factory=lambda: default_settings)
    http_client: Optional[SharedHttpClient] = None
    fingerprint_index: FingerprintIndex = field(default_factory=FingerprintIndex)


Builder = Callable[[ProviderConfig, ProviderContext], SearchProvider]


@dataclass(frozen=True)
class AdapterSpec:
    """어댑터 1종 등록 정보

    Attributes:
        key: 설정 키
        credentials: 필요한 Settings 필드명 (모두 있어야 생성 가능)
        builder: (provider_config, context) → SearchProvider
    """

    key: str
    credentials: tuple[str, ...]
    builder: Builder

    def missing_credentials(self, cfg: Settings) -> list[str]:
        return [name for name in self.credentials if not getattr(cfg, name, None)]


class ProviderAdapterRegistry:
    """키 → AdapterSpec"""

    def __init__(self, specs: Iterable[AdapterSpec] = ()) -> None:
        self._specs: dict[str, AdapterSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: AdapterSpec) -> None:
        self._specs[spec.key] = spec

    def get(self, key: str) -> Optional[AdapterSpec]:
        return self._specs.get(key)

    def keys(self) -> list[str]:
        return list(self._specs)

    def __contains__(self, key: object) -> bool:
        return key in self._specs

    def build(self, key: str, provider_config: ProviderConfig, context: ProviderContext) -> Optional[SearchProvider]:
        """어댑터 생성. 어댑터가 없거나 자격 증명이 빠졌으면 None"""
        spec = self._specs.get(key)
        if spec is None:
            logger.debug(f"No adapter for provider key '{key}', skipped")
            return None

        missing = spec.missing_credentials(context.settings)
        if missing:
            logger.info(f"Provider '{key}' not registered: missing credentials {missing}")
            return None

        return spec.builder(provider_config, context)


def _build_proprietary(provider_config: ProviderConfig, ctx: ProviderContext) -> SearchProvider:
    daily = provider_config.rate_limit.requests_per_day if provider_config.rate_limit else 10000
    return ProprietaryProvider(index=ctx.fingerprint_index, daily_quota=daily)


def _build_google_vision(provider_config: ProviderConfig, ctx: ProviderContext) -> SearchProvider:
    daily = provider_config.rate_limit.requests_per_day if provider_config.rate_limit else 1000
    return GoogleVisionProvider(
        api_key=provider_config.api_key or ctx.settings.google_vision_api_key,
        base_url=provider_config.base_url or ctx.settings.google_vision_base_url,
        http_client=ctx.http_client,
        daily_quota=daily,
    )


def _build_tineye(provider_config: ProviderConfig, ctx: ProviderContext) -> SearchProvider:
    daily = provider_config.rate_limit.requests_per_day if provider_config.rate_limit else 150
    return TinEyeProvider(
        api_key=provider_config.api_key or ctx.settings.tineye_api_key,
        private_key=ctx.settings.tineye_private_key,
        base_url=provider_config.base_url or ctx.settings.tineye_base_url,
        http_client=ctx.http_client,
        daily_quota=daily,
    )


def default_registry() -> ProviderAdapterRegistry:
    """기본 어댑터 3종"""
    return ProviderAdapterRegistry([
        AdapterSpec(PROPRIETARY, (), _build_proprietary),
        AdapterSpec(GOOGLE_VISION, ("google_vision_api_key",), _build_google_vision),
        AdapterSpec(TINEYE, ("tineye_api_key", "tineye_private_key"), _build_tineye),
    ])
