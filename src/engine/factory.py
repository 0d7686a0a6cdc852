"""Search Engine Factory - (plan, search type, security level)별 엔진 생성/캐시

프로세스 시작 시 한 번 만들고 (FastAPI app.state) 참조로 전달합니다.
테스트는 각자 인스턴스를 만들어 캐시를 격리합니다.
"""

from typing import Any, Optional, Union

from src.core.config import Settings, settings as default_settings
from src.core.logging import logger
from src.providers.http_client import SharedHttpClient
from src.providers.proprietary import FingerprintIndex
from src.providers.registry import ProviderAdapterRegistry, ProviderContext, default_registry
from src.schemas.search_schema import (
    ProviderStats,
    SearchType,
    SecurityLevel,
    SystemValidationReport,
    UserPlan,
)

from .resolver import PolicyTables, build_policy_tables, get_config_for_user
from .search_engine import SearchEngine


# 자격 증명 점검 대상 (필요한 settings 필드, 경고 메시지)
_CREDENTIAL_CHECKS = [
    (("google_vision_api_key",), "Google Vision API key not configured - provider disabled"),
    (("tineye_api_key", "tineye_private_key"), "TinEye API credentials not configured - provider disabled"),
    (("yandex_api_key",), "Yandex API key not configured - provider disabled"),
    (("bing_search_api_key",), "Bing Visual Search API key not configured - provider disabled"),
]


def _value(item: Union[str, Any]) -> str:
    return item.value if hasattr(item, "value") else str(item)


class SearchEngineFactory:
    """엔진 캐시 + 조건부 프로바이더 등록"""

    def __init__(
        self,
        cfg: Optional[Settings] = None,
        registry: Optional[ProviderAdapterRegistry] = None,
        http_client: Optional[SharedHttpClient] = None,
        fingerprint_index: Optional[FingerprintIndex] = None,
    ):
        """
        Args:
            cfg: 설정 (기본값: 모듈 settings)
            registry: 어댑터 레지스트리 (기본값: proprietary/google_vision/tineye)
            http_client: 프로바이더 공유 HTTP 클라이언트
                (기본값: cfg가 주어지면 cfg 기반 전용 인스턴스, 아니면 프로세스 공유 인스턴스)
            fingerprint_index: 자체 스캐너 인덱스 (모든 엔진이 공유)
        """
        self.settings = cfg or default_settings
        self.registry = registry or default_registry()
        # cfg를 주입하면 HTTP 타임아웃/User-Agent도 그 cfg를 따른다
        self._owns_http_client = http_client is None and cfg is not None
        if self._owns_http_client:
            http_client = SharedHttpClient(self.settings)
        self.context = ProviderContext(
            settings=self.settings,
            http_client=http_client,
            fingerprint_index=fingerprint_index or FingerprintIndex(),
        )
        self._tables: PolicyTables = build_policy_tables(self.settings)
        self._engines: dict[str, SearchEngine] = {}

    @staticmethod
    def cache_key(
        user_plan: Union[UserPlan, str],
        search_type: Union[SearchType, str],
        security_level: Union[SecurityLevel, str],
    ) -> str:
        return f"{_value(user_plan)}-{_value(search_type)}-{_value(security_level)}"

    def create_engine(
        self,
        user_plan: Union[UserPlan, str],
        search_type: Union[SearchType, str] = SearchType.GENERAL_SEARCH,
        security_level: Union[SecurityLevel, str] = SecurityLevel.STANDARD,
    ) -> SearchEngine:
        """엔진 조회 또는 생성 (같은 조합이면 같은 인스턴스)

        Raises:
            UnknownPolicyException: 알 수 없는 plan/type/level
        """
        key = self.cache_key(user_plan, search_type, security_level)
        engine = self._engines.get(key)
        if engine is not None:
            return engine

        config = get_config_for_user(user_plan, search_type, security_level, tables=self._tables)
        engine = SearchEngine(config)

        for name, provider_config in config.providers.items():
            if not provider_config.enabled:
                continue
            provider = self.registry.build(name, provider_config, self.context)
            if provider is not None:
                engine.register_provider(name, provider)

        self._engines[key] = engine
        logger.info(f"Search engine created: key={key}, providers={engine.registered_providers}")
        return engine

    def create_revenge_detection_engine(self, user_plan: Union[UserPlan, str]) -> SearchEngine:
        """무단 유포 탐지용 (deep 스캔)"""
        return self.create_engine(user_plan, SearchType.REVENGE_DETECTION, SecurityLevel.DEEP)

    def create_copyright_detection_engine(self, user_plan: Union[UserPlan, str]) -> SearchEngine:
        return self.create_engine(user_plan, SearchType.COPYRIGHT_DETECTION, SecurityLevel.STANDARD)

    def create_fast_search_engine(self, user_plan: Union[UserPlan, str]) -> SearchEngine:
        return self.create_engine(user_plan, SearchType.GENERAL_SEARCH, SecurityLevel.FAST)

    def get_engine(self, key: str) -> Optional[SearchEngine]:
        """캐시된 엔진만 조회 (생성하지 않음)"""
        return self._engines.get(key)

    def clear_cache(self) -> None:
        """캐시 비우기 (이미 참조 중인 엔진은 계속 사용 가능)"""
        count = len(self._engines)
        self._engines.clear()
        logger.info(f"Search engine cache cleared: {count} engines")

    @property
    def cache_size(self) -> int:
        return len(self._engines)

    async def close(self) -> None:
        """팩토리가 만든 HTTP 클라이언트 정리 (주입받은 클라이언트는 호출자 소유)"""
        if self._owns_http_client and self.context.http_client is not None:
            await self.context.http_client.close()

    def validate_system_configuration(self) -> SystemValidationReport:
        """자격 증명/어댑터 점검 (예외를 던지지 않음)

        Returns:
            SystemValidationReport: 누락된 키마다 warning, 사용 가능한 프로바이더가 없으면 error
        """
        warnings: list[str] = []
        errors: list[str] = []

        try:
            for field_names, message in _CREDENTIAL_CHECKS:
                if not all(getattr(self.settings, name, None) for name in field_names):
                    warnings.append(message)

            # 자체 스캐너는 자격 증명이 필요 없으므로 기본 레지스트리에서는 항상 usable
            usable = [
                key for key in self.registry.keys()
                if not self.registry.get(key).missing_credentials(self.settings)
            ]
            if not usable:
                errors.append("No search providers configured - search functionality will not work")
        except Exception as e:
            logger.error(f"System configuration validation failed: {type(e).__name__}: {e}")
            errors.append(f"Validation failed: {e}")

        return SystemValidationReport(is_valid=not errors, warnings=warnings, errors=errors)

    async def get_global_provider_stats(self) -> dict[str, Any]:
        """pro/general_search/standard 엔진 기준 프로바이더 상태"""
        engine = self.create_engine(UserPlan.PRO, SearchType.GENERAL_SEARCH, SecurityLevel.STANDARD)
        stats: dict[str, ProviderStats] = await engine.get_provider_stats()

        available = [name for name, s in stats.items() if s.is_enabled and s.is_available]
        return {
            "providers": stats,
            "cached_engines": self.cache_size,
            "available_providers": available,
        }
