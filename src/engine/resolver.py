"""Configuration Resolver - (plan, search type, security level) → SearchEngineConfig

레이어 우선순위 (낮음 → 높음):
    plan 기본값 < search type 정책 < security level 정책

- 프로바이더 집합은 plan이 결정합니다. 상위 레이어는 plan에 이미 있는 키만 덮어쓸 수 있고
  새 프로바이더를 추가할 수 없습니다.
- 집계 정책(aggregation)은 필드 단위로 병합되며, 상위 레이어가 명시한 필드만 덮어씁니다.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Union

from pydantic import BaseModel, Field

from src.core.config import Settings, settings as default_settings
from src.core.exceptions import UnknownPolicyException
from src.schemas.search_schema import (
    AggregationConfig,
    ProviderConfig,
    RateLimitConfig,
    SearchEngineConfig,
    SearchType,
    SecurityLevel,
    UserPlan,
)


# 프로바이더 키 (엔진 레지스트리 이름)
PROPRIETARY = "proprietary"
GOOGLE_VISION = "google_vision"
TINEYE = "tineye"
YANDEX = "yandex"
BING_VISUAL = "bing_visual"


class AggregationOverride(BaseModel):
    """집계 정책 부분 덮어쓰기 (None 필드는 하위 레이어 값 유지)"""
    deduplication_threshold: Optional[float] = Field(None, ge=0, le=1)
    minimum_similarity: Optional[float] = Field(None, ge=0, le=100)
    max_results_per_provider: Optional[int] = Field(None, ge=1)
    timeout_ms: Optional[int] = Field(None, gt=0)


class PolicyLayer(BaseModel):
    """search type / security level 정책 레이어"""
    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)
    aggregation: AggregationOverride = Field(default_factory=AggregationOverride)


@dataclass
class PolicyTables:
    """전체 정책 테이블 묶음"""

    default: SearchEngineConfig
    plans: dict[UserPlan, SearchEngineConfig]
    search_types: dict[SearchType, PolicyLayer]
    security_levels: dict[SecurityLevel, PolicyLayer]


def build_default_config(cfg: Optional[Settings] = None) -> SearchEngineConfig:
    """전역 기본 설정

    외부 프로바이더는 자격 증명이 있을 때만 enabled 입니다.
    """
    cfg = cfg or default_settings

    providers = {
        PROPRIETARY: ProviderConfig(
            enabled=True,
            priority=10,
            rate_limit=RateLimitConfig(requests_per_minute=100, requests_per_day=10000),
            fallback_providers=[GOOGLE_VISION, TINEYE],
        ),
        GOOGLE_VISION: ProviderConfig(
            enabled=bool(cfg.google_vision_api_key),
            priority=8,
            api_key=cfg.google_vision_api_key,
            base_url=cfg.google_vision_base_url,
            rate_limit=RateLimitConfig(requests_per_minute=10, requests_per_day=1000),
            fallback_providers=[TINEYE, PROPRIETARY],
        ),
        TINEYE: ProviderConfig(
            enabled=bool(cfg.tineye_api_key and cfg.tineye_private_key),
            priority=9,  # 정확도 우선
            api_key=cfg.tineye_api_key,
            base_url=cfg.tineye_base_url,
            rate_limit=RateLimitConfig(requests_per_minute=5, requests_per_day=150),
            fallback_providers=[GOOGLE_VISION, PROPRIETARY],
        ),
        YANDEX: ProviderConfig(
            enabled=bool(cfg.yandex_api_key),
            priority=6,
            api_key=cfg.yandex_api_key,
            base_url=cfg.yandex_base_url,
            rate_limit=RateLimitConfig(requests_per_minute=10, requests_per_day=1000),
        ),
        BING_VISUAL: ProviderConfig(
            enabled=bool(cfg.bing_search_api_key),
            priority=5,
            api_key=cfg.bing_search_api_key,
            base_url=cfg.bing_visual_base_url,
            rate_limit=RateLimitConfig(requests_per_minute=20, requests_per_day=3000),
        ),
    }

    return SearchEngineConfig(
        providers=providers,
        aggregation=AggregationConfig(
            deduplication_threshold=0.85,
            minimum_similarity=70,
            max_results_per_provider=25,
            timeout_ms=30000,
        ),
    )


def build_policy_tables(cfg: Optional[Settings] = None) -> PolicyTables:
    """plan / search type / security level 테이블 생성"""
    default = build_default_config(cfg)
    dp = default.providers

    plans = {
        # free: 자체 스캐너만
        UserPlan.FREE: SearchEngineConfig(
            providers={PROPRIETARY: dp[PROPRIETARY].model_copy(update={"enabled": True})},
            aggregation=default.aggregation.model_copy(
                update={"max_results_per_provider": 10, "timeout_ms": 15000}
            ),
        ),
        # basic: 자체 스캐너 + Google Vision
        UserPlan.BASIC: SearchEngineConfig(
            providers={PROPRIETARY: dp[PROPRIETARY], GOOGLE_VISION: dp[GOOGLE_VISION]},
            aggregation=default.aggregation.model_copy(update={"max_results_per_provider": 20}),
        ),
        # pro: 전체
        UserPlan.PRO: default.model_copy(deep=True),
    }

    search_types = {
        SearchType.REVENGE_DETECTION: PolicyLayer(
            providers={PROPRIETARY: dp[PROPRIETARY].model_copy(update={"priority": 15})},
            aggregation=AggregationOverride(minimum_similarity=70, deduplication_threshold=0.90),
        ),
        SearchType.COPYRIGHT_DETECTION: PolicyLayer(
            aggregation=AggregationOverride(minimum_similarity=80, deduplication_threshold=0.95),
        ),
        SearchType.GENERAL_SEARCH: PolicyLayer(
            aggregation=AggregationOverride(minimum_similarity=75, deduplication_threshold=0.85),
        ),
    }

    security_levels = {
        SecurityLevel.FAST: PolicyLayer(
            providers={PROPRIETARY: dp[PROPRIETARY], TINEYE: dp[TINEYE]},
            aggregation=AggregationOverride(max_results_per_provider=15, timeout_ms=15000),
        ),
        SecurityLevel.STANDARD: PolicyLayer(),
        SecurityLevel.DEEP: PolicyLayer(
            aggregation=AggregationOverride(
                max_results_per_provider=50,
                timeout_ms=60000,
                minimum_similarity=50,  # 더 많은 후보 확보
            ),
        ),
    }

    return PolicyTables(
        default=default,
        plans=plans,
        search_types=search_types,
        security_levels=security_levels,
    )


def _coerce(enum_cls, value, axis: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise UnknownPolicyException(axis, value)


def apply_layer(base: SearchEngineConfig, layer: PolicyLayer) -> SearchEngineConfig:
    """레이어 1개 적용

    - base에 이미 있는 프로바이더 키만 통째로 교체
    - aggregation은 레이어가 지정한 필드만 교체
    """
    providers = dict(base.providers)
    for name, provider_config in layer.providers.items():
        if name in base.providers:
            providers[name] = provider_config.model_copy(deep=True)

    aggregation = base.aggregation.model_copy(
        update=layer.aggregation.model_dump(exclude_none=True)
    )
    return SearchEngineConfig(providers=providers, aggregation=aggregation)


def get_config_for_user(
    user_plan: Union[UserPlan, str],
    search_type: Union[SearchType, str] = SearchType.GENERAL_SEARCH,
    security_level: Union[SecurityLevel, str] = SecurityLevel.STANDARD,
    tables: Optional[PolicyTables] = None,
) -> SearchEngineConfig:
    """최종 엔진 설정 계산 (순수 함수)

    Args:
        user_plan: 구독 플랜
        search_type: 검색 유형
        security_level: 스캔 강도
        tables: 정책 테이블 (기본값: 현재 settings로 생성)

    Returns:
        SearchEngineConfig: 병합된 새 설정 객체

    Raises:
        UnknownPolicyException: 알 수 없는 plan/type/level
    """
    plan = _coerce(UserPlan, user_plan, "plan")
    stype = _coerce(SearchType, search_type, "search_type")
    level = _coerce(SecurityLevel, security_level, "security_level")

    tables = tables or build_policy_tables()

    config = tables.plans[plan].model_copy(deep=True)
    config = apply_layer(config, tables.search_types[stype])
    config = apply_layer(config, tables.security_levels[level])
    return config
