"""Pydantic 스키마 패키지 - export only."""

from .search_schema import (
    AggregationConfig,
    ConfigUpdateRequest,
    CopyrightRisk,
    HealthResponse,
    ImageSearchRequest,
    ImageSearchResponse,
    MatchStatus,
    ProviderConfig,
    ProviderCoverage,
    ProviderFailure,
    ProviderMetadata,
    ProviderStats,
    RateLimitConfig,
    RateLimitStatus,
    SearchEngineConfig,
    SearchEngineResult,
    SearchMetadata,
    SearchOptions,
    SearchQuery,
    SearchResult,
    SearchType,
    SecurityLevel,
    SystemValidationReport,
    UserPlan,
)

__all__ = [
    "AggregationConfig",
    "ConfigUpdateRequest",
    "CopyrightRisk",
    "HealthResponse",
    "ImageSearchRequest",
    "ImageSearchResponse",
    "MatchStatus",
    "ProviderConfig",
    "ProviderCoverage",
    "ProviderFailure",
    "ProviderMetadata",
    "ProviderStats",
    "RateLimitConfig",
    "RateLimitStatus",
    "SearchEngineConfig",
    "SearchEngineResult",
    "SearchMetadata",
    "SearchOptions",
    "SearchQuery",
    "SearchResult",
    "SearchType",
    "SecurityLevel",
    "SystemValidationReport",
    "UserPlan",
]
