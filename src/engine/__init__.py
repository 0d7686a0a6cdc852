"""Engine Layer - 멀티 프로바이더 검색 오케스트레이션

- SearchEngine: 가용성 확인 → 병렬 fan-out → 병합/중복 제거/랭킹
- SearchProvider: 프로바이더 계약 (Protocol)
- Resolver: (plan, search type, security level) → SearchEngineConfig
- BudgetManager: 검색 1회의 시간 예산
- SearchEngineFactory: src.engine.factory (프로바이더 어댑터에 의존하므로 여기서 re-export 하지 않음)
"""

from .budget import BudgetConfig, BudgetManager
from .dedup import deduplicate, dedup_key
from .provider import SearchProvider
from .ranking import compare_results, get_provider_reliability, rank_results
from .resolver import build_policy_tables, get_config_for_user
from .search_engine import SearchEngine

__all__ = [
    "SearchEngine",
    "SearchProvider",
    "BudgetManager",
    "BudgetConfig",
    "get_config_for_user",
    "build_policy_tables",
    "deduplicate",
    "dedup_key",
    "rank_results",
    "compare_results",
    "get_provider_reliability",
]
