"""Search Engine - 멀티 프로바이더 검색 오케스트레이터

검색 파이프라인:
1. 활성 프로바이더 선택 (priority 내림차순)
2. 가용성 확인 (병렬)
3. 프로바이더별 타임아웃을 건 병렬 검색
4. 타임아웃 창까지만 대기 (늦은 프로바이더는 버림) 후 병합
5. 최소 유사도 필터 → 중복 제거 → 랭킹 → max_results 절단

프로바이더 장애는 예외가 아니라 결과 메타데이터(providers_failures)로만 전달됩니다.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

from src.core.exceptions import (
    ImageSearchException,
    InvalidQueryException,
    ProviderTimeoutException,
)
from src.core.logging import logger, sanitize_for_log
from src.schemas.search_schema import (
    ProviderFailure,
    ProviderStats,
    SearchEngineConfig,
    SearchEngineResult,
    SearchMetadata,
    SearchQuery,
    SearchResult,
)

from .budget import BudgetConfig, BudgetManager
from .dedup import deduplicate
from .provider import SearchProvider
from .ranking import rank_results


@dataclass
class FanOutOutcome:
    """fan-out 1회의 결과 (검색마다 새로 생성, 엔진에 저장하지 않음)"""

    results: list[SearchResult] = field(default_factory=list)
    providers_used: list[str] = field(default_factory=list)
    failures: list[ProviderFailure] = field(default_factory=list)


def describe_error(error: BaseException) -> str:
    """providers_failures에 기록할 오류 메시지"""
    if isinstance(error, ImageSearchException):
        return error.message
    message = str(error)
    return message or type(error).__name__


class SearchEngine:
    """검색 엔진 오케스트레이터

    프로바이더 레지스트리와 현재 설정만 공유 상태로 갖습니다.
    search()는 재진입 가능하며 같은 인스턴스에서 동시에 호출될 수 있습니다.
    """

    def __init__(self, config: SearchEngineConfig):
        """
        Args:
            config: 해석된 엔진 설정
        """
        if config is None:
            raise ValueError("config must not be None")

        self._config = config
        self._providers: dict[str, SearchProvider] = {}

    # ------------------------------------------------------------------
    # 레지스트리
    # ------------------------------------------------------------------

    def register_provider(self, name: str, provider: SearchProvider) -> None:
        """프로바이더 등록 (같은 이름이면 교체)"""
        if not name:
            raise ValueError("provider name must not be empty")
        self._providers[name] = provider
        logger.debug(f"Provider registered: {name} ({provider.name})")

    def unregister_provider(self, name: str) -> bool:
        """프로바이더 제거. 없었으면 False"""
        return self._providers.pop(name, None) is not None

    @property
    def registered_providers(self) -> list[str]:
        """등록 순서대로 프로바이더 키"""
        return list(self._providers)

    # ------------------------------------------------------------------
    # 검색
    # ------------------------------------------------------------------

    async def search(self, query: SearchQuery) -> SearchEngineResult:
        """통합 검색 실행

        Args:
            query: 검색 쿼리

        Returns:
            SearchEngineResult: 랭킹된 결과 + 실행 메타데이터

        Raises:
            InvalidQueryException: query가 SearchQuery가 아닌 경우
        """
        if not isinstance(query, SearchQuery):
            raise InvalidQueryException(f"expected SearchQuery, got {type(query).__name__}")

        # 설정은 검색 시작 시 한 번만 읽는다
        config = self._config
        budget = BudgetManager(BudgetConfig.from_timeout_ms(config.aggregation.timeout_ms))
        budget.start()

        enabled = self._get_enabled_providers(config)
        available = await self._check_provider_availability(enabled)
        budget.checkpoint("availability_checked")

        if not available:
            logger.warning(
                f"No search providers available: registered={self.registered_providers}, "
                f"enabled={[name for name, _ in enabled]}"
            )

        outcome = await self._fan_out(available, query, config, budget)
        budget.checkpoint("fanout_done")

        final_results = self._aggregate_and_rank(outcome.results, query, config)
        budget.checkpoint("aggregated")

        logger.info(
            f"Search completed: results={len(final_results)}, "
            f"used={outcome.providers_used}, failed={[f.provider for f in outcome.failures]}, "
            f"elapsed={budget.elapsed():.2f}s"
        )
        logger.debug(f"Search budget report: {budget.get_report()}")

        return SearchEngineResult(
            query=query,
            results=final_results,
            metadata=SearchMetadata(
                total_results=len(final_results),
                search_time=budget.elapsed_ms(),
                providers_used=outcome.providers_used,
                providers_failures=outcome.failures,
            ),
        )

    def _get_enabled_providers(self, config: SearchEngineConfig) -> list[tuple[str, SearchProvider]]:
        """설정상 enabled인 프로바이더 (priority 내림차순, 동률은 등록 순서)"""
        enabled = [
            (name, provider)
            for name, provider in self._providers.items()
            if name in config.providers and config.providers[name].enabled
        ]
        return sorted(enabled, key=lambda item: config.providers[item[0]].priority, reverse=True)

    async def _check_provider_availability(
        self, providers: list[tuple[str, SearchProvider]]
    ) -> list[tuple[str, SearchProvider]]:
        """가용성 확인 (병렬)

        False를 반환하거나 예외를 던진 프로바이더는 조용히 제외합니다.
        """
        if not providers:
            return []

        checks = await asyncio.gather(
            *(provider.is_available() for _, provider in providers),
            return_exceptions=True,
        )

        available: list[tuple[str, SearchProvider]] = []
        for (name, provider), outcome in zip(providers, checks):
            if isinstance(outcome, BaseException):
                logger.warning(
                    f"Provider {name} availability check failed: "
                    f"{type(outcome).__name__}: {sanitize_for_log(str(outcome))}"
                )
                continue
            if outcome:
                available.append((name, provider))
            else:
                logger.debug(f"Provider {name} unavailable, skipped")
        return available

    async def _run_provider(self, provider: SearchProvider, query: SearchQuery) -> list[SearchResult]:
        """프로바이더 1개 검색 (타임아웃은 _fan_out이 건다)"""
        results = await provider.search(query)
        return list(results or [])

    @staticmethod
    def _discard(task: asyncio.Task) -> None:
        """버린 task의 늦은 결과/예외를 소비 (never retrieved 경고 방지)"""
        if not task.cancelled():
            task.exception()

    async def _fan_out(
        self,
        providers: list[tuple[str, SearchProvider]],
        query: SearchQuery,
        config: SearchEngineConfig,
        budget: BudgetManager,
    ) -> FanOutOutcome:
        """모든 프로바이더 병렬 실행, 타임아웃 창이 끝나면 더 기다리지 않음

        타임아웃 시점에 끝나지 않은 프로바이더는 cancel만 요청하고 버립니다.
        취소를 늦게 처리하거나 무시하는 프로바이더도 검색을 붙잡지 못하며,
        그 뒤에 나온 결과는 반영되지 않습니다.
        """
        outcome = FanOutOutcome()
        if not providers:
            return outcome

        provider_query = query.with_options(
            max_results=config.aggregation.max_results_per_provider
        )
        timeout = budget.get_timeout_for("provider")

        tasks = {
            name: asyncio.create_task(self._run_provider(provider, provider_query), name=f"provider:{name}")
            for name, provider in providers
        }
        try:
            await asyncio.wait(tasks.values(), timeout=timeout)
        except asyncio.CancelledError:
            for task in tasks.values():
                task.cancel()
            raise

        for name, task in tasks.items():
            if not task.done():
                task.cancel()
                task.add_done_callback(self._discard)
                error: BaseException = ProviderTimeoutException(name, config.aggregation.timeout_ms)
            elif task.cancelled():
                error = RuntimeError("provider search was cancelled")
            else:
                error = task.exception()

            if error is not None:
                message = describe_error(error)
                logger.warning(f"Provider {name} failed: {type(error).__name__}: {sanitize_for_log(message)}")
                outcome.failures.append(ProviderFailure(provider=name, error=message))
                continue

            result = task.result()
            outcome.providers_used.append(name)
            outcome.results.extend(result)
            logger.debug(f"Provider {name} returned {len(result)} results")

        return outcome

    def _aggregate_and_rank(
        self,
        results: list[SearchResult],
        query: SearchQuery,
        config: SearchEngineConfig,
    ) -> list[SearchResult]:
        """최소 유사도 → 중복 제거 → 랭킹 → 절단"""
        floor = config.aggregation.minimum_similarity
        filtered = [r for r in results if r.similarity >= floor]

        deduplicated = deduplicate(filtered)
        ranked = rank_results(deduplicated)

        return ranked[: query.options.max_results]

    # ------------------------------------------------------------------
    # 설정 / 진단
    # ------------------------------------------------------------------

    def update_config(self, new_config: Optional[SearchEngineConfig] = None, **partial: Any) -> None:
        """설정 얕은 병합 (등록된 프로바이더는 유지)

        Args:
            new_config: 전체 설정 객체. 주어지면 partial보다 먼저 적용
            **partial: providers= 및/또는 aggregation= 최상위 필드 교체

        Note:
            진행 중인 검색과 동기화하지 않습니다. 각 검색은 시작 시점의 설정을 사용합니다.
        """
        updates: dict[str, Any] = {}
        if new_config is not None:
            updates.update(providers=new_config.providers, aggregation=new_config.aggregation)

        unknown = set(partial) - set(SearchEngineConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}")
        updates.update({k: v for k, v in partial.items() if v is not None})

        merged = self._config.model_dump()
        for key, value in updates.items():
            merged[key] = value.model_dump() if hasattr(value, "model_dump") else value
        self._config = SearchEngineConfig.model_validate(merged)
        logger.info(f"Search engine config updated: fields={sorted(updates)}")

    def get_config(self) -> SearchEngineConfig:
        """현재 설정 사본"""
        return self._config.model_copy(deep=True)

    async def get_provider_stats(self) -> dict[str, ProviderStats]:
        """등록된 프로바이더별 상태 (가용성 probe 포함)"""

        async def _probe(provider: SearchProvider) -> bool:
            try:
                return bool(await provider.is_available())
            except Exception as e:
                logger.debug(f"Availability probe failed for {provider.name}: {e}")
                return False

        items = list(self._providers.items())
        availability = await asyncio.gather(*(_probe(p) for _, p in items))

        stats: dict[str, ProviderStats] = {}
        for (name, provider), is_available in zip(items, availability):
            provider_config = self._config.providers.get(name)
            stats[name] = ProviderStats(
                is_enabled=bool(provider_config and provider_config.enabled),
                is_available=is_available,
                rate_limit=provider.get_rate_limit(),
                metadata=provider.get_metadata(),
            )
        return stats
