"""Provider Contract - 모든 검색 백엔드가 구현해야 하는 인터페이스

엔진과 팩토리는 이 프로토콜만을 통해 프로바이더와 상호작용합니다.
구체 클래스(ProprietaryProvider 등)를 직접 참조하지 않습니다.
"""

from typing import Protocol, runtime_checkable

from src.schemas.search_schema import (
    ProviderMetadata,
    RateLimitStatus,
    SearchQuery,
    SearchResult,
)


@runtime_checkable
class SearchProvider(Protocol):
    """검색 프로바이더 인터페이스

    Attributes:
        name: 표시용 이름. SearchResult.provider 및 신뢰도 테이블 조회에 사용
    """

    name: str

    async def is_available(self) -> bool:
        """사용 가능 여부 (라이브 probe 가능)

        예외를 던지면 안 되지만, 던지더라도 엔진은 '사용 불가'로 처리합니다.
        """
        ...

    async def search(self, query: SearchQuery) -> list[SearchResult]:
        """후보 매치 검색

        예외를 던질 수 있습니다. 타임아웃/오류 격리는 엔진 책임입니다.
        """
        ...

    def get_rate_limit(self) -> RateLimitStatus:
        """남은 요청 수 (권고용)"""
        ...

    def get_metadata(self) -> ProviderMetadata:
        """운영자용 설명 (랭킹에는 사용하지 않음)"""
        ...
