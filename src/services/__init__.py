"""비즈니스 로직 서비스 - export only."""

from .impl import ImageSearchService

__all__ = ["ImageSearchService"]
