"""Services implementation package."""

from .image_search_service import ImageSearchService

__all__ = ["ImageSearchService"]
