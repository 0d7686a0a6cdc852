"""API 엔드포인트 패키지 - export only."""

from .routes import health_router, search_router, admin_router, get_engine_factory, get_image_search_service

__all__ = ["health_router", "search_router", "admin_router", "get_engine_factory", "get_image_search_service"]
