"""API routes package."""

from .health_routes import router as health_router
from .search_routes import router as search_router, get_engine_factory, get_image_search_service
from .admin_routes import admin_router

__all__ = ["health_router", "search_router", "admin_router", "get_engine_factory", "get_image_search_service"]
