"""FastAPI 앱 팩토리"""
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from src.core.config import settings
from src.core.logging import logger
from src.engine.factory import SearchEngineFactory
from src.providers.http_client import shutdown_shared_http_client
from src.api import health_router, search_router, admin_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기"""
    logger.info("Starting application...")
    if getattr(app.state, "engine_factory", None) is None:
        app.state.engine_factory = SearchEngineFactory()

    report = app.state.engine_factory.validate_system_configuration()
    for warning in report.warnings:
        logger.warning(f"[CONFIG] {warning}")
    for error in report.errors:
        logger.error(f"[CONFIG] {error}")
    logger.info("Application started")
    yield
    logger.info("Shutting down application...")
    app.state.engine_factory.clear_cache()
    try:
        await app.state.engine_factory.close()
        await shutdown_shared_http_client()
    except Exception as e:
        # 종료 훅에서의 예외는 앱 종료를 막지 않도록 기록만
        logger.warning(f"HTTP client shutdown failed: {type(e).__name__}: {e}")


def create_app(engine_factory: Optional[SearchEngineFactory] = None) -> FastAPI:
    """
    FastAPI 앱 생성 (Factory Pattern)

    Args:
        engine_factory: 주입할 엔진 팩토리 (테스트용, 없으면 lifespan에서 생성)

    Returns:
        FastAPI 앱 인스턴스
    """
    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        lifespan=lifespan
    )
    app.state.engine_factory = engine_factory

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 라우터 등록
    app.include_router(health_router)
    app.include_router(search_router)
    app.include_router(admin_router)

    return app

# 앱 인스턴스 생성 (uvicorn이 로드할 수 있도록)
app = create_app()
