"""헬스 체크 엔드포인트"""
from fastapi import APIRouter, Depends
from datetime import datetime, timezone

from src.schemas.search_schema import HealthResponse
from src.engine.factory import SearchEngineFactory
from src.api.routes.search_routes import get_engine_factory
from src.core.logging import logger
from src import __version__

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(factory: SearchEngineFactory = Depends(get_engine_factory)):
    """
    헬스 체크 엔드포인트

    - 서버 상태
    - 시스템 설정 검증 결과 (errors가 있으면 degraded)
    - 캐시된 엔진 수
    """
    report = factory.validate_system_configuration()
    if not report.is_valid:
        logger.warning(f"Health degraded: {report.errors}")

    return HealthResponse(
        status="ok" if report.is_valid else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        registered_engines=factory.cache_size,
    )


@router.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "service": "역이미지 검색 통합 서비스",
        "version": __version__,
        "docs": "/docs"
    }
