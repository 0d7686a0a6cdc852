"""Image Search Routes

HTTP Layer는 요청을 ImageSearchService / SearchEngineFactory로 위임하는 Translator 역할만 합니다.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from src.core.exceptions import ConfigurationException, ValidationException
from src.core.logging import logger
from src.engine.factory import SearchEngineFactory
from src.schemas.search_schema import (
    ImageSearchRequest,
    ImageSearchResponse,
    SystemValidationReport,
)
from src.services.impl.image_search_service import ImageSearchService

router = APIRouter(prefix="/api/v1/search", tags=["search"])


def get_engine_factory(request: Request) -> SearchEngineFactory:
    """앱 수명 동안 공유되는 SearchEngineFactory (lifespan에서 app.state에 생성)"""
    factory = getattr(request.app.state, "engine_factory", None)
    if factory is None:
        factory = SearchEngineFactory()
        request.app.state.engine_factory = factory
    return factory


def get_image_search_service(
    factory: SearchEngineFactory = Depends(get_engine_factory),
) -> ImageSearchService:
    return ImageSearchService(factory)


@router.post("", response_model=ImageSearchResponse)
async def search_image(
    request: ImageSearchRequest,
    service: ImageSearchService = Depends(get_image_search_service),
):
    """역이미지 검색

    Flow:
        1. base64 이미지 디코딩
        2. (plan, type, level) 엔진 조회/생성
        3. 프로바이더 병렬 검색 → 병합/중복 제거/랭킹
        4. 프로바이더 장애는 data.metadata.providers_failures 로 전달
    """
    try:
        return await service.search_image(request)
    except ValidationException as e:
        logger.warning(f"[API] Search validation failed: {e.error_code}")
        raise HTTPException(status_code=422, detail=service.build_error_response(e).model_dump())
    except ConfigurationException as e:
        logger.warning(f"[API] Search configuration error: {e}")
        raise HTTPException(status_code=400, detail=service.build_error_response(e).model_dump())


@router.get("/providers")
async def get_provider_stats(
    factory: SearchEngineFactory = Depends(get_engine_factory),
) -> dict[str, Any]:
    """전체 프로바이더 상태 (pro/general_search/standard 기준)"""
    stats = await factory.get_global_provider_stats()
    return {
        "providers": {name: s.model_dump(mode="json") for name, s in stats["providers"].items()},
        "cached_engines": stats["cached_engines"],
        "available_providers": stats["available_providers"],
    }


@router.get("/validate", response_model=SystemValidationReport)
async def validate_configuration(
    factory: SearchEngineFactory = Depends(get_engine_factory),
):
    """시스템 설정 검증 리포트"""
    return factory.validate_system_configuration()
