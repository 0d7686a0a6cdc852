"""엔진 관리 API (설정 조회/갱신, 캐시 초기화)"""
from fastapi import APIRouter, Depends, HTTPException

from src.core.exceptions import ConfigurationException
from src.core.logging import logger
from src.engine.factory import SearchEngineFactory
from src.schemas.search_schema import ConfigUpdateRequest, SearchEngineConfig
from src.api.routes.search_routes import get_engine_factory

admin_router = APIRouter(prefix="/api/v1/admin/engines", tags=["admin"])


def _resolve_engine(factory: SearchEngineFactory, plan: str, search_type: str, security_level: str):
    try:
        return factory.create_engine(plan, search_type, security_level)
    except ConfigurationException as e:
        logger.warning(f"[ADMIN] Invalid engine key: {e}")
        raise HTTPException(status_code=400, detail={"message": e.message, "error_code": e.error_code})


def _redact(config: SearchEngineConfig) -> dict:
    """API 키는 응답에서 제외"""
    data = config.model_dump(mode="json")
    for provider in data.get("providers", {}).values():
        provider["api_key"] = "***" if provider.get("api_key") else None
    return data


@admin_router.get("/{plan}/{search_type}/{security_level}/config")
async def get_engine_config(
    plan: str,
    search_type: str,
    security_level: str,
    factory: SearchEngineFactory = Depends(get_engine_factory),
):
    """엔진 현재 설정"""
    engine = _resolve_engine(factory, plan, search_type, security_level)
    return {
        "engine": factory.cache_key(plan, search_type, security_level),
        "registered_providers": engine.registered_providers,
        "config": _redact(engine.get_config()),
    }


@admin_router.put("/{plan}/{search_type}/{security_level}/config")
async def update_engine_config(
    plan: str,
    search_type: str,
    security_level: str,
    update: ConfigUpdateRequest,
    factory: SearchEngineFactory = Depends(get_engine_factory),
):
    """엔진 설정 얕은 병합 (providers / aggregation 단위 교체)"""
    engine = _resolve_engine(factory, plan, search_type, security_level)

    if update.providers is None and update.aggregation is None:
        raise HTTPException(status_code=400, detail="providers or aggregation is required")

    engine.update_config(providers=update.providers, aggregation=update.aggregation)
    logger.info(f"[ADMIN] Engine config updated: {factory.cache_key(plan, search_type, security_level)}")

    return {
        "engine": factory.cache_key(plan, search_type, security_level),
        "registered_providers": engine.registered_providers,
        "config": _redact(engine.get_config()),
    }


@admin_router.post("/cache/clear")
async def clear_engine_cache(factory: SearchEngineFactory = Depends(get_engine_factory)):
    """엔진 캐시 초기화"""
    cleared = factory.cache_size
    factory.clear_cache()
    return {"cleared": cleared, "cache_size": factory.cache_size}
