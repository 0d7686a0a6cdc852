"""이미지 검색 서비스 - API 요청 → 엔진 실행 → 응답 조립"""
import base64
import binascii
from typing import Optional

from src.core.exceptions import InvalidImageException, ConfigurationException
from src.core.logging import logger
from src.engine.factory import SearchEngineFactory
from src.schemas.search_schema import (
    ImageSearchRequest,
    ImageSearchResponse,
    SearchEngineResult,
    SearchQuery,
)
from src.utils.hash_utils import hash_bytes


class ImageSearchService:
    """
    이미지 검색 서비스 - SRP: 요청 변환과 엔진 호출만 담당

    - 엔진 선택/캐시는 SearchEngineFactory
    - 병합/중복 제거/랭킹은 SearchEngine
    """

    def __init__(self, factory: SearchEngineFactory):
        self.factory = factory

    @staticmethod
    def decode_image(image_data: str) -> bytes:
        """base64 → 바이트

        Raises:
            InvalidImageException: 디코딩 실패 또는 빈 이미지
        """
        try:
            decoded = base64.b64decode(image_data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidImageException(f"invalid base64 payload: {e}")
        if not decoded:
            raise InvalidImageException("empty image payload")
        return decoded

    def build_query(self, request: ImageSearchRequest, image_bytes: Optional[bytes] = None) -> SearchQuery:
        """API 요청 → 엔진 쿼리"""
        image_bytes = image_bytes if image_bytes is not None else self.decode_image(request.image_data)
        return SearchQuery(
            image_data=image_bytes,
            image_hash=hash_bytes(image_bytes),
            search_type=request.search_type,
            user_plan=request.user_plan,
            options=request.options,
        )

    async def run_search(self, request: ImageSearchRequest) -> SearchEngineResult:
        """엔진 결과 그대로 반환

        Raises:
            InvalidImageException: 이미지 디코딩 실패
            UnknownPolicyException: 알 수 없는 plan/type/level
        """
        query = self.build_query(request)
        engine = self.factory.create_engine(request.user_plan, request.search_type, request.security_level)

        logger.info(
            f"Image search: plan={request.user_plan.value}, type={request.search_type.value}, "
            f"level={request.security_level.value}, bytes={len(query.image_data)}"
        )
        return await engine.search(query)

    async def search_image(self, request: ImageSearchRequest) -> ImageSearchResponse:
        """이미지 검색 후 API 응답 조립

        프로바이더 장애는 data.metadata.providers_failures 로 전달되고
        응답 자체는 success 입니다.

        Raises:
            InvalidImageException: 이미지 디코딩 실패
            ConfigurationException: 정책 조합 오류
        """
        result = await self.run_search(request)
        metadata = result.metadata

        if metadata.total_results:
            message = f"{metadata.total_results}건의 일치 이미지를 찾았습니다."
        elif metadata.providers_used:
            message = "일치하는 이미지를 찾지 못했습니다."
        else:
            message = "사용 가능한 검색 프로바이더가 없습니다."

        return ImageSearchResponse(status="success", data=result, message=message)

    def build_error_response(self, error: Exception) -> ImageSearchResponse:
        """예외 → 에러 응답 (HTTP 상태 매핑은 라우터 책임)"""
        error_code = getattr(error, "error_code", None)
        if isinstance(error, ConfigurationException):
            message = f"검색 설정 오류: {error.message}"
        else:
            message = getattr(error, "message", None) or "이미지 검색 중 오류가 발생했습니다."
        return ImageSearchResponse(status="error", message=message, error_code=error_code)
