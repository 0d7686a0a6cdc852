"""설정 관리 - 환경 변수 로드 및 검증"""
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 외부 프로바이더 자격 증명 (없으면 해당 프로바이더는 등록되지 않음)
    google_vision_api_key: Optional[str] = None
    tineye_api_key: Optional[str] = None
    tineye_private_key: Optional[str] = None
    yandex_api_key: Optional[str] = None
    bing_search_api_key: Optional[str] = None

    # 프로바이더 엔드포인트
    google_vision_base_url: str = "https://vision.googleapis.com/v1"
    tineye_base_url: str = "https://api.tineye.com/rest"
    yandex_base_url: str = "https://yandex.com/images/search"
    bing_visual_base_url: str = "https://api.bing.microsoft.com/v7.0/images/visualsearch"

    # 프로바이더 HTTP 설정
    # NOTE: 엔진의 per-provider timeout(aggregation.timeout_ms)이 최종 상한이고,
    # 이 값은 단일 HTTP 요청의 타임아웃입니다.
    provider_http_timeout_s: float = 20.0
    provider_http_max_connections: int = 20
    provider_user_agent: str = "ImageSearchAggregator/1.0"

    # API
    api_title: str = "Reverse Image Search Aggregator"
    api_version: str = "1.0.0"
    api_description: str = "여러 역이미지 검색 프로바이더 결과를 병합/중복제거/랭킹합니다."

    # 로깅
    log_level: str = "INFO"

    @field_validator("provider_http_timeout_s")
    @classmethod
    def validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("provider_http_timeout_s must be positive")
        return v

    @field_validator("provider_http_max_connections")
    @classmethod
    def validate_positive_ints(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator(
        "google_vision_api_key",
        "tineye_api_key",
        "tineye_private_key",
        "yandex_api_key",
        "bing_search_api_key",
    )
    @classmethod
    def blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        """빈 문자열 키는 미설정으로 취급"""
        if v is None or not v.strip():
            return None
        return v.strip()

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
