"""Pydantic 스키마 정의 - 검색 엔진 데이터 모델 + API 요청/응답"""
import base64
import binascii
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, List, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchType(str, Enum):
    """검색 유형"""

    GENERAL_SEARCH = "general_search"
    COPYRIGHT_DETECTION = "copyright_detection"
    REVENGE_DETECTION = "revenge_detection"  # 비동의/무단 유포 콘텐츠 탐지


class UserPlan(str, Enum):
    """구독 플랜"""

    FREE = "free"
    BASIC = "basic"
    PRO = "pro"


class SecurityLevel(str, Enum):
    """스캔 강도 (속도 ↔ 커버리지)"""

    FAST = "fast"
    STANDARD = "standard"
    DEEP = "deep"


class MatchStatus(str, Enum):
    """매치 분류"""

    VIOLATION = "violation"
    PARTIAL = "partial"
    CLEAN = "clean"


class CopyrightRisk(str, Enum):
    """저작권 위험도"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProviderCoverage(str, Enum):
    """프로바이더 커버리지"""

    GLOBAL = "global"
    REGIONAL = "regional"
    SPECIALIZED = "specialized"


# ============================================================================
# 검색 입력
# ============================================================================

class SearchOptions(BaseModel):
    """검색 옵션 (이름/타입이 정해진 구조체)"""
    model_config = ConfigDict(frozen=True)

    max_results: int = Field(50, ge=1, le=500, description="최종 결과 상한")
    similarity_threshold: Optional[float] = Field(None, ge=0, le=100, description="프로바이더 측 유사도 하한 힌트")
    target_sites: List[str] = Field(default_factory=list, description="우선 탐색할 사이트")
    exclude_sites: List[str] = Field(default_factory=list, description="제외할 사이트")
    domain_whitelist: List[str] = Field(default_factory=list, description="이 도메인만 허용")
    domain_blacklist: List[str] = Field(default_factory=list, description="이 도메인은 제외")

    # 프로바이더 기능 토글
    include_geo_results: bool = Field(True, description="지역화 결과 포함")
    language_hints: List[str] = Field(default_factory=lambda: ["en"], description="텍스트 검출 언어 힌트")
    detect_faces: bool = False
    detect_logos: bool = False
    detect_landmarks: bool = False
    detect_text: bool = False
    detect_objects: bool = False
    analyze_labels: bool = False
    exact_match_priority: bool = Field(False, description="완전 일치 결과 우선")

    @field_validator("target_sites", "exclude_sites", "domain_whitelist", "domain_blacklist")
    @classmethod
    def normalize_domains(cls, v: List[str]) -> List[str]:
        """도메인 목록 소문자/공백 정리"""
        return [d.strip().lower() for d in v if d and d.strip()]


class SearchQuery(BaseModel):
    """검색 쿼리 - 한 번의 검색 동안 불변

    image_data는 엔진이 해석하지 않는 불투명 바이트입니다.
    """
    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    image_data: bytes = Field(..., description="디코딩된 이미지 바이트")
    image_hash: Optional[str] = Field(None, description="호출자가 계산한 이미지 해시")
    search_type: SearchType = SearchType.GENERAL_SEARCH
    user_plan: UserPlan = UserPlan.FREE
    options: SearchOptions = Field(default_factory=SearchOptions)

    def with_options(self, **changes: Any) -> "SearchQuery":
        """옵션 일부를 바꾼 사본 반환 (원본은 그대로)"""
        return self.model_copy(update={"options": self.options.model_copy(update=changes)})


# ============================================================================
# 검색 결과
# ============================================================================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SearchResult(BaseModel):
    """후보 매치 1건 (값 객체, 생성 후 변경 불가)"""
    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    site_name: str
    title: Optional[str] = None
    similarity: float = Field(..., ge=0, le=100)
    status: MatchStatus
    thumbnail: Optional[str] = None
    detected_at: datetime = Field(default_factory=_utcnow)
    provider: str
    web_page_url: Optional[str] = Field(None, description="이미지를 포함한 웹 페이지 URL")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def copyright_risk(self) -> CopyrightRisk:
        """metadata의 copyright_risk (없거나 알 수 없으면 low)"""
        raw = self.metadata.get("copyright_risk")
        try:
            return CopyrightRisk(raw) if raw is not None else CopyrightRisk.LOW
        except ValueError:
            return CopyrightRisk.LOW


# ============================================================================
# 엔진 설정
# ============================================================================

class RateLimitConfig(BaseModel):
    """요청 한도 (권고값, 엔진이 강제하지 않음)"""
    requests_per_minute: int = Field(..., ge=0)
    requests_per_day: int = Field(..., ge=0)


class ProviderConfig(BaseModel):
    """프로바이더별 정책"""
    enabled: bool = False
    priority: int = 0
    api_key: Optional[str] = Field(None, repr=False)
    base_url: Optional[str] = None
    rate_limit: Optional[RateLimitConfig] = None
    # 선언만 되어 있고 엔진은 참조하지 않음
    fallback_providers: List[str] = Field(default_factory=list)


class AggregationConfig(BaseModel):
    """집계 정책"""
    deduplication_threshold: float = Field(0.85, ge=0, le=1)
    minimum_similarity: float = Field(70, ge=0, le=100)
    max_results_per_provider: int = Field(25, ge=1)
    timeout_ms: int = Field(30000, gt=0)


class SearchEngineConfig(BaseModel):
    """엔진 설정 = 프로바이더 맵 + 집계 정책"""
    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)
    aggregation: AggregationConfig = Field(default_factory=AggregationConfig)


# ============================================================================
# 엔진 출력
# ============================================================================

class ProviderFailure(BaseModel):
    """실행 실패한 프로바이더"""
    provider: str
    error: str


class SearchMetadata(BaseModel):
    """검색 실행 메타데이터"""
    total_results: int = Field(..., ge=0)
    search_time: float = Field(..., ge=0, description="소요 시간 (밀리초)")
    providers_used: List[str] = Field(default_factory=list)
    providers_failures: List[ProviderFailure] = Field(default_factory=list)


class SearchEngineResult(BaseModel):
    """최종 랭킹 결과 + 쿼리 에코 + 메타데이터"""
    query: SearchQuery
    results: List[SearchResult] = Field(default_factory=list)
    metadata: SearchMetadata


# ============================================================================
# 프로바이더 진단
# ============================================================================

class RateLimitStatus(BaseModel):
    """남은 요청 수 (권고용 조회)"""
    remaining: int
    reset_time: datetime


class ProviderMetadata(BaseModel):
    """운영자용 프로바이더 설명"""
    description: str
    capabilities: List[str] = Field(default_factory=list)
    coverage: ProviderCoverage
    cost_per_search: Optional[float] = None


class ProviderStats(BaseModel):
    """프로바이더 상태 요약"""
    is_enabled: bool
    is_available: bool
    rate_limit: RateLimitStatus
    metadata: ProviderMetadata


class SystemValidationReport(BaseModel):
    """시스템 설정 검증 리포트 (예외 대신 구조화된 결과)"""
    is_valid: bool
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


# ============================================================================
# API 요청/응답
# ============================================================================

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


class ImageSearchRequest(BaseModel):
    """이미지 검색 요청"""
    image_data: str = Field(..., min_length=1, description="Base64 이미지 (data URL 접두사 허용)")
    search_type: SearchType = SearchType.GENERAL_SEARCH
    user_plan: UserPlan = UserPlan.FREE
    security_level: SecurityLevel = SecurityLevel.STANDARD
    options: SearchOptions = Field(default_factory=SearchOptions)

    @field_validator("image_data")
    @classmethod
    def validate_image_data(cls, v: str) -> str:
        """Base64 형식 검증 (data URL 접두사는 제거)"""
        payload = _DATA_URL_PREFIX.sub("", v.strip())
        if not payload:
            raise ValueError("이미지 데이터가 비어 있습니다")
        try:
            base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("이미지 데이터가 올바른 base64가 아닙니다")
        return payload

    def decoded_image(self) -> bytes:
        """검증된 base64 → 바이트"""
        return base64.b64decode(self.image_data)


class ImageSearchResponse(BaseModel):
    """이미지 검색 응답"""
    status: str = Field(..., description="success | error")
    data: Optional[SearchEngineResult] = None
    message: str
    error_code: Optional[str] = None


class ConfigUpdateRequest(BaseModel):
    """엔진 설정 부분 갱신 (얕은 병합)"""
    providers: Optional[Dict[str, ProviderConfig]] = None
    aggregation: Optional[AggregationConfig] = None


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    timestamp: datetime
    version: str
    registered_engines: int = 0
