"""커스텀 예외 정의 (Structured Exception Hierarchy)"""
from typing import Any, Optional


# 기본 예외 클래스
class ImageSearchException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# 프로바이더 관련 예외
class ProviderException(ImageSearchException):
    """프로바이더 관련 예외의 기본 클래스"""
    def __init__(self, provider: str, message: str, error_code: str = "PROVIDER_ERROR", details: Optional[dict[str, Any]] = None):
        self.provider = provider
        super().__init__(message, error_code or "PROVIDER_ERROR", details or {"provider": provider})


class ProviderTimeoutException(ProviderException):
    """프로바이더 검색 타임아웃

    엔진의 per-provider 타임아웃을 넘긴 경우. 메시지는 항상 "Search timeout"으로
    시작하여 providers_failures에서 식별 가능해야 합니다.
    """
    def __init__(self, provider: str, timeout_ms: int, details: Optional[dict[str, Any]] = None):
        message = f"Search timeout after {timeout_ms}ms"
        self.timeout_ms = timeout_ms
        super().__init__(provider, message, "PROVIDER_TIMEOUT",
                         details or {"provider": provider, "timeout_ms": timeout_ms})


class ProviderRequestException(ProviderException):
    """원격 API 호출 실패 (HTTP 오류, 잘못된 응답 등)"""
    def __init__(self, provider: str, reason: str, status_code: Optional[int] = None, details: Optional[dict[str, Any]] = None):
        message = f"{provider} request failed: {reason}"
        self.status_code = status_code
        super().__init__(provider, message, "PROVIDER_REQUEST_FAILED",
                         details or {"provider": provider, "reason": reason, "status_code": status_code})


class ProviderAuthException(ProviderException):
    """자격 증명 누락/거부"""
    def __init__(self, provider: str, details: Optional[dict[str, Any]] = None):
        message = f"{provider} credentials missing or rejected"
        super().__init__(provider, message, "PROVIDER_AUTH_FAILED", details)


# 설정 관련 예외
class ConfigurationException(ImageSearchException):
    """설정 관련 예외"""
    def __init__(self, message: str, error_code: str = "CONFIG_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CONFIG_ERROR", details)


class UnknownPolicyException(ConfigurationException):
    """알 수 없는 plan / search type / security level"""
    def __init__(self, axis: str, value: Any, details: Optional[dict[str, Any]] = None):
        message = f"Unknown {axis}: {value}"
        super().__init__(message, "UNKNOWN_POLICY", details or {"axis": axis, "value": str(value)})


# 유효성 검증 관련 예외
class ValidationException(ImageSearchException):
    """유효성 검증 예외"""
    def __init__(self, field: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Validation failed for '{field}': {reason}"
        super().__init__(message, "VALIDATION_ERROR",
                         details or {"field": field, "reason": reason})


class InvalidQueryException(ValidationException):
    """유효하지 않은 검색 쿼리"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__("query", reason, details)


class InvalidImageException(ValidationException):
    """디코딩할 수 없는 이미지 페이로드"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__("image_data", reason, details)
