"""로깅 설정 (Security Enhanced)"""
import logging
import re
import sys
import os
from src.core.config import settings


# Production 환경에서는 DEBUG 로그 비활성화
IS_PRODUCTION = os.getenv("ENVIRONMENT", "development") == "production"


def setup_logging() -> logging.Logger:
    """로거 초기화 및 설정"""

    logger = logging.getLogger("image_search")

    log_level = settings.log_level.upper()
    if IS_PRODUCTION and log_level == "DEBUG":
        log_level = "INFO"

    logger.setLevel(getattr(logging, log_level))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level))

    # 포맷터 (민감 정보 제외)
    if IS_PRODUCTION:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(console_handler)

    return logger


logger = setup_logging()


def mask_secret(secret: str, visible: int = 4) -> str:
    """API 키 등 비밀값을 앞 몇 글자만 남기고 마스킹

    Args:
        secret: 원본 값
        visible: 노출할 앞 글자 수

    Returns:
        마스킹된 문자열 (예: "AIza***")
    """
    if not secret:
        return "[empty]"
    if len(secret) <= visible:
        return "***"
    return f"{secret[:visible]}***"


# 쿼리스트링/폼 형태의 비밀값 (Google Vision ?key=, TinEye api_key/api_sig 등)
_SECRET_PARAM_RE = re.compile(
    r"(?i)\b(key|api_key|private_key|api_sig|token|password|secret)=([^&\s'\"]+)"
)


def sanitize_for_log(value: str, max_length: int = 200) -> str:
    """로그에 남기기 전 비밀값 마스킹 및 길이 제한

    프로바이더 오류 메시지에는 요청 URL이 그대로 들어가는 경우가 많아
    (httpx 예외 등) 파라미터 값만 가리고 나머지 문맥은 유지합니다.

    Args:
        value: 로깅할 문자열
        max_length: 최대 길이

    Returns:
        마스킹된 문자열
    """
    if not value:
        return "[empty]"

    result = _SECRET_PARAM_RE.sub(lambda m: f"{m.group(1)}=***", value)

    if len(result) > max_length:
        result = result[:max_length] + "..."

    return result
