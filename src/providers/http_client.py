"""공유 HTTP 클라이언트 (httpx)

- 프로바이더마다 요청별로 클라이언트를 만들면 TLS/커넥션 오버헤드가 커지므로
  프로세스(또는 팩토리) 단위로 AsyncClient를 재사용합니다.
- 타임아웃/커넥션 수/User-Agent는 주입된 Settings를 따릅니다.
- 앱 종료 시 close()로 정리합니다.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Dict

import httpx

from src.core.config import Settings, settings as default_settings
from src.core.logging import logger


class SharedHttpClient:
    def __init__(
        self,
        cfg: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = cfg or default_settings
        self._lock = asyncio.Lock()
        self._client: Optional[httpx.AsyncClient] = None
        self._transport = transport

    async def get_client(self) -> httpx.AsyncClient:
        async with self._lock:
            if self._client is not None and not self._client.is_closed:
                return self._client
            self._client = httpx.AsyncClient(
                headers=self.default_headers(),
                timeout=httpx.Timeout(self.settings.provider_http_timeout_s),
                limits=httpx.Limits(max_connections=self.settings.provider_http_max_connections),
                follow_redirects=True,
                transport=self._transport,
            )
            return self._client

    def default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.settings.provider_user_agent,
            "Accept": "application/json",
        }

    @property
    def is_open(self) -> bool:
        return self._client is not None and not self._client.is_closed

    async def close(self) -> None:
        async with self._lock:
            if self._client is None:
                return
            try:
                await self._client.aclose()
            except Exception as e:
                logger.info(f"[HTTP_CLIENT] close failed: {type(e).__name__}: {e}")
            self._client = None


_shared_http_client = SharedHttpClient()


def get_shared_http_client() -> SharedHttpClient:
    return _shared_http_client


async def shutdown_shared_http_client() -> None:
    await _shared_http_client.close()
