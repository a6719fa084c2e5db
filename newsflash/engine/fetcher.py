"""Asynchronous HTTP fetching with per-request timeouts."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable
from urllib.parse import quote

import httpx
import structlog

from ..config import GlobalConfig
from ..errors import FetchError, FetchTimeoutError, HttpStatusError

FetchText = Callable[[str, float], Awaitable[str]]
"""Injected transport: ``fetch_text(url, timeout_seconds) -> body``."""


class Fetcher:
    """Retrieve page bodies, optionally through a URL-prefix proxy."""

    def __init__(
        self,
        global_config: GlobalConfig,
        client: httpx.AsyncClient | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.global_config = global_config
        self.logger = logger or structlog.get_logger("newsflash.fetcher")
        headers = {"User-Agent": global_config.user_agent} if global_config.user_agent else None
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=global_config.fetch_timeout,
            headers=headers,
        )

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def proxied(self, url: str) -> str:
        if not self.global_config.proxy_base:
            return url
        return f"{self.global_config.proxy_base}{quote(url, safe='')}"

    async def fetch_text(self, url: str, timeout: float | None = None) -> str:
        """Return the response body or raise a :class:`FetchError`.

        The timeout bounds the whole request; on expiry the in-flight request
        is cancelled and :class:`FetchTimeoutError` is raised.
        """
        timeout = timeout or self.global_config.fetch_timeout
        target = self.proxied(url)
        try:
            response = await asyncio.wait_for(self._client.get(target, timeout=timeout), timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise FetchTimeoutError(url, timeout) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"{type(exc).__name__} for {url}: {exc}") from exc
        if self._is_failure(response):
            raise HttpStatusError(response.status_code, url)
        return response.text

    @staticmethod
    def _is_failure(response: httpx.Response) -> bool:
        return not 200 <= response.status_code < 300


__all__ = ["FetchText", "Fetcher"]
