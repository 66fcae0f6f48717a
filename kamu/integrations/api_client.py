"""Shared aiohttp transport for the backend REST APIs."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import aiohttp

from kamu.core.config import ApiConfig
from kamu.core.exceptions import ApiError

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str | None]


def _error_message(body: Any, status: int) -> str:
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if isinstance(body, str) and body.strip():
        return body.strip()[:200]
    return f"Request failed with HTTP {status}"


class ApiClient:
    """JSON-over-HTTP client with bearer auth.

    Example:
    ```python
    client = ApiClient(settings.api, token_provider=lambda: session.token)
    order = await client.get(f"{settings.api.endpoint('orders')}/42")
    await client.close()
    ```
    """

    def __init__(
        self,
        config: ApiConfig,
        *,
        token_provider: TokenProvider | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self.config = config
        self._token_provider = token_provider
        self._session = session
        self._owns_session = session is None

    def set_token_provider(self, provider: TokenProvider | None) -> None:
        self._token_provider = provider

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self._token_provider() if self._token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if extra:
            headers.update(extra)
        return headers

    def url(self, path: str) -> str:
        return f"{self.config.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        session = await self._get_session()
        url = self.url(path)
        try:
            async with session.request(
                method,
                url,
                json=json,
                params=params,
                headers=self._headers(headers),
            ) as response:
                if response.content_type == "application/json":
                    body = await response.json()
                else:
                    body = await response.text()

                if response.status >= 400:
                    message = _error_message(body, response.status)
                    logger.warning("%s %s -> HTTP %s: %s", method, path, response.status, message)
                    raise ApiError(message, status=response.status, path=path)
                return body
        except asyncio.TimeoutError as exc:
            logger.warning("%s %s timed out after %ss", method, path, self.config.timeout)
            raise ApiError("Request timed out", path=path) from exc
        except aiohttp.ClientError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(f"Network error: {exc}", path=path) from exc

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PATCH", path, **kwargs)
