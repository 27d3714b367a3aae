"""
REST HTTP client for the Chat Buy Sell backend.

Non-2xx responses raise BackendError with the original status and payload;
network failures raise ConnectionError.
"""

import logging
from typing import Any, Optional

import httpx

from chatbuysell.errors import BackendError, ConnectionError

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT_S = 30.0

logger = logging.getLogger(__name__)


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/api",
            headers={"User-Agent": "chatbuysell-client/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, path: str) -> str:
        """Absolute URL of an API path, for out-of-band redirects."""
        return f"{self._base_url}/api{path}"

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return resp.text

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        logger.debug("%s %s", method, path)
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise ConnectionError(f"{method} {path} failed: {e}") from e
        if resp.status_code >= 400:
            payload = self._decode(resp)
            logger.error("%s %s returned HTTP %s", method, path, resp.status_code)
            raise BackendError(resp.status_code, payload)
        return self._decode(resp)

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("POST", path, json=body)

    async def close(self) -> None:
        await self._client.aclose()
