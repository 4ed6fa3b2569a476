"""Upstream HTTP services — named httpx clients for downstream APIs.

Usage:
    payment = HTTPService("payment", "http://localhost:9000")
    resp = await payment.get("user")
    print(resp.text)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from showcase.exceptions import UpstreamServiceError

_logger = logging.getLogger(__name__)


class HTTPService:
    """A named downstream service reached over HTTP."""

    def __init__(
        self,
        name: str,
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.name = name
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> httpx.Response:
        return await self.request("POST", path, json=json)

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request; transport failures and 5xx become UpstreamServiceError."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                resp = await client.request(method, url, **kwargs)
            except httpx.HTTPError as e:
                _logger.warning("%s %s on service '%s' failed: %s", method, url, self.name, e)
                raise UpstreamServiceError(f"Service '{self.name}' unreachable: {e}") from e

        if resp.status_code >= 500:
            raise UpstreamServiceError(
                f"Service '{self.name}' returned {resp.status_code} for {method} {path}"
            )
        return resp

    async def health_check(self) -> bool:
        try:
            resp = await self.get(".well-known/alive")
        except UpstreamServiceError:
            return False
        return resp.is_success

    def __repr__(self) -> str:
        return f"HTTPService(name={self.name!r}, base_url={self.base_url!r})"
