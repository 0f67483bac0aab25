"""Async EVM JSON-RPC client over httpx."""
import itertools
import logging
from typing import Any, List, Optional

import httpx

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The upstream node or REST API returned an error."""

    def __init__(self, message: str, code: Optional[int] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class EvmRpcClient:
    """
    Thin JSON-RPC 2.0 client. One shared `httpx.AsyncClient` serves every
    network; the URL is chosen per call.
    """

    def __init__(self, timeout: float = 15.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._ids = itertools.count(1)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def call(self, url: str, method: str, params: Optional[List[Any]] = None) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        try:
            response = await self.client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise UpstreamError(f"{method} request to {url} failed: {e}") from e

        if response.status_code != 200:
            raise UpstreamError(
                f"HTTP {response.status_code}: {response.reason_phrase}", status_code=response.status_code
            )
        body = response.json()
        if body.get("error"):
            error = body["error"]
            raise UpstreamError(error.get("message", "RPC error"), code=error.get("code"))
        return body.get("result")

    async def get_json(self, url: str) -> Any:
        """GET a REST resource and return its JSON body."""
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise UpstreamError(f"GET {url} failed: {e}") from e
        if response.status_code != 200:
            raise UpstreamError(
                f"HTTP {response.status_code}: {response.reason_phrase}", status_code=response.status_code
            )
        return response.json()
