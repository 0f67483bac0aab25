"""Blocking client for the stateless call endpoint, used by the CLI."""
import itertools
from typing import Any, Dict, Optional

import requests

DEFAULT_URL = "http://localhost:3004"


class GatewayClient:
    def __init__(self, base_url: str = DEFAULT_URL, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """POST a call envelope and return the response envelope."""
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or {}}
        response = requests.post(f"{self.base_url}/api/mcp", json=payload, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def health(self) -> Dict[str, Any]:
        response = requests.get(f"{self.base_url}/health", timeout=self.timeout)
        response.raise_for_status()
        return response.json()
