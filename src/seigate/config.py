"""Centralized configuration for seigate"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path(__file__).parent / "configs" / "default.yaml"


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3004
    name: str = "SEI MCP Server"
    version: str = "1.0.0"
    # seconds between SSE keepalive comments, 0 disables
    keepalive: float = 15


class BackendConfig(BaseModel):
    default_network: str = "sei"
    timeout: float = 15
    cosmos_rest_urls: List[str] = Field(default_factory=list)


class NetworkConfig(BaseModel):
    chain_id: int
    rpc_url: str
    symbol: str = "SEI"
    decimals: int = 18


class CorsConfig(BaseModel):
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])


class GatewayConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    networks: Dict[str, NetworkConfig] = Field(default_factory=dict)
    cors: CorsConfig = Field(default_factory=CorsConfig)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict) and key != "networks":
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Union[str, Path]] = None) -> GatewayConfig:
    """
    Load the packaged defaults, overlaid with the YAML file at `path`.

    A `networks` section in the user file replaces the default network list.
    """
    data = yaml.safe_load(DEFAULT_CONFIG_PATH.read_text()) or {}
    if path is not None:
        user = yaml.safe_load(Path(path).read_text()) or {}
        data = _merge(data, user)
    return GatewayConfig.model_validate(data)
