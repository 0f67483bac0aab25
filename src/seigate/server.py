"""Server startup utilities"""

import logging
import sys
from typing import Optional

import uvicorn

from seigate.app import ENDPOINTS, create_app
from seigate.config import GatewayConfig, load_config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send all seigate logs to stderr."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, stream=sys.stderr, force=True)


def start_server_from_config(config_path: Optional[str] = None, host: str = None, port: int = None, log_level: str = "info"):
    """Start server from a YAML config file"""
    config = load_config(config_path)
    if host is not None:
        config.server.host = host
    if port is not None:
        config.server.port = port
    start_server(config, log_level=log_level)


def start_server(config: GatewayConfig, log_level: str = "info"):
    """Run the gateway under uvicorn until interrupted"""
    configure_logging(log_level)
    app = create_app(config)

    host = config.server.host
    port = config.server.port
    base = f"http://{host}:{port}"

    print("=" * 60, file=sys.stderr)
    print(config.server.name, file=sys.stderr)
    print(f"Server: {base}", file=sys.stderr)
    print(f"SSE endpoint: {base}{ENDPOINTS['sse']}", file=sys.stderr)
    print(f"Messages endpoint: {base}{ENDPOINTS['messages']} (sessionId optional if only one connection)", file=sys.stderr)
    print(f"JSON-RPC endpoint: POST {base}{ENDPOINTS['mcp']}", file=sys.stderr)
    print(f"Health check: {base}{ENDPOINTS['health']}", file=sys.stderr)
    print("=" * 60, file=sys.stderr)

    # lifespan="on": a failed backend start aborts the process
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower(), lifespan="on")
