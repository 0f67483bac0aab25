"""
HTTP surface: persistent event stream, addressed messages, stateless calls,
health and info endpoints.
"""
import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, StreamingResponse
from starlette.routing import Route

from seigate.backend import Backend, EvmRpcClient, Network, NetworkRegistry, SeiBackend
from seigate.codec import failure
from seigate.config import GatewayConfig, load_config
from seigate.dispatcher import MessageDispatcher
from seigate.errors import AttachFailed, GatewayError, ParseError, ServiceUnavailable
from seigate.handler import MessageHandler
from seigate.registry import SessionRegistry
from seigate.router import RequestRouter
from seigate.session import SessionManager, StreamSession

logger = logging.getLogger(__name__)

SESSION_HEADER = "x-session-id"

ENDPOINTS = {
    "sse": "/sse",
    "messages": "/messages",
    "mcp": "/api/mcp",
    "health": "/health",
}

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def build_backend(config: GatewayConfig) -> SeiBackend:
    networks = NetworkRegistry(
        Network(name=name, **net.model_dump()) for name, net in config.networks.items()
    )
    return SeiBackend(
        networks,
        default_network=config.backend.default_network,
        cosmos_rest_urls=config.backend.cosmos_rest_urls,
        rpc=EvmRpcClient(timeout=config.backend.timeout),
    )


class Gateway:
    """
    Composition root. Owns the session registry and hands it to every
    component that needs it. `handler` stays None until `start` completes.
    """

    def __init__(self, config: GatewayConfig, backend: Optional[Backend] = None):
        self.config = config
        self.backend = backend
        self.handler: Optional[MessageHandler] = None
        self.registry = SessionRegistry()
        self.sessions = SessionManager(self.registry, self.current_handler, ENDPOINTS["messages"])
        self.dispatcher = MessageDispatcher(self.registry, self.current_handler)
        self.router = RequestRouter(self.current_handler)
        self.started_at = time.monotonic()

    def current_handler(self) -> Optional[MessageHandler]:
        return self.handler

    @property
    def initialized(self) -> bool:
        return self.handler is not None

    async def start(self) -> None:
        if self.backend is None:
            self.backend = build_backend(self.config)
        await self.backend.start()
        self.handler = MessageHandler(
            self.backend, name=self.config.server.name, version=self.config.server.version
        )

    async def stop(self) -> None:
        logger.info("Shutting down server...")
        self.sessions.close_all()
        self.handler = None
        if self.backend is not None:
            await self.backend.close()


class EventSourceResponse(StreamingResponse):
    """Streams a session's frames and closes the session when the response ends."""

    def __init__(self, session: StreamSession, keepalive: Optional[float] = None):
        super().__init__(
            session.stream.frames(keepalive or None),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )
        self.session = session

    async def __call__(self, scope, receive, send):
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.session.close()


def _session_id(request: Request) -> Optional[str]:
    return request.query_params.get("sessionId") or request.headers.get(SESSION_HEADER) or None


async def sse(request: Request):
    gateway: Gateway = request.app.state.gateway
    client = request.client.host if request.client else "unknown"
    logger.info("Received SSE connection request from %s", client)

    try:
        session = await gateway.sessions.open(_session_id(request))
    except ServiceUnavailable:
        logger.warning("Server not initialized yet, rejecting SSE connection")
        return PlainTextResponse("Server not initialized", status_code=503)
    except AttachFailed as e:
        return PlainTextResponse(f"Internal server error: {e.message}", status_code=500)

    return EventSourceResponse(session, keepalive=gateway.config.server.keepalive)


async def messages(request: Request):
    gateway: Gateway = request.app.state.gateway
    if not gateway.initialized:
        return JSONResponse({"error": "Server not initialized"}, status_code=503)

    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse({"error": "Invalid JSON body"}, status_code=400)

    try:
        session_id = await gateway.dispatcher.dispatch(_session_id(request), payload)
    except GatewayError as e:
        body = {"error": e.message}
        if e.data:
            body.update(e.data)
        return JSONResponse(body, status_code=e.status)
    return JSONResponse({"status": "accepted", "sessionId": session_id}, status_code=202)


async def call(request: Request):
    gateway: Gateway = request.app.state.gateway
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(failure(None, ParseError().to_rpc_error()))
    logger.debug("Received JSON-RPC request to %s: %s", ENDPOINTS["mcp"], body)
    return JSONResponse(await gateway.router.handle(body))


async def health(request: Request):
    gateway: Gateway = request.app.state.gateway
    server = gateway.config.server
    return JSONResponse({
        "status": "ok",
        "server": "initialized" if gateway.initialized else "initializing",
        "serverInitialized": gateway.initialized,
        "name": server.name,
        "version": server.version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - gateway.started_at, 3),
        "endpoints": ENDPOINTS,
        "activeConnections": len(gateway.registry),
        "connectedSessionIds": gateway.registry.ids(),
    })


async def root(request: Request):
    gateway: Gateway = request.app.state.gateway
    return JSONResponse({
        "name": gateway.config.server.name,
        "version": gateway.config.server.version,
        "endpoints": ENDPOINTS,
        "status": "ready" if gateway.initialized else "initializing",
        "activeConnections": len(gateway.registry),
    })


@asynccontextmanager
async def lifespan(app: Starlette):
    gateway: Gateway = app.state.gateway
    # a failure here aborts startup
    await gateway.start()
    logger.info("MCP Server initialized successfully")
    try:
        yield
    finally:
        await gateway.stop()


def create_app(config: Optional[GatewayConfig] = None, backend: Optional[Backend] = None) -> Starlette:
    config = config or load_config()
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=config.cors.allow_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Session-ID"],
            expose_headers=["Content-Type", "Access-Control-Allow-Origin"],
            allow_credentials=True,
        )
    ]
    routes = [
        Route("/", root, methods=["GET"]),
        Route(ENDPOINTS["health"], health, methods=["GET"]),
        Route(ENDPOINTS["sse"], sse, methods=["GET"]),
        Route(ENDPOINTS["messages"], messages, methods=["POST"]),
        Route(ENDPOINTS["mcp"], call, methods=["POST"]),
    ]
    app = Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
    app.state.gateway = Gateway(config, backend)
    return app
