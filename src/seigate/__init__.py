"""seigate: session gateway multiplexing event streams and JSON-RPC calls."""

from seigate.app import Gateway, create_app
from seigate.codec import BigInt, to_jsonable
from seigate.config import GatewayConfig, load_config
from seigate.dispatcher import MessageDispatcher
from seigate.handler import MessageHandler
from seigate.ids import generate_session_id
from seigate.registry import SessionEntry, SessionRegistry
from seigate.router import RequestRouter
from seigate.session import SessionManager, SessionState, StreamSession
from seigate.stream import OutputStream

__version__ = "1.0.0"

__all__ = [
    "Gateway",
    "create_app",
    "BigInt",
    "to_jsonable",
    "GatewayConfig",
    "load_config",
    "MessageDispatcher",
    "MessageHandler",
    "generate_session_id",
    "SessionEntry",
    "SessionRegistry",
    "RequestRouter",
    "SessionManager",
    "SessionState",
    "StreamSession",
    "OutputStream",
]
