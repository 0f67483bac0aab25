"""
Message handler attached to every stream session.

Speaks JSON-RPC 2.0 in the MCP style: requests arrive through the message
endpoint and responses are written back onto the session's stream.
"""
import functools
import logging
from typing import Any, Dict, Optional

from seigate import operations
from seigate.backend.base import Backend
from seigate.codec import JSONRPC_VERSION, dumps, failure, success, to_jsonable
from seigate.errors import (
    BackendOperationFailed,
    GatewayError,
    InvalidMessage,
    InvalidParams,
    METHOD_NOT_FOUND,
    UnknownMethod,
)
from seigate.stream import OutputStream

logger = logging.getLogger(__name__)

MCP_PROTOCOL_VERSION = "2024-11-05"


class MessageHandler:
    """
    Routes JSON-RPC messages from a session to the backend operations and
    writes each response to that session's stream.
    """

    def __init__(self, backend: Backend, name: str = "SEI MCP Server", version: str = "1.0.0"):
        self.backend = backend
        self.name = name
        self.version = version
        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    async def attach(self, stream: OutputStream) -> None:
        if stream.closed:
            raise RuntimeError(f"Stream for session {stream.session_id} is closed")
        if stream.on_message is not None:
            raise RuntimeError(f"Session {stream.session_id} is already attached")
        stream.on_message = functools.partial(self.handle, stream)

    def detach(self, stream: OutputStream) -> None:
        stream.on_message = None

    async def handle(self, stream: OutputStream, message: Any) -> None:
        """Process one inbound message. Raises InvalidMessage on malformed input."""
        if not isinstance(message, dict):
            raise InvalidMessage("Message must be a JSON object")
        if message.get("jsonrpc") != JSONRPC_VERSION:
            raise InvalidMessage(f"Invalid JSON-RPC version: {message.get('jsonrpc')!r}")

        method = message.get("method")
        if method is None and ("result" in message or "error" in message):
            # response to a server-initiated request; nothing is pending
            logger.debug("Ignoring response message on session %s", stream.session_id)
            return
        if not isinstance(method, str) or not method:
            raise InvalidMessage("Missing method")

        if "id" not in message:
            logger.debug("Notification %s on session %s", method, stream.session_id)
            return

        request_id = message["id"]
        params = message.get("params") or {}
        if not isinstance(params, dict):
            raise InvalidMessage("params must be an object")
        fn = self._methods.get(method)
        if fn is None:
            response = failure(request_id, {"code": METHOD_NOT_FOUND, "message": f"Method not found: {method}"})
        else:
            try:
                response = success(request_id, await fn(params))
            except GatewayError as e:
                response = failure(request_id, e.to_rpc_error())

        if not stream.send(dumps(response), event="message"):
            logger.info("Session %s closed before response to %s was written", stream.session_id, method)

    async def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "protocolVersion": params.get("protocolVersion") or MCP_PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": self.name, "version": self.version},
        }

    async def _ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "tools": [
                {"name": op.name, "description": op.description, "inputSchema": op.input_schema()}
                for op in operations.list_operations()
            ]
        }

    async def _call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not name:
            raise InvalidParams("tools/call requires a tool name")
        try:
            result = await operations.invoke(self.backend, name, params.get("arguments"))
        except UnknownMethod:
            raise InvalidParams(f"Tool {name} not found")
        except (BackendOperationFailed, InvalidParams) as e:
            return {"content": [{"type": "text", "text": f"Error: {e.message}"}], "isError": True}
        return {"content": [{"type": "text", "text": dumps(result)}], "isError": False}

    async def invoke(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Run a backend operation directly. Used by the stateless call path."""
        return to_jsonable(await operations.invoke(self.backend, method, params))
