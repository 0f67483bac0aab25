"""Error taxonomy shared by the stream, message and call endpoints."""
from typing import Any, Dict, Optional

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_NOT_INITIALIZED = -32002


class GatewayError(Exception):
    """Base class. `code` is the JSON-RPC code, `status` the HTTP status."""

    code = INTERNAL_ERROR
    status = 500

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_rpc_error(self) -> Dict[str, Any]:
        error = {"code": self.code, "message": self.message}
        if self.data:
            error["data"] = self.data
        return error


class ServiceUnavailable(GatewayError):
    """Backend message handler is not initialized yet. Retry later."""

    code = SERVER_NOT_INITIALIZED
    status = 503

    def __init__(self, message: str = "Server not initialized"):
        super().__init__(message)


class AmbiguousOrMissingSession(GatewayError):
    code = INVALID_REQUEST
    status = 400


class SessionNotFound(GatewayError):
    code = INVALID_REQUEST
    status = 404

    def __init__(self, session_id: str):
        super().__init__("Session not found")
        self.session_id = session_id


class AttachFailed(GatewayError):
    """Stream could not be wired to the message handler."""


class HandlerError(GatewayError):
    """The message handler raised while processing a forwarded message."""

    def __init__(self, message: str, status: int = 500):
        super().__init__(message)
        self.status = status


class InvalidMessage(GatewayError):
    """Forwarded payload is not a JSON-RPC 2.0 message."""

    code = INVALID_REQUEST
    status = 400


class HandlerNotAttached(GatewayError):
    pass


class ParseError(GatewayError):
    code = PARSE_ERROR
    status = 400

    def __init__(self, message: str = "Parse error"):
        super().__init__(message)


class InvalidRequest(GatewayError):
    code = INVALID_REQUEST
    status = 400


class InvalidProtocolVersion(InvalidRequest):
    def __init__(self, version: Any):
        super().__init__(f"Invalid JSON-RPC version: {version!r}, expected '2.0'")


class MissingMethod(InvalidRequest):
    def __init__(self):
        super().__init__("Missing method")


class UnknownMethod(GatewayError):
    code = METHOD_NOT_FOUND
    status = 404

    def __init__(self, method: str):
        super().__init__(f"Unknown method: {method}")
        self.method = method


class InvalidParams(GatewayError):
    code = INVALID_PARAMS
    status = 400


class BackendOperationFailed(GatewayError):
    """A named backend operation raised. Wraps the underlying message."""

    def __init__(self, method: str, message: str):
        super().__init__(message)
        self.method = method
