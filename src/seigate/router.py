"""
Stateless direct-call endpoint logic.

Validates a call envelope, runs the named backend operation and always
produces a JSON-RPC response envelope, success or failure.
"""
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from pydantic import ValidationError

from seigate.codec import JSONRPC_VERSION, CallEnvelope, failure, success
from seigate.errors import (
    GatewayError,
    INTERNAL_ERROR,
    InvalidProtocolVersion,
    InvalidRequest,
    MissingMethod,
    ServiceUnavailable,
)

if TYPE_CHECKING:
    from seigate.handler import MessageHandler

logger = logging.getLogger(__name__)


class RequestRouter:
    def __init__(self, get_handler: Callable[[], Optional["MessageHandler"]]):
        self.get_handler = get_handler

    async def handle(self, body: Any) -> Dict[str, Any]:
        request_id = body.get("id") if isinstance(body, dict) else None
        try:
            return success(request_id, await self._call(body))
        except GatewayError as e:
            logger.info("Call %s failed: %s", _method_of(body), e.message)
            return failure(request_id, e.to_rpc_error())
        except Exception as e:
            logger.exception("Unexpected error processing %s", _method_of(body))
            return failure(request_id, {"code": INTERNAL_ERROR, "message": f"Internal error: {e}"})

    async def _call(self, body: Any) -> Any:
        handler = self.get_handler()
        if handler is None:
            raise ServiceUnavailable()
        if not isinstance(body, dict):
            raise InvalidRequest("Request must be a JSON object")
        try:
            envelope = CallEnvelope.model_validate(body)
        except ValidationError as e:
            raise InvalidRequest(f"Invalid request: {e.errors(include_url=False)}")

        if envelope.jsonrpc != JSONRPC_VERSION:
            raise InvalidProtocolVersion(envelope.jsonrpc)
        if not isinstance(envelope.method, str) or not envelope.method:
            raise MissingMethod()

        logger.info("Processing JSON-RPC method: %s", envelope.method)
        result = await handler.invoke(envelope.method, envelope.params)
        logger.debug("Method %s completed successfully", envelope.method)
        return result


def _method_of(body: Any) -> Any:
    return body.get("method") if isinstance(body, dict) else None
