"""Routes addressed messages to the stream session they belong to."""
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from seigate.errors import GatewayError, HandlerError, ServiceUnavailable, SessionNotFound
from seigate.registry import SessionRegistry

if TYPE_CHECKING:
    from seigate.handler import MessageHandler

logger = logging.getLogger(__name__)


class MessageDispatcher:
    """
    Resolves an optional session id to a live stream and forwards the payload
    to that stream's handler. Handler failures never unregister the session.
    """

    def __init__(self, registry: SessionRegistry, get_handler: Callable[[], Optional["MessageHandler"]]):
        self.registry = registry
        self.get_handler = get_handler

    async def dispatch(self, supplied_id: Optional[str], payload: Any) -> str:
        """Forward `payload`; returns the session id it was delivered to."""
        if self.get_handler() is None:
            raise ServiceUnavailable()

        session_id = self.registry.resolve_ambiguous(supplied_id)
        if not supplied_id:
            logger.info("No sessionId provided, using the only active session: %s", session_id)

        entry = self.registry.lookup(session_id)
        if entry is None:
            logger.warning("Session not found: %s", session_id)
            raise SessionNotFound(session_id)

        logger.debug("Handling message for session %s", session_id)
        try:
            await entry.stream.deliver(payload)
        except HandlerError:
            raise
        except GatewayError as e:
            raise HandlerError(e.message, status=e.status) from e
        except Exception as e:
            logger.exception("Error handling message for session %s", session_id)
            raise HandlerError(f"Internal server error: {e}") from e
        return session_id
