"""
Stream sessions: lifecycle of one persistent client connection.

CONNECTING -> ATTACHING -> OPEN -> CLOSED, or FAILED when the stream cannot be
attached to the message handler.
"""
import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from seigate.errors import AttachFailed, ServiceUnavailable
from seigate.ids import generate_session_id
from seigate.registry import SessionEntry, SessionRegistry
from seigate.stream import OutputStream

if TYPE_CHECKING:
    from seigate.handler import MessageHandler

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/messages"


class SessionState(Enum):
    CONNECTING = "connecting"
    ATTACHING = "attaching"
    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


class StreamSession:
    """One persistent connection and its registry membership."""

    def __init__(self, manager: "SessionManager", entry: SessionEntry):
        self.manager = manager
        self.entry = entry
        self.state = SessionState.CONNECTING

    @property
    def id(self) -> str:
        return self.entry.id

    @property
    def stream(self) -> OutputStream:
        return self.entry.stream

    def close(self) -> None:
        self.manager.close(self)

    def __repr__(self):
        return f"StreamSession(id={self.id!r}, state={self.state.value})"


class SessionManager:
    """
    Opens and closes stream sessions against a registry.

    `get_handler` returns the backend message handler, or None while the
    server is still initializing.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        get_handler: Callable[[], Optional["MessageHandler"]],
        messages_path: str = MESSAGES_PATH,
    ):
        self.registry = registry
        self.get_handler = get_handler
        self.messages_path = messages_path

    async def open(self, supplied_id: Optional[str] = None) -> StreamSession:
        handler = self.get_handler()
        if handler is None:
            raise ServiceUnavailable()

        if supplied_id:
            session_id = supplied_id
            logger.info("Using client-provided session ID: %s", session_id)
        else:
            session_id = generate_session_id()
            logger.info("No sessionId provided, generated %s", session_id)

        entry = SessionEntry(id=session_id, stream=OutputStream(session_id))
        session = StreamSession(self, entry)
        session.state = SessionState.ATTACHING
        if session_id in self.registry:
            logger.warning("Session %s already open, replacing it", session_id)
        self.registry.insert(session_id, entry)

        try:
            await handler.attach(entry.stream)
        except Exception as e:
            logger.error("Error attaching session %s: %s", session_id, e)
            self.registry.discard(session_id, entry)
            entry.stream.close()
            session.state = SessionState.FAILED
            raise AttachFailed(f"Could not attach session {session_id}: {e}") from e

        if entry.stream.closed or self.registry.lookup(session_id) is not entry:
            # closed or replaced while attaching
            self.registry.discard(session_id, entry)
            entry.stream.close()
            handler.detach(entry.stream)
            session.state = SessionState.FAILED
            raise AttachFailed(f"Session {session_id} closed during attach")

        entry.stream.send({"type": "session_init", "sessionId": session_id})
        entry.stream.send(f"{self.messages_path}?sessionId={session_id}", event="endpoint")
        session.state = SessionState.OPEN
        logger.info("SSE connection established for session: %s", session_id)
        return session

    def close(self, session: StreamSession) -> None:
        if session.state in (SessionState.CLOSED, SessionState.FAILED):
            return
        session.state = SessionState.CLOSED
        self.registry.discard(session.id, session.entry)
        session.stream.close()
        handler = self.get_handler()
        if handler is not None:
            handler.detach(session.stream)
        logger.info("SSE connection closed for session: %s", session.id)

    def close_all(self) -> None:
        """Close every registered stream. Used on shutdown."""
        for entry in self.registry.entries():
            logger.info("Closing connection for session: %s", entry.id)
            entry.stream.close()
            self.registry.discard(entry.id, entry)
