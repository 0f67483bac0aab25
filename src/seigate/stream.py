"""
OutputStream: the server-push half of a persistent session, rendered as
Server-Sent Events.
"""
import asyncio
import json
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from seigate.errors import HandlerNotAttached

MessageCallback = Callable[[Any], Awaitable[None]]

_CLOSE = object()


def encode_event(data: Any, event: Optional[str] = None) -> str:
    """Render one SSE frame. Non-string data is JSON encoded."""
    if not isinstance(data, str):
        data = json.dumps(data, separators=(",", ":"))
    lines = []
    if event:
        lines.append(f"event: {event}")
    for line in data.splitlines() or [""]:
        lines.append(f"data: {line}")
    return "\n".join(lines) + "\n\n"


class OutputStream:
    """
    Queue-backed event stream for one client.

    Frames leave in the order `send` was called. Once closed, sends are
    dropped so late results for a departed client are discarded.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.on_message: Optional[MessageCallback] = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, data: Any, event: Optional[str] = None) -> bool:
        if self._closed:
            return False
        self._queue.put_nowait(encode_event(data, event))
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSE)

    def pending(self) -> list:
        """Drain frames queued so far without waiting."""
        frames = []
        while not self._queue.empty():
            frame = self._queue.get_nowait()
            if frame is _CLOSE:
                # keep the close marker for the consumer
                self._queue.put_nowait(_CLOSE)
                break
            frames.append(frame)
        return frames

    async def deliver(self, payload: Any) -> None:
        """Hand an inbound message to the attached handler."""
        if self.on_message is None:
            raise HandlerNotAttached(f"No handler attached to session {self.session_id}")
        await self.on_message(payload)

    async def frames(self, keepalive: Optional[float] = None) -> AsyncIterator[str]:
        """Yield encoded frames until closed. Idle periods yield SSE comments."""
        while True:
            try:
                if keepalive:
                    frame = await asyncio.wait_for(self._queue.get(), keepalive)
                else:
                    frame = await self._queue.get()
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            if frame is _CLOSE:
                return
            yield frame
