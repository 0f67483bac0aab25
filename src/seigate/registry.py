"""
Session registry: maps session identifiers to live output streams.

Every mutation is a single dict operation with no await in between, so
interleaved coroutines on the event loop never see a partial update.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from seigate.errors import AmbiguousOrMissingSession
from seigate.stream import OutputStream


@dataclass(eq=False)
class SessionEntry:
    """One live persistent connection."""
    id: str
    stream: OutputStream


class SessionRegistry:
    """Registry of open persistent streams, keyed by session id."""

    def __init__(self):
        self._entries: Dict[str, SessionEntry] = {}

    def insert(self, session_id: str, entry: SessionEntry) -> None:
        """Register an entry. An existing entry under the same id is replaced."""
        self._entries[session_id] = entry

    def lookup(self, session_id: str) -> Optional[SessionEntry]:
        return self._entries.get(session_id)

    def remove(self, session_id: str) -> None:
        self._entries.pop(session_id, None)

    def discard(self, session_id: str, entry: SessionEntry) -> bool:
        """Remove `session_id` only if it still maps to `entry`."""
        if self._entries.get(session_id) is entry:
            del self._entries[session_id]
            return True
        return False

    def resolve_ambiguous(self, supplied_id: Optional[str]) -> str:
        """
        Pick the session a message is addressed to.

        A supplied id is returned as-is; the caller checks it exists. Without
        one, the only open session is used when exactly one exists.
        """
        if supplied_id:
            return supplied_id
        ids = list(self._entries)
        if len(ids) == 1:
            return ids[0]
        if not ids:
            raise AmbiguousOrMissingSession(
                "No session ID provided and no active sessions. Connect to /sse first.",
                data={"activeConnections": 0},
            )
        raise AmbiguousOrMissingSession(
            "No session ID provided. Please provide a sessionId query parameter "
            "or connect to /sse first.",
            data={"activeConnections": len(ids)},
        )

    def ids(self) -> List[str]:
        return list(self._entries)

    def entries(self) -> List[SessionEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._entries
