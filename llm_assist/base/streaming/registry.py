"""Registry of in-flight stream sessions.

The registry is an owned object (one per ``Assistant``), never a module
global. Bulk operations iterate over a snapshot so sessions may register or
unregister while ``cancel_all`` runs.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

from ..logging import get_logger, log_event
from .session import StreamSession


class SessionRegistry:
    """Maps session handles to live ``StreamSession`` objects."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._sessions: Dict[str, StreamSession] = {}
        self._logger = logger or get_logger("llm_assist.streaming.registry")

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, handle: object) -> bool:
        return handle in self._sessions

    def __iter__(self) -> Iterator[StreamSession]:
        return iter(self.sessions())

    def register(self, session: StreamSession) -> None:
        self._sessions[session.handle] = session

    def unregister(self, session: StreamSession) -> None:
        self._sessions.pop(session.handle, None)

    def get(self, handle: str) -> Optional[StreamSession]:
        return self._sessions.get(handle)

    def sessions(self) -> List[StreamSession]:
        """Snapshot of registered sessions in registration order."""
        return list(self._sessions.values())

    def cancel(self, handle: str, reason: str = "cancelled") -> bool:
        session = self._sessions.get(handle)
        if session is None:
            return False
        session.cancel(reason)
        return True

    def cancel_all(self, reason: str = "cancel_all") -> int:
        """Cancel every registered session; returns how many were signalled."""
        snapshot = self.sessions()
        for session in snapshot:
            session.cancel(reason)
        if snapshot:
            log_event(self._logger, "stream.cancel_all", count=len(snapshot), reason=reason)
        return len(snapshot)

    def cancel_at(self, document: Any, row: int, reason: str = "cancel_at") -> int:
        """Cancel sessions writing into ``document`` whose mark sits on ``row``."""
        count = 0
        for session in self.sessions():
            if session.sink is not document:
                continue
            if getattr(session.mark, "row", None) == row:
                session.cancel(reason)
                count += 1
        return count


__all__ = ["SessionRegistry"]
