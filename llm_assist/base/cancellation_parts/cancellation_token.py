"""Cooperative cancellation token implementation.

Exposes the ``CancellationToken`` class used by stream sessions to enable
early termination via cooperative polling. The ingestion loop observes the
flag at its next poll; registered callbacks run synchronously at cancel time
(used to close a session's process output).
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, List

from .cancelled_error import CancelledError

_LOGGER = logging.getLogger("llm_assist.cancellation")


class CancellationToken:
    """A cooperative cancellation token with optional cascading semantics.

    Child tokens inherit cancellation when the parent is cancelled. A host
    application keeps one root token; every stream session takes a child so a
    shutdown cancels all of them while a single session can be cancelled on
    its own.
    """

    def __init__(self, *, parent: "CancellationToken | None" = None) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._lock = Lock()
        self._children: List[CancellationToken] = []
        self._callbacks: List[Callable[[str | None], None]] = []
        self._parent = parent
        if parent is not None:
            parent.link_child(self)

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether cancellation has been requested."""
        return self._cancelled

    @property
    def reason(self) -> str | None:  # noqa: D401 - short form
        """Reason string supplied at cancel time (if any)."""
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cooperative cancellation, run callbacks, cascade to children."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._reason = reason
            children = list(self._children)
            callbacks = list(self._callbacks)
        for callback in callbacks:
            try:
                callback(reason)
            except Exception:  # a failing callback must not block cascading
                _LOGGER.exception("cancellation callback failed")
        for child in children:
            child.cancel(reason)

    def on_cancel(self, callback: Callable[[str | None], None]) -> None:
        """Register ``callback(reason)``; runs immediately if already cancelled."""
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return
            reason = self._reason
        callback(reason)

    def link_child(self, token: "CancellationToken") -> "CancellationToken":
        """Link a child token so parent cancellation cascades (returns child)."""
        with self._lock:
            self._children.append(token)
            should_cancel = self._cancelled
            reason = self._reason
        if should_cancel:
            token.cancel(reason)
        return token

    def unlink_child(self, token: "CancellationToken") -> None:
        """Detach a finished child so long-lived parents do not accumulate them."""
        with self._lock:
            if token in self._children:
                self._children.remove(token)

    def unlink_from_parent(self) -> None:
        """Detach this token from its parent (no-op for root tokens)."""
        if self._parent is not None:
            self._parent.unlink_child(self)
            self._parent = None

    def raise_if_cancelled(self) -> None:
        """Raise ``CancelledError`` if token is cancelled."""
        if self._cancelled:
            raise CancelledError(self._reason or "operation cancelled")

    def child(self) -> "CancellationToken":
        """Create and link a child token (shortcut)."""
        return CancellationToken(parent=self)

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return (
            f"CancellationToken(cancelled={self._cancelled}, "
            f"reason={self._reason!r}, children={len(self._children)})"
        )


__all__ = ["CancellationToken"]
