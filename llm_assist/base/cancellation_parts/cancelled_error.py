"""Cancellation error type.

Defines the public ``CancelledError`` raised by operations that observe a
cancellation request. Distinct from ``asyncio.CancelledError``: it signals a
cooperative user request, not task cancellation.
"""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when an operation is cancelled cooperatively."""


__all__ = ["CancelledError"]
