"""Cooperative cancellation primitives (public API facade).

Notes
-----
- ``CancellationToken`` enables cooperative cancellation signalling across
  stream sessions and the host application's lifetime.
- ``CancelledError`` is raised by operations that observe a cancellation request.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError"]
