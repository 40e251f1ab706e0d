"""
Normalized error codes (taxonomy).

Defines the `ErrorCode` enumeration shared by the streaming engine and the
patch engine. Values are lowercase snake_case and are considered a stable
public contract for logging and user notifications.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Enumerated normalized error codes representing failure categories."""

    # Streaming engine
    PROVIDER = "provider"
    MALFORMED_PAYLOAD = "malformed_payload"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    UNAVAILABLE = "unavailable"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"

    # Patch engine
    INVALID_FORMAT = "invalid_format"
    NO_DIFF_BLOCKS = "no_diff_blocks"
    INVALID_PATH = "invalid_path"
    INVALID_DIFF_BODY = "invalid_diff_body"
    NEW_FILE_NOT_ALLOWED = "new_file_not_allowed"
    PATH_NOT_IN_CONTEXT = "path_not_in_context"
    PATCH_REJECTED = "patch_rejected"

    UNKNOWN = "unknown"


__all__ = ["ErrorCode"]
