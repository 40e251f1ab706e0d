"""Stateless SSE line classifier.

Each logical line of a streamed response is classified into a
``StreamEvent`` (or ``None`` for lines that carry nothing):

- blank lines, ``event:``, ``id:``, ``retry:`` and ``:`` comments: ignored
- ``data: [DONE]``: end of stream
- ``data: {json}`` with a top-level ``error``: provider error
- ``data: {json}`` with ``"type": "message_stop"``: end of stream
- any other ``data: {json}``: payload

Invalid JSON after ``data:`` raises ``ProviderError(MALFORMED_PAYLOAD)``.
"""
from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Literal, Optional

from ..errors import ErrorCode, ProviderError

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"
STOP_EVENT_TYPES = frozenset({"message_stop"})

EventKind = Literal["done", "error", "payload"]


@dataclass(frozen=True)
class StreamEvent:
    """One decoded stream line.

    Fields:
      kind: ``"done"``, ``"error"`` or ``"payload"``
      message: provider error message (``kind == "error"`` only)
      data: decoded JSON object (``kind == "payload"`` only)
    """

    kind: EventKind
    message: Optional[str] = None
    data: Any = None

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls("done")

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls("error", message=message)

    @classmethod
    def payload(cls, data: Any) -> "StreamEvent":
        return cls("payload", data=data)


def is_data_line(line: str) -> bool:
    """Whether ``line`` is an SSE ``data:`` field."""
    return line.startswith(DATA_PREFIX)


def error_message(error: Any) -> str:
    """Return a provider error's message verbatim.

    Object-shaped errors use their ``message`` field when present; anything
    else is rendered as compact JSON (or ``str`` for scalars).
    """
    if isinstance(error, dict):
        msg = error.get("message")
        if isinstance(msg, str):
            return msg
        return json.dumps(error, ensure_ascii=False)
    if isinstance(error, str):
        return error
    return json.dumps(error, ensure_ascii=False, default=str)


def decode_line(line: str) -> Optional[StreamEvent]:
    """Classify a single logical line (without its terminator)."""
    line = line.rstrip("\r")
    if not is_data_line(line):
        return None
    body = line[len(DATA_PREFIX):].strip()
    if not body:
        return None
    if body == DONE_SENTINEL:
        return StreamEvent.done()
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise ProviderError(
            code=ErrorCode.MALFORMED_PAYLOAD,
            message=f"invalid JSON in stream event: {body[:200]}",
            raw=exc,
        ) from exc
    if isinstance(data, dict):
        if data.get("error") is not None:
            return StreamEvent.error(error_message(data["error"]))
        if data.get("type") in STOP_EVENT_TYPES:
            return StreamEvent.done()
    return StreamEvent.payload(data)


__all__ = [
    "StreamEvent",
    "EventKind",
    "decode_line",
    "is_data_line",
    "error_message",
    "DATA_PREFIX",
    "DONE_SENTINEL",
]
