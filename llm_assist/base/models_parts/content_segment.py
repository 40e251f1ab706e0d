"""
Typed content segment model.

Providers represent message content either as one string or as an ordered
list of typed segments. Adapters normalize both shapes into
``ContentSegment`` objects before applying the thinking-trim rules.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

SegmentType = Literal["text", "reasoning"]


@dataclass(frozen=True)
class ContentSegment:
    """A single piece of message content.

    Attributes:
        type: ``"text"`` for user-visible output, ``"reasoning"`` for
            thinking/reasoning output that may be trimmed.
        text: The segment's text.
    """

    type: SegmentType
    text: str

    @property
    def is_reasoning(self) -> bool:
        return self.type == "reasoning"


__all__ = ["ContentSegment", "SegmentType"]
