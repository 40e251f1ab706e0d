"""Options controlling content extraction from provider responses."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ExtractOptions:
    """Extraction flags shared by streaming and final-text extraction.

    Attributes:
        trim_thinking: Drop ``reasoning`` segments and ``<think>...</think>``
            spans from extracted text.
    """

    trim_thinking: bool = False


__all__ = ["ExtractOptions"]
