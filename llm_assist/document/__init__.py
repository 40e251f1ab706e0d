"""In-memory editor surface."""

from .text_document import Mark, TextDocument

__all__ = ["Mark", "TextDocument"]
