"""Prompt context management."""

from .store import ContextEntry, ContextError, ContextPath, ContextStore, parse_context_line

__all__ = ["ContextEntry", "ContextError", "ContextPath", "ContextStore", "parse_context_line"]
