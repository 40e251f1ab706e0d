"""
OpenAI-style provider package.

Exports:
- OpenAIChatAdapter: ProviderAdapter for OpenAI-compatible chat-completions
  endpoints (OpenAI, Groq, OpenRouter).
"""

from .adapter import OpenAIChatAdapter

__all__ = ["OpenAIChatAdapter"]
