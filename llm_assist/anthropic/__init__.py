"""
Anthropic provider package.

Exports:
- AnthropicMessagesAdapter: ProviderAdapter for the Messages API.
"""

from .adapter import AnthropicMessagesAdapter

__all__ = ["AnthropicMessagesAdapter"]
