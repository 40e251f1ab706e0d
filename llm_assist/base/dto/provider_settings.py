"""
Pydantic DTO describing one configured provider endpoint.

Purpose
-------
Validate provider table entries (built-in defaults, config file content and
``setup()`` overrides) before they reach the transport or the adapters.
Unknown keys are rejected so typos in a config file fail loudly.

External dependencies: Pydantic only. No I/O.

Fallback semantics: Not applicable. Validation either succeeds or raises a
``pydantic.ValidationError``; ``ProviderTable`` lets it propagate.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProviderSettings(BaseModel):
    """Endpoint, model and wire options for one named provider.

    Attributes:
        url: Chat-completion endpoint URL.
        model: Default model identifier.
        api_key_name: Name of the environment variable holding the key.
            ``None`` for endpoints that need no credentials.
        adapter: Adapter name resolved through ``get_adapter``.
        headers: Extra HTTP headers, sent in insertion order.
        stream_params: Provider-specific fields merged into streaming payloads.
        edit_params: Provider-specific fields merged into edit payloads.
        timeout_ms: First-response timeout for streaming sessions.
    """

    model_config = ConfigDict(extra="forbid")

    url: str
    model: str
    api_key_name: Optional[str] = None
    adapter: str = "openai"
    headers: Dict[str, str] = Field(default_factory=dict)
    stream_params: Dict[str, Any] = Field(default_factory=dict)
    edit_params: Dict[str, Any] = Field(default_factory=dict)
    timeout_ms: int = Field(default=10000, gt=0)

    @field_validator("url", "model", "adapter")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        """Reject empty or whitespace-only identifiers."""
        if not value or not value.strip():
            raise ValueError("must be a non-empty string")
        return value.strip()

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


__all__ = ["ProviderSettings"]
