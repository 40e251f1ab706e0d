"""
ChatRequest DTO for provider-agnostic chat invocations.

Adapters map this normalized request shape to a provider's wire payload. The
request carries the two prompts, model selection, sampling parameters and an
``extra_params`` escape hatch merged last into the payload.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class ChatRequest:
    """Normalized chat request handed to provider adapters.

    Attributes:
        system_prompt: Instructions placed in the provider's system slot.
        user_prompt: The user turn (buffer text, selection, or edit request).
        model: Target model identifier.
        stream: Whether the provider should stream deltas.
        temperature: Sampling temperature when supported by the provider.
        max_tokens: Maximum tokens for the completion.
        extra_params: Provider-specific keys merged verbatim into the payload
            after every other field (last write wins).

    The instance is immutable once built; ``extra_params`` is exposed as a
    read-only mapping.
    """

    system_prompt: str
    user_prompt: str
    model: str
    stream: bool = True
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    extra_params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra_params", MappingProxyType(dict(self.extra_params or {})))

    def with_params(self, **params: Any) -> "ChatRequest":
        """Return a copy whose ``extra_params`` also include ``params``."""
        merged = dict(self.extra_params)
        merged.update(params)
        return replace(self, extra_params=merged)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary representation of the request."""
        return {
            "system_prompt": self.system_prompt,
            "user_prompt": self.user_prompt,
            "model": self.model,
            "stream": self.stream,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "extra_params": dict(self.extra_params),
        }


__all__ = ["ChatRequest"]
