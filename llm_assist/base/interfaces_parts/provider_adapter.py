"""ProviderAdapter Protocol (single-class module).

Defines the three-function contract every provider variant implements.
Variants are selected by name from configuration, never by subclassing.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ..models import ChatRequest, ExtractOptions


@runtime_checkable
class ProviderAdapter(Protocol):
    """Translation layer between the generic chat model and a provider's wire format.

    Implementations must be stateless; one instance is shared by every
    request targeting the provider.
    """

    @property
    def name(self) -> str:
        """Canonical adapter identifier, e.g. ``"openai"`` or ``"anthropic"``."""
        ...

    def build_payload(self, request: ChatRequest) -> Dict[str, Any]:
        """Return the JSON-serializable wire payload for ``request``.

        Pure and total for any well-formed request. ``request.extra_params``
        are merged last, verbatim.
        """
        ...

    def extract_stream_delta(self, event: Any, opts: ExtractOptions) -> Optional[str]:
        """Return the text fragment carried by one decoded stream event.

        ``None`` when the event has no emittable text (role-only delta,
        lifecycle events, or content removed by ``opts.trim_thinking``).
        """
        ...

    def extract_final_text(self, message: Any, opts: ExtractOptions) -> str:
        """Return the full text of a complete (non-streamed) message.

        Never ``None``; ``""`` when the message has no content.
        """
        ...


__all__ = ["ProviderAdapter"]
