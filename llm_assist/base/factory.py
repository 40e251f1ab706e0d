"""Adapter factory utilities.

Purpose
-------
Resolve a ``ProviderAdapter`` from the adapter name stored in provider
settings. Adapter modules are imported lazily using ``importlib`` so
importing the base package never pulls in provider code, and adapter
instances are cached because adapters are stateless.

External dependencies
---------------------
- Standard library only (``importlib``).

Timeout and fallback semantics
------------------------------
- No timeouts, retries or fallbacks; the factory either returns an adapter
  or raises :class:`UnknownAdapterError` with an actionable message.
"""

from __future__ import annotations

from importlib import import_module
from typing import Dict, Tuple

from .interfaces import ProviderAdapter


class UnknownAdapterError(Exception):
    """Raised when an adapter name cannot be resolved.

    Failure modes include:
    - The name is not registered.
    - The adapter module cannot be imported or the class is missing.
    """


class AdapterFactory:
    """Create and cache adapters by canonical name (e.g., ``"openai"``)."""

    _ADAPTERS: Dict[str, Dict[str, str]] = {
        "openai": {"module": "llm_assist.openai.adapter", "class": "OpenAIChatAdapter"},
        "anthropic": {"module": "llm_assist.anthropic.adapter", "class": "AnthropicMessagesAdapter"},
    }
    _INSTANCES: Dict[str, ProviderAdapter] = {}

    @classmethod
    def get(cls, name: str) -> ProviderAdapter:
        """Return the shared adapter instance registered under ``name``.

        Raises
        ------
        UnknownAdapterError
            If the name is unknown, the module fails to import, or the
            adapter class is missing.
        """
        key = (name or "").lower().strip()
        cached = cls._INSTANCES.get(key)
        if cached is not None:
            return cached
        spec = cls._ADAPTERS.get(key)
        if not spec:
            raise UnknownAdapterError(f"Unknown adapter '{name}'")

        module_path, class_name = spec["module"], spec["class"]
        try:
            mod = import_module(module_path)
        except ImportError as exc:  # pragma: no cover - import failure path
            raise UnknownAdapterError(
                f"Failed to import module '{module_path}' for adapter '{name}': {exc}"
            ) from exc
        try:
            klass = getattr(mod, class_name)
        except AttributeError as exc:
            raise UnknownAdapterError(
                f"Adapter class '{class_name}' not found in '{module_path}' for adapter '{name}'"
            ) from exc

        adapter = klass()
        cls._INSTANCES[key] = adapter
        return adapter

    @classmethod
    def register(cls, name: str, module: str, class_name: str) -> None:
        """Register (or replace) an adapter import path under ``name``."""
        key = name.lower().strip()
        cls._ADAPTERS[key] = {"module": module, "class": class_name}
        cls._INSTANCES.pop(key, None)

    @classmethod
    def supported(cls) -> Tuple[str, ...]:
        """Return registered adapter names in deterministic order."""
        return tuple(cls._ADAPTERS.keys())


def get_adapter(name: str) -> ProviderAdapter:
    """Compatibility helper that delegates to :meth:`AdapterFactory.get`."""
    return AdapterFactory.get(name)


__all__ = ["AdapterFactory", "UnknownAdapterError", "get_adapter"]
