"""llm_assist.config.env
======================

Environment helpers for provider credentials and per-provider overrides.

Design Notes
------------
- Credentials are only ever read from the environment variable named by
  ``ProviderSettings.api_key_name``; nothing is persisted.
- Placeholder values (``changeme``, ``your-key-here`` ...) count as missing so
  a copied sample ``.env`` never produces an authenticated-looking request.

Failure Modes
-------------
- Helpers never raise on unset variables; they return ``None`` / ``{}``.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from ..base.dto import ProviderSettings

# settings field -> env var suffix (``<NAME>_<SUFFIX>``)
ENV_FIELD_MAP: Dict[str, str] = {
    "model": "MODEL",
    "url": "URL",
}


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if ``val`` looks like a placeholder rather than a real key.

    Heuristics (case-insensitive): contains 'placeholder', 'changeme',
    'example' or 'your-', or starts with 'test_'.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return (
        "placeholder" in v
        or "changeme" in v
        or "example" in v
        or "your-" in v
        or v.startswith("test_")
    )


def env_overrides(name: str, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect ``<NAME>_MODEL`` / ``<NAME>_URL`` overrides for provider ``name``."""
    env = os.environ if environ is None else environ
    out: Dict[str, Any] = {}
    prefix = name.upper().replace("-", "_")
    for field, suffix in ENV_FIELD_MAP.items():
        val = env.get(f"{prefix}_{suffix}")
        if val:
            out[field] = val
    return out


def resolve_api_key(settings: ProviderSettings, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the API key for ``settings`` or ``None`` when unset or a placeholder."""
    if not settings.api_key_name:
        return None
    env = os.environ if environ is None else environ
    value = (env.get(settings.api_key_name) or "").strip()
    if not value or is_placeholder(value):
        return None
    return value


__all__ = [
    "ENV_FIELD_MAP",
    "is_placeholder",
    "env_overrides",
    "resolve_api_key",
]
