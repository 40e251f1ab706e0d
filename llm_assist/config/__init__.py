"""Unified configuration layer for providers.

Goals
-----
* Centralize the built-in provider table (URL, model, key variable, adapter).
* Merge sources in a predictable order (later wins):
    1. Built-in defaults
    2. Optional external config file (JSON or YAML) pointed to by
       ``LLM_ASSIST_CONFIG_FILE``
    3. Environment variables (``<NAME>_MODEL``, ``<NAME>_URL``)
    4. ``ProviderTable.setup()`` overrides
* Validate every entry as a ``ProviderSettings`` model.

External Config File (Optional)
-------------------------------
JSON is attempted first, then YAML. Each top-level key is a provider name;
partial entries merge into the built-in ones, new names need ``url`` and
``model``::

    openai:
      model: gpt-4o-mini
    openrouter:
      url: https://openrouter.ai/api/v1/chat/completions
      model: openrouter/auto
      api_key_name: OPENROUTER_API_KEY
      adapter: openai

Public API
----------
* ProviderTable: ``get(name)``, ``setup(services, timeout_ms)``, ``names()``
* load_external_config(path) -> dict
* resolve_api_key(settings) -> str | None
"""
from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

import yaml

from ..base.dto import ProviderSettings
from ..base.logging import get_logger, log_event
from .defaults import DEFAULT_PROVIDERS, OPENROUTER_MODELS_URL
from .env import env_overrides, is_placeholder, resolve_api_key

CONFIG_FILE_ENV = "LLM_ASSIST_CONFIG_FILE"

_LOGGER = get_logger("llm_assist.config")


class UnknownProviderError(KeyError):
    """Raised when a provider name is not present in the provider table."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Invalid service: {self.name}"


def load_external_config(path: Union[str, Path, None]) -> Dict[str, Any]:
    """Load a JSON or YAML provider mapping; ``{}`` when absent or unreadable."""
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except ValueError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            log_event(_LOGGER, "config.load_failed", level=logging.WARNING, path=str(p), error=str(exc))
            data = {}
    return data if isinstance(data, dict) else {}


def _merge_entry(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Shallow-merge ``override`` into ``base``; dict-valued fields merge one level deep."""
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


class ProviderTable:
    """Name -> ``ProviderSettings`` lookup with layered overrides."""

    def __init__(
        self,
        defaults: Optional[Mapping[str, Mapping[str, Any]]] = None,
        *,
        config_file: Union[str, Path, None] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        env = os.environ if environ is None else environ
        raw: Dict[str, Dict[str, Any]] = copy.deepcopy(
            dict(DEFAULT_PROVIDERS if defaults is None else defaults)
        )
        path = config_file if config_file is not None else env.get(CONFIG_FILE_ENV)
        for name, entry in load_external_config(path).items():
            if isinstance(entry, Mapping):
                raw[name] = _merge_entry(raw.get(name, {}), entry)
        for name in list(raw):
            if overrides := env_overrides(name, env):
                raw[name] = _merge_entry(raw[name], overrides)
        self._raw = raw
        self._settings: Dict[str, ProviderSettings] = {
            name: ProviderSettings.model_validate(entry) for name, entry in raw.items()
        }

    def __contains__(self, name: object) -> bool:
        return name in self._settings

    def __iter__(self) -> Iterator[str]:
        return iter(self._settings)

    def __len__(self) -> int:
        return len(self._settings)

    def names(self) -> Tuple[str, ...]:
        return tuple(self._settings)

    def items(self) -> Tuple[Tuple[str, ProviderSettings], ...]:
        return tuple(self._settings.items())

    def get(self, name: str) -> ProviderSettings:
        """Return the settings for ``name``.

        Raises
        ------
        UnknownProviderError
            If ``name`` is not configured.
        """
        try:
            return self._settings[name]
        except KeyError:
            raise UnknownProviderError(name) from None

    def setup(
        self,
        services: Optional[Mapping[str, Mapping[str, Any]]] = None,
        *,
        timeout_ms: Optional[int] = None,
    ) -> None:
        """Apply caller overrides.

        ``services`` entries merge into existing providers (or add new ones);
        ``timeout_ms`` replaces every provider's first-response timeout.
        Validation happens before anything is replaced, so an invalid
        override leaves the table untouched.
        """
        raw = copy.deepcopy(self._raw)
        for name, entry in (services or {}).items():
            raw[name] = _merge_entry(raw.get(name, {}), entry)
        if timeout_ms is not None:
            for entry in raw.values():
                entry["timeout_ms"] = timeout_ms
        settings = {name: ProviderSettings.model_validate(entry) for name, entry in raw.items()}
        self._raw = raw
        self._settings = settings


__all__ = [
    "ProviderTable",
    "UnknownProviderError",
    "load_external_config",
    "resolve_api_key",
    "is_placeholder",
    "CONFIG_FILE_ENV",
    "OPENROUTER_MODELS_URL",
]
