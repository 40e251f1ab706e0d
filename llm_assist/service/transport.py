"""Request command construction.

Purpose
-------
Turn a provider's settings and wire payload into the ``curl`` argument
vector that the process runner launches. The payload travels in the
arguments (``-d``); no shell is involved.

External dependencies
---------------------
- Local ``curl`` executable, resolved by the process runner at launch.

Auth headers
------------
- OpenAI-style: ``Authorization: Bearer <key>``
- Anthropic: ``x-api-key: <key>`` plus ``anthropic-version``
No auth header is sent when the key is ``None``.
"""

from __future__ import annotations

import json
from typing import Any, List, Mapping, Optional

from ..base.dto import ProviderSettings
from ..config.defaults import ANTHROPIC_VERSION, CURL_EXECUTABLE


def build_curl_args(
    settings: ProviderSettings,
    payload: Mapping[str, Any],
    api_key: Optional[str],
    stream: bool,
) -> List[str]:
    """Return curl arguments (without the executable), URL last."""
    args: List[str] = []
    if stream:
        args.append("-N")
    args += [
        "-s",
        "-X",
        "POST",
        "-H",
        "Content-Type: application/json",
        "-d",
        json.dumps(payload, ensure_ascii=False),
    ]
    if api_key:
        if settings.adapter == "anthropic":
            args += ["-H", f"x-api-key: {api_key}", "-H", f"anthropic-version: {ANTHROPIC_VERSION}"]
        else:
            args += ["-H", f"Authorization: Bearer {api_key}"]
    for name, value in settings.headers.items():
        args += ["-H", f"{name}: {value}"]
    args.append(settings.url)
    return args


def curl_command(
    settings: ProviderSettings,
    payload: Mapping[str, Any],
    api_key: Optional[str],
    stream: bool,
    *,
    executable: str = CURL_EXECUTABLE,
) -> List[str]:
    """Full argument vector including the executable."""
    return [executable, *build_curl_args(settings, payload, api_key, stream)]


def redact_args(args: List[str]) -> List[str]:
    """Copy of ``args`` with credential header values masked (for logging)."""
    redacted: List[str] = []
    for arg in args:
        lowered = arg.lower()
        if lowered.startswith("authorization:") or lowered.startswith("x-api-key:"):
            name = arg.split(":", 1)[0]
            redacted.append(f"{name}: ***")
        else:
            redacted.append(arg)
    return redacted


__all__ = ["build_curl_args", "curl_command", "redact_args"]
