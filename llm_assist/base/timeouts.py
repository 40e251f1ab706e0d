"""Unified timing configuration for streaming, patching and HTTP calls.

This module centralizes every timing constant used by the assistant: the
ingestor's poll interval and pacing delay, the optional stall timeout, the
``git apply`` deadline, and the HTTP timeout for catalog fetches. Nothing
else in the package hard-codes a duration.

Key Components
--------------
TimeoutConfig
    Frozen dataclass of normalized values (seconds).

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use and again only when the relevant variables change. Supported
    environment variables (all optional):
        LLM_ASSIST_POLL_INTERVAL
        LLM_ASSIST_PACING_DELAY
        LLM_ASSIST_IDLE_TIMEOUT
        LLM_ASSIST_PATCH_TIMEOUT
        LLM_ASSIST_HTTP_TIMEOUT

Design Constraints
------------------
1. No ad-hoc durations outside this module.
2. Avoid per-call env parsing (cache keyed on the raw env values).
3. Invalid or non-positive values fall back to the default silently.

The per-provider first-response timeout is not here: it is a property of
each provider's settings (``ProviderSettings.timeout_ms``).
"""
from __future__ import annotations

from dataclasses import dataclass
import os


_ENV_NAMES = (
    "LLM_ASSIST_POLL_INTERVAL",
    "LLM_ASSIST_PACING_DELAY",
    "LLM_ASSIST_IDLE_TIMEOUT",
    "LLM_ASSIST_PATCH_TIMEOUT",
    "LLM_ASSIST_HTTP_TIMEOUT",
)


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timing values (seconds).

    Attributes:
        poll_interval: Upper bound on a single stdout/stderr read wait.
        pacing_delay: Delay before each streamed write; keeps the editor
            responsive and gives cancellation a chance to land.
        idle_timeout: Optional stall limit once bytes have started arriving.
            ``None`` disables the check.
        patch_timeout: Deadline for one ``git apply`` invocation.
        http_timeout: Timeout for plain HTTP requests (model catalog).
    """

    poll_interval: float = 0.01
    pacing_delay: float = 0.005
    idle_timeout: float | None = None
    patch_timeout: float = 30.0
    http_timeout: float = 30.0


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None


def _parse_env_float(name: str, default: float | None) -> float | None:
    """Parse an environment variable as a positive float, else ``default``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
        return val if val > 0 else default
    except ValueError:
        return default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached `TimeoutConfig` instance.

    The cache is refreshed when any ``LLM_ASSIST_*`` timing variable changes,
    so tests can adjust values at runtime via ``monkeypatch.setenv``.
    """
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    cur_guard = "/".join(os.getenv(n, "") for n in _ENV_NAMES)
    if _CACHED is not None and _ENV_GUARD == cur_guard:
        return _CACHED

    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        poll_interval=float(_parse_env_float("LLM_ASSIST_POLL_INTERVAL", defaults.poll_interval)),
        pacing_delay=float(_parse_env_float("LLM_ASSIST_PACING_DELAY", defaults.pacing_delay)),
        idle_timeout=_parse_env_float("LLM_ASSIST_IDLE_TIMEOUT", defaults.idle_timeout),
        patch_timeout=float(_parse_env_float("LLM_ASSIST_PATCH_TIMEOUT", defaults.patch_timeout)),
        http_timeout=float(_parse_env_float("LLM_ASSIST_HTTP_TIMEOUT", defaults.http_timeout)),
    )
    _ENV_GUARD = cur_guard
    return _CACHED


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
]
