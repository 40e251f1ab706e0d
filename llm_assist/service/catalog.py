"""Model catalog fetching.

Purpose
    Retrieve the list of available models (OpenRouter catalog by default) so
    a picker can offer them.

External dependencies
    * ``httpx.AsyncClient`` for the GET request.

Fallback semantics
    Any transport failure, non-200 status or unparseable body is logged as a
    ``catalog.fetch`` event with an error and yields ``[]``; the caller keeps
    working with its configured model.

Timeout strategy
    ``TimeoutConfig.http_timeout`` unless a pre-configured client is passed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..base.errors import classify_exception
from ..base.logging import get_logger, log_event
from ..base.timeouts import get_timeout_config
from ..config.defaults import OPENROUTER_MODELS_URL

_logger = get_logger("llm_assist.catalog")


def _fail(url: str, error: str, **extra: Any) -> List[Dict[str, Any]]:
    log_event(_logger, "catalog.fetch", level=logging.WARNING, url=url, ok=False, error=error, **extra)
    return []


async def fetch_models(
    url: str = OPENROUTER_MODELS_URL,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Dict[str, Any]]:
    """Return the ``data`` list of the catalog at ``url`` (``[]`` on failure)."""
    try:
        if client is not None:
            response = await client.get(url)
        else:
            async with httpx.AsyncClient(timeout=get_timeout_config().http_timeout) as owned:
                response = await owned.get(url)
    except httpx.HTTPError as exc:
        return _fail(url, str(exc), error_code=classify_exception(exc).value)

    if response.status_code != 200:
        return _fail(url, "Failed to fetch models", status=response.status_code)
    try:
        body = response.json()
    except ValueError:
        return _fail(url, "Invalid data received")
    data = body.get("data") if isinstance(body, dict) else None
    if not isinstance(data, list):
        return _fail(url, "Invalid data received")
    models = [m for m in data if isinstance(m, dict)]
    log_event(_logger, "catalog.fetch", url=url, ok=True, count=len(models))
    return models


def model_label(entry: Dict[str, Any]) -> str:
    """Display label for a catalog entry (name, else id)."""
    return str(entry.get("name") or entry.get("id") or "")


__all__ = ["fetch_models", "model_label"]
