"""llm_assist.config.defaults
==========================

Central place for stable default values: the built-in provider table, wire
constants and the model catalog URL. Only plain constants live here; no I/O
and no imports from other packages.
"""

from __future__ import annotations

from typing import Any, Dict


# ---- Wire constants ----
ANTHROPIC_VERSION = "2023-06-01"
CURL_EXECUTABLE = "curl"

# ---- Model catalog ----
OPENROUTER_MODELS_URL = "https://openrouter.ai/api/v1/models"

# ---- Built-in providers ----
GROQ_DEFAULT_URL = "https://api.groq.com/openai/v1/chat/completions"
GROQ_DEFAULT_MODEL = "llama3-70b-8192"

OPENAI_DEFAULT_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_DEFAULT_MODEL = "gpt-4o"

ANTHROPIC_DEFAULT_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_DEFAULT_MODEL = "claude-3-5-sonnet-20240620"

# OpenAI-style endpoints stream with a moderate sampling temperature;
# Anthropic relies on the adapter's max_tokens default instead.
OPENAI_STYLE_STREAM_PARAMS: Dict[str, Any] = {"temperature": 0.7}

DEFAULT_PROVIDERS: Dict[str, Dict[str, Any]] = {
    "groq": {
        "url": GROQ_DEFAULT_URL,
        "model": GROQ_DEFAULT_MODEL,
        "api_key_name": "GROQ_API_KEY",
        "adapter": "openai",
        "stream_params": dict(OPENAI_STYLE_STREAM_PARAMS),
    },
    "openai": {
        "url": OPENAI_DEFAULT_URL,
        "model": OPENAI_DEFAULT_MODEL,
        "api_key_name": "OPENAI_API_KEY",
        "adapter": "openai",
        "stream_params": dict(OPENAI_STYLE_STREAM_PARAMS),
    },
    "anthropic": {
        "url": ANTHROPIC_DEFAULT_URL,
        "model": ANTHROPIC_DEFAULT_MODEL,
        "api_key_name": "ANTHROPIC_API_KEY",
        "adapter": "anthropic",
    },
}


__all__ = [
    "ANTHROPIC_VERSION",
    "CURL_EXECUTABLE",
    "OPENROUTER_MODELS_URL",
    "DEFAULT_PROVIDERS",
    "OPENAI_STYLE_STREAM_PARAMS",
]
