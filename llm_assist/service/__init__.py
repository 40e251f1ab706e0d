"""
Service layer: the ``Assistant`` application object and its helpers.

Exports:
- Assistant, EditResult
- build_curl_args / curl_command: request command construction
- fetch_models: model catalog lookup
"""

from .assistant import Assistant, EditResult
from .catalog import fetch_models
from .transport import build_curl_args, curl_command

__all__ = ["Assistant", "EditResult", "fetch_models", "build_curl_args", "curl_command"]
