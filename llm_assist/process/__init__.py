"""Process launching for request commands."""

from .runner import AsyncioProcessHandle, AsyncioProcessRunner, resolve_executable

__all__ = ["AsyncioProcessHandle", "AsyncioProcessRunner", "resolve_executable"]
