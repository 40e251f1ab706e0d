"""
Structural interfaces (Protocols) shared across the assistant.

Re-exports the single-class modules under
``llm_assist.base.interfaces_parts``.
"""

from .interfaces_parts.provider_adapter import ProviderAdapter
from .interfaces_parts.sink import Sink
from .interfaces_parts.process_runner import CompletedRun, ProcessHandle, ProcessRunner
from .interfaces_parts.notifier import LoggingNotifier, Notifier

__all__ = [
    "ProviderAdapter",
    "Sink",
    "CompletedRun",
    "ProcessHandle",
    "ProcessRunner",
    "Notifier",
    "LoggingNotifier",
]
