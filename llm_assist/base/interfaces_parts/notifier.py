"""Notifier Protocol and the logging-backed default implementation."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable


@runtime_checkable
class Notifier(Protocol):
    """User-visible notification channel (editor message area, toast, ...)."""

    def notify(self, message: str, level: int = logging.INFO) -> None:
        ...


class LoggingNotifier:
    """Notifier that routes messages to the ``llm_assist.notify`` logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("llm_assist.notify")

    def notify(self, message: str, level: int = logging.INFO) -> None:
        self._logger.log(level, message)


__all__ = ["Notifier", "LoggingNotifier"]
