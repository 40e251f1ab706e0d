"""Pytest fixtures shared by the assistant test suite."""

from __future__ import annotations

from typing import Iterator

import pytest

from llm_assist.base.logging import get_logger
from llm_assist.base.streaming import EditScheduler, SessionRegistry, StreamIngestor
from llm_assist.tests.helpers import FAST_TIMEOUTS, FakeProcessRunner, ListHandler, RecordingNotifier


@pytest.fixture()
def log_capture() -> Iterator[ListHandler]:
    """Attach a list handler to the shared ``llm_assist`` logger."""
    logger = get_logger()
    handler = ListHandler()
    logger.addHandler(handler)
    try:
        yield handler
    finally:
        logger.removeHandler(handler)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture()
def make_ingestor(registry, notifier):
    """Build a ``StreamIngestor`` around a ``FakeProcessRunner``."""

    def _make(*handles, start_error=None):
        runner = FakeProcessRunner(handles, start_error=start_error)
        ingestor = StreamIngestor(
            runner,
            registry,
            EditScheduler(),
            notifier=notifier,
            timeouts=FAST_TIMEOUTS,
        )
        return ingestor, runner

    return _make


@pytest.fixture(autouse=True)
def _no_config_file(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's config file or keys out of the tests."""
    monkeypatch.delenv("LLM_ASSIST_CONFIG_FILE", raising=False)
    for name in ("GROQ", "OPENAI", "ANTHROPIC"):
        monkeypatch.delenv(f"{name}_MODEL", raising=False)
        monkeypatch.delenv(f"{name}_URL", raising=False)
