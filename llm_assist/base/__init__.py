"""
Assistant Base Package

Exports provider-agnostic contracts, DTOs, the streaming engine and the
adapter factory used by the service layer.

Layout:
- Interfaces: adapter, sink and process-runner Protocols
- Models (DTOs): chat request, content segments, provider settings
- Streaming: SSE decoding, sessions, registry, scheduler, ingestor
- Factory: lazy creation of provider adapters by canonical name
"""

from .factory import AdapterFactory, UnknownAdapterError, get_adapter
from .interfaces import (
    CompletedRun,
    LoggingNotifier,
    Notifier,
    ProcessHandle,
    ProcessRunner,
    ProviderAdapter,
    Sink,
)
from .models import ChatRequest, ContentSegment, ExtractOptions
from .dto import ProviderSettings
from .timeouts import TimeoutConfig, get_timeout_config
from .cancellation import CancellationToken, CancelledError
from .streaming import (
    EditScheduler,
    SessionRegistry,
    SessionState,
    StreamIngestor,
    StreamResult,
    StreamSession,
)

__all__ = [
    # Models
    "ChatRequest",
    "ContentSegment",
    "ExtractOptions",
    "ProviderSettings",
    # Interfaces
    "ProviderAdapter",
    "Sink",
    "ProcessRunner",
    "ProcessHandle",
    "CompletedRun",
    "Notifier",
    "LoggingNotifier",
    # Factory
    "AdapterFactory",
    "UnknownAdapterError",
    "get_adapter",
    # Timeouts & cancellation
    "TimeoutConfig",
    "get_timeout_config",
    "CancellationToken",
    "CancelledError",
    # Streaming
    "EditScheduler",
    "SessionRegistry",
    "SessionState",
    "StreamIngestor",
    "StreamResult",
    "StreamSession",
]
