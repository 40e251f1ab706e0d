"""llm_assist package

Editor-integrated LLM assistant: streams provider completions into a live
document and applies model-generated multi-file diffs to a working tree.

Public API (re-exported):
    - Version: ``__version__``
    - Service: :class:`Assistant`, :class:`EditResult`
    - Configuration: :class:`ProviderTable`, :class:`ProviderSettings`
    - Exceptions: :class:`ProviderError`, :class:`ErrorCode`,
      :class:`PatchError`, :class:`UnknownProviderError`
    - Editor stand-in: :class:`TextDocument`, :class:`Mark`
"""

from .base.dto import ProviderSettings
from .base.errors import ErrorCode, PatchError, ProviderError
from .base.factory import UnknownAdapterError, get_adapter
from .base.streaming import StreamResult
from .config import ProviderTable, UnknownProviderError
from .document import Mark, TextDocument
from .patch import PatchApplier, PatchApplyOptions, PatchParser
from .service import Assistant, EditResult

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "Assistant",
    "EditResult",
    "ProviderTable",
    "ProviderSettings",
    "ProviderError",
    "ErrorCode",
    "PatchError",
    "UnknownProviderError",
    "UnknownAdapterError",
    "get_adapter",
    "StreamResult",
    "TextDocument",
    "Mark",
    "PatchApplier",
    "PatchApplyOptions",
    "PatchParser",
]
