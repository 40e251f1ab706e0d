"""Unified error taxonomy public surface.

This module re-exports the implementations under
``llm_assist.base.errors_parts`` to maintain a stable import path for both
the streaming engine (``ProviderError``) and the patch engine
(``PatchError`` hierarchy).
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.provider_error import ProviderError
from .errors_parts.patch_error import (
    PatchError,
    InvalidFormatError,
    NoDiffBlocksError,
    InvalidPathError,
    InvalidDiffBodyError,
    NewFileNotAllowedError,
    PathNotInContextError,
    PatchRejectedError,
)
from .errors_parts.classification import classify_exception

__all__ = [
    "ErrorCode",
    "ProviderError",
    "PatchError",
    "InvalidFormatError",
    "NoDiffBlocksError",
    "InvalidPathError",
    "InvalidDiffBodyError",
    "NewFileNotAllowedError",
    "PathNotInContextError",
    "PatchRejectedError",
    "classify_exception",
]
