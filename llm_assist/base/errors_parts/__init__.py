"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `llm_assist.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .provider_error import ProviderError
from .patch_error import (
    PatchError,
    InvalidFormatError,
    NoDiffBlocksError,
    InvalidPathError,
    InvalidDiffBodyError,
    NewFileNotAllowedError,
    PathNotInContextError,
    PatchRejectedError,
)
from .classification import classify_exception

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
