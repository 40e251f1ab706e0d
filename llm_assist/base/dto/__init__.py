"""DTO validation package for the assistant."""

from .provider_settings import ProviderSettings

__all__ = [
    "ProviderSettings",
]
