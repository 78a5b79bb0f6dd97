"""Resource providers for phoenix."""

from phoenix.providers.base import BaseProvider, ProviderStatus
from phoenix.providers.registry import ProviderRegistry

__all__ = [
    "BaseProvider",
    "ProviderStatus",
    "ProviderRegistry",
]
