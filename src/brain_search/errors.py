"""
Exception types raised across the retrieval engine.
"""

from __future__ import annotations


class BrainSearchError(Exception):
    """Base class for brain-search errors."""


class StoreUnavailableError(BrainSearchError):
    """Raised when the item store cannot be opened or read."""


class EmbeddingProviderError(BrainSearchError):
    """Raised by an embedding provider when it cannot produce a vector."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderConfigurationError(BrainSearchError, ValueError):
    """Raised when an embedding provider is missing credentials or settings."""
