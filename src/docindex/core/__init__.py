"""
Core subpackage for the document index.

Contains exceptions, configuration and logging utilities.
"""

from .exceptions import (
    ConfigError,
    DimensionMismatchError,
    DocIndexError,
    EmbeddingProviderError,
    InvalidArgumentError,
    NotFoundError,
    ProviderUnavailableError,
    RateLimitedError,
    StorageError,
)

__all__ = [
    "ConfigError",
    "DimensionMismatchError",
    "DocIndexError",
    "EmbeddingProviderError",
    "InvalidArgumentError",
    "NotFoundError",
    "ProviderUnavailableError",
    "RateLimitedError",
    "StorageError",
]
