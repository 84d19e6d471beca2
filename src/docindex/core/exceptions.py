"""
Custom exceptions for the document index.
"""

from typing import Optional


class DocIndexError(Exception):
    """Base exception for all document index errors."""
    pass


class InvalidArgumentError(DocIndexError, ValueError):
    """
    An argument is outside its valid range.

    Raised when:
    - Chunking parameters are invalid (chunk_size <= 0, overlap out of range)
    - A search asks for k <= 0 results
    - A document id or query text is empty
    - An embedding is empty or contains non-finite values
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class DimensionMismatchError(DocIndexError):
    """
    An embedding length disagrees with the store's established dimension.

    Attributes:
        expected: Dimension the store accepts
        actual: Dimension that was supplied
        field: Which input carried the offending vector
    """

    def __init__(self, expected: int, actual: int, field: str = "embedding"):
        super().__init__(
            f"Dimension mismatch on {field}: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual
        self.field = field


class NotFoundError(DocIndexError):
    """A document id does not exist in the store."""

    def __init__(self, document_id: str):
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class EmbeddingProviderError(DocIndexError):
    """
    Error communicating with an embedding provider.

    Raised when:
    - Provider returns an unexpected error response
    - Response cannot be parsed
    - Response does not contain one vector per input
    """

    def __init__(self, message: str, provider: str = None, status_code: int = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ProviderUnavailableError(EmbeddingProviderError):
    """
    The embedding provider cannot be reached.

    Raised when:
    - Provider is unreachable
    - Request times out
    - Provider answers with a server error (5xx)
    """
    pass


class RateLimitedError(EmbeddingProviderError):
    """The embedding provider rejected the request due to rate limiting."""

    def __init__(
        self,
        message: str,
        provider: str = None,
        status_code: int = 429,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, provider=provider, status_code=status_code)
        self.retry_after = retry_after


class StorageError(DocIndexError):
    """
    Error persisting or reading records in a store backend.

    The original backend exception is chained as ``__cause__``.
    """
    pass


class ConfigError(DocIndexError):
    """
    Error in configuration.

    Raised when:
    - Configuration file is missing or invalid
    - Configuration values are out of valid range
    """
    pass
