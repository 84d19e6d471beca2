"""
Embedding provider interface.
"""

from abc import ABC, abstractmethod
from typing import List, Sequence


class EmbeddingProvider(ABC):
    """
    Abstract base class for embedding providers.

    A provider maps text to a fixed-length vector. Failures surface as
    ProviderUnavailableError or RateLimitedError and are never retried here;
    retry policy belongs to the caller.
    """

    name: str = "base"

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        """
        Embed a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector
        """
        pass

    def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed several texts, preserving order.

        Providers with a batch endpoint override this.
        """
        return [self.embed(text) for text in texts]

    def close(self) -> None:
        """Release any held resources."""
        pass
