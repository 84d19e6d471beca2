"""
Ollama embedding provider.

Thin HTTP client for Ollama's /api/embed endpoint.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..core.exceptions import (
    EmbeddingProviderError,
    ProviderUnavailableError,
    RateLimitedError,
)
from .base import EmbeddingProvider


logger = logging.getLogger(__name__)


class OllamaEmbeddingClient(EmbeddingProvider):
    """
    HTTP client for Ollama embeddings.

    Sends every batch as one request; Ollama accepts a list of inputs and
    returns one vector per input in the same order.

    Example:
        >>> client = OllamaEmbeddingClient(model="nomic-embed-text")
        >>> vectors = client.embed_many(["Hello world", "Test text"])
        >>> len(vectors)
        2
    """

    name = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout_seconds: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Ollama client.

        Args:
            base_url: Base URL of the Ollama server
            model: Embedding model name
            timeout_seconds: Per-request timeout
            session: Optional requests session (one is created if omitted)
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout_seconds
        self.session = session or requests.Session()

        logger.debug(
            f"Initialized OllamaEmbeddingClient: base_url={self.base_url}, "
            f"model={self.model}, timeout={self.timeout}s"
        )

    def embed(self, text: str) -> List[float]:
        """Embed a single text."""
        return self.embed_many([text])[0]

    def embed_many(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed a list of texts with one /api/embed request.

        Raises:
            ProviderUnavailableError: Ollama unreachable, timed out or 5xx
            RateLimitedError: Ollama answered 429
            EmbeddingProviderError: Any other error or malformed response
        """
        if not texts:
            return []

        url = f"{self.base_url}/api/embed"
        payload = {
            "model": self.model,
            "input": list(texts),
        }

        logger.debug(f"Making embedding request to {url} for {len(texts)} inputs")

        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error(f"Ollama embed request timed out after {self.timeout}s: {e}")
            raise ProviderUnavailableError(
                f"Ollama at {self.base_url} timed out after {self.timeout}s",
                provider=self.name,
            ) from e
        except requests.ConnectionError as e:
            logger.error(f"Failed to connect to Ollama for embedding: {e}")
            raise ProviderUnavailableError(
                f"Failed to connect to Ollama at {self.base_url}: {e}",
                provider=self.name,
            ) from e
        except requests.RequestException as e:
            logger.error(f"Unexpected error calling Ollama embed: {e}")
            raise EmbeddingProviderError(
                f"Unexpected error calling Ollama embed: {e}",
                provider=self.name,
            ) from e

        self._raise_for_status(response)

        try:
            result = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Invalid JSON response from Ollama embed: {e}")
            raise EmbeddingProviderError(
                f"Invalid JSON response from Ollama embed: {e}",
                provider=self.name,
                status_code=response.status_code,
            ) from e

        return self._parse_embeddings(result, expected=len(texts))

    def health_check(self) -> bool:
        """
        Check if Ollama is reachable and the model is available.

        Returns:
            True if Ollama is healthy, False otherwise
        """
        try:
            response = self.session.get(f"{self.base_url}/api/tags", timeout=10)
        except requests.RequestException as e:
            logger.warning(f"Health check failed: {e}")
            return False

        if response.status_code != 200:
            logger.warning(f"Health check failed: HTTP {response.status_code}")
            return False

        names = [m.get("name", "") for m in response.json().get("models", [])]
        if self.model in names or self.model.split(":")[0] in [n.split(":")[0] for n in names]:
            return True

        logger.warning(f"Model {self.model} not found. Available: {names}")
        return False

    def close(self) -> None:
        self.session.close()

    def _raise_for_status(self, response: requests.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        body = response.text
        if status == 429:
            retry_after = _parse_retry_after(response.headers.get("Retry-After"))
            logger.error(f"Ollama embed rate limited (retry_after={retry_after})")
            raise RateLimitedError(
                f"Ollama embed API rate limited: {body}",
                provider=self.name,
                retry_after=retry_after,
            )

        logger.error(f"HTTP error from Ollama embed: {status} - {body}")
        if status >= 500:
            raise ProviderUnavailableError(
                f"Ollama embed API error: {status} - {body}",
                provider=self.name,
                status_code=status,
            )
        raise EmbeddingProviderError(
            f"Ollama embed API error: {status} - {body}",
            provider=self.name,
            status_code=status,
        )

    def _parse_embeddings(self, result: Dict[str, Any], expected: int) -> List[List[float]]:
        embeddings = result.get("embeddings") if isinstance(result, dict) else None
        if not isinstance(embeddings, list):
            raise EmbeddingProviderError(
                "Ollama embed response has no 'embeddings' list",
                provider=self.name,
            )
        if len(embeddings) != expected:
            raise EmbeddingProviderError(
                f"Ollama returned {len(embeddings)} embeddings for {expected} inputs",
                provider=self.name,
            )
        try:
            return [_to_vector(vector) for vector in embeddings]
        except (TypeError, ValueError) as e:
            logger.error(f"Malformed vector in Ollama embed response: {e}")
            raise EmbeddingProviderError(
                f"Ollama embed response has a malformed vector: {e}",
                provider=self.name,
            ) from e


def _to_vector(vector: Any) -> List[float]:
    if not isinstance(vector, list):
        raise TypeError(f"expected a list of numbers, got {type(vector).__name__}")
    return [float(v) for v in vector]


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
