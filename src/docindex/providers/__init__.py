"""
Embedding providers.

- ollama: HTTP client for an Ollama server (default)
- hashing: deterministic offline feature hashing
"""

import logging

from ..core.config import DocIndexConfig
from ..core.exceptions import ConfigError
from .base import EmbeddingProvider
from .hashing import HashingEmbeddingProvider
from .ollama_client import OllamaEmbeddingClient


logger = logging.getLogger(__name__)


def create_embedding_provider(config: DocIndexConfig) -> EmbeddingProvider:
    """
    Build the embedding provider named by the config.

    Raises:
        ConfigError: If the provider name is unknown
    """
    if config.embed_provider == "ollama":
        logger.debug(f"Using Ollama embeddings ({config.embed_model})")
        return OllamaEmbeddingClient(
            base_url=config.ollama_base_url,
            model=config.embed_model,
            timeout_seconds=config.embed_timeout_seconds,
        )
    if config.embed_provider == "hashing":
        logger.debug(f"Using hashing embeddings (dimension={config.hashing_dimension})")
        return HashingEmbeddingProvider(dimension=config.hashing_dimension)

    raise ConfigError(
        f"Unknown embed provider: {config.embed_provider}. "
        "Supported providers: 'ollama', 'hashing'"
    )


__all__ = [
    "EmbeddingProvider",
    "HashingEmbeddingProvider",
    "OllamaEmbeddingClient",
    "create_embedding_provider",
]
