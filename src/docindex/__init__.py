"""
Document Index

Turns plain-text documents into searchable semantic chunks: text is split
into overlapping windows, each window is embedded, and similarity queries
rank the stored chunks against a query embedding.

Key components:
- contracts/: Record types for chunks, documents and search hits
- core/: Exceptions, configuration and logging utilities
- providers/: Embedding providers (Ollama, offline hashing)
- retrieval/: Chunking, similarity ranking and the DocumentIndex workflow
- storage/: Retrieval stores (in-memory, SQLite)
"""

__version__ = "0.1.0"

from .contracts import ChunkingPolicy, ChunkRecord, DocumentRecord, SearchHit, TextChunk
from .core.config import DocIndexConfig
from .core.exceptions import (
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
from .providers import EmbeddingProvider, HashingEmbeddingProvider, OllamaEmbeddingClient
from .retrieval import chunk_text, cosine_similarity, merge_chunks
from .retrieval.document_index import DocumentIndex
from .storage import (
    InMemoryRetrievalStore,
    RetrievalStore,
    SqliteRetrievalStore,
    create_retrieval_store,
)

__all__ = [
    "ChunkingPolicy",
    "ChunkRecord",
    "DocumentRecord",
    "SearchHit",
    "TextChunk",
    "DocIndexConfig",
    "ConfigError",
    "DimensionMismatchError",
    "DocIndexError",
    "EmbeddingProviderError",
    "InvalidArgumentError",
    "NotFoundError",
    "ProviderUnavailableError",
    "RateLimitedError",
    "StorageError",
    "EmbeddingProvider",
    "HashingEmbeddingProvider",
    "OllamaEmbeddingClient",
    "chunk_text",
    "cosine_similarity",
    "merge_chunks",
    "DocumentIndex",
    "InMemoryRetrievalStore",
    "RetrievalStore",
    "SqliteRetrievalStore",
    "create_retrieval_store",
]
