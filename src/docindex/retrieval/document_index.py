"""
Document Index - ingest documents and answer similarity queries.

Workflow:
1. ingest: chunk text -> embed every chunk -> write chunks and metadata
2. query: embed query text -> search the store -> ranked hits
3. delete_document: remove metadata and chunks together

Embeddings are always computed before the store is touched, so no store
lock is held while the provider call is in flight. Provider failures
propagate to the caller unchanged; nothing here retries.
"""

import logging
import time
from typing import List, Optional

from ..contracts.retrieval_contracts import ChunkingPolicy, DocumentRecord, SearchHit
from ..core.config import DocIndexConfig
from ..core.exceptions import (
    EmbeddingProviderError,
    InvalidArgumentError,
    NotFoundError,
)
from ..core.logging import CorrelationContext, log_with_context
from ..providers import EmbeddingProvider, create_embedding_provider
from ..storage import RetrievalStore, create_retrieval_store
from .chunker import Chunker


logger = logging.getLogger(__name__)


class DocumentIndex:
    """
    Composes a chunker, an embedding provider and a retrieval store.

    Example:
        >>> index = DocumentIndex(InMemoryRetrievalStore(), HashingEmbeddingProvider())
        >>> index.ingest("handbook", "Employees accrue leave monthly ...")
        >>> hits = index.query("how is leave accrued?", k=3)
    """

    def __init__(
        self,
        store: RetrievalStore,
        provider: EmbeddingProvider,
        policy: Optional[ChunkingPolicy] = None,
        top_k: int = 5,
        preview_length: int = 200,
    ):
        """
        Initialize the document index.

        Args:
            store: Retrieval store holding documents and chunks
            provider: Embedding provider
            policy: Chunking policy (uses default if not provided)
            top_k: Default number of hits for query()
            preview_length: Characters of source text kept as preview
        """
        if top_k <= 0:
            raise InvalidArgumentError(f"top_k must be positive, got {top_k}", field="top_k")
        self.store = store
        self.provider = provider
        self.chunker = Chunker(policy)
        self.top_k = top_k
        self.preview_length = preview_length

    @classmethod
    def from_config(cls, config: DocIndexConfig) -> "DocumentIndex":
        """Build store, provider and index from configuration."""
        config.validate()
        store = create_retrieval_store(
            backend=config.store_backend,
            db_path=config.sqlite_path,
            dimension=config.embedding_dim,
        )
        provider = create_embedding_provider(config)
        return cls(
            store=store,
            provider=provider,
            policy=config.chunking_policy(),
            top_k=config.top_k,
            preview_length=config.preview_length,
        )

    def ingest(
        self,
        document_id: str,
        text: str,
        page_count: Optional[int] = None,
    ) -> DocumentRecord:
        """
        Chunk, embed and store a document.

        Re-ingesting an existing document replaces all of its previous
        chunks in the same commit that writes the new ones.

        Args:
            document_id: Document identifier
            text: Plain text of the document
            page_count: Optional page count reported by the text extractor

        Returns:
            The stored DocumentRecord

        Raises:
            InvalidArgumentError: Empty document id
            ProviderUnavailableError, RateLimitedError: Embedding call failed
            DimensionMismatchError: Provider vectors disagree with the store
        """
        _require_text(document_id, "document_id")
        start_time = time.time()

        with CorrelationContext(document_id=document_id, operation="ingest"):
            chunks = self.chunker.chunk(text)
            log_with_context(
                logger, logging.DEBUG,
                f"Chunked {len(text)} characters into {len(chunks)} chunks",
            )

            chunk_texts = [c.text for c in chunks]
            vectors = self._embed(chunk_texts)

            document = self.store.write(
                document_id,
                list(zip(chunk_texts, vectors)),
                page_count=page_count,
                preview=text[:self.preview_length],
            )

            execution_ms = int((time.time() - start_time) * 1000)
            log_with_context(
                logger, logging.INFO,
                f"Ingested document with {document.chunk_count} chunks in {execution_ms}ms",
            )
        return document

    def query(
        self,
        query_text: str,
        k: Optional[int] = None,
        document_id: Optional[str] = None,
    ) -> List[SearchHit]:
        """
        Return the chunks most similar to a query.

        Args:
            query_text: Query text
            k: Maximum number of hits (defaults to top_k)
            document_id: Restrict the search to one document

        Returns:
            Hits ordered by descending score

        Raises:
            InvalidArgumentError: Empty query text or k <= 0
            NotFoundError: document_id names an unknown document
            ProviderUnavailableError, RateLimitedError: Embedding call failed
        """
        _require_text(query_text, "query_text")
        k = self.top_k if k is None else k
        if k <= 0:
            raise InvalidArgumentError(f"k must be positive, got {k}", field="k")
        if document_id is not None and self.store.get_document(document_id) is None:
            raise NotFoundError(document_id)

        start_time = time.time()
        with CorrelationContext(document_id=document_id, operation="query"):
            query_embedding = self._embed([query_text])[0]
            hits = self.store.search(query_embedding, k, document_id=document_id)

            execution_ms = int((time.time() - start_time) * 1000)
            log_with_context(
                logger, logging.INFO,
                f"Query returned {len(hits)} hits in {execution_ms}ms "
                f"(query: {query_text[:50]})",
            )
        return hits

    def delete_document(self, document_id: str) -> None:
        """
        Remove a document and all of its chunks.

        Raises:
            NotFoundError: If the document does not exist
        """
        with CorrelationContext(document_id=document_id, operation="delete"):
            self.store.delete_document(document_id)
            log_with_context(logger, logging.INFO, "Deleted document")

    def get_document(self, document_id: str) -> DocumentRecord:
        """
        Return a document's metadata record.

        Raises:
            NotFoundError: If the document does not exist
        """
        document = self.store.get_document(document_id)
        if document is None:
            raise NotFoundError(document_id)
        return document

    def list_documents(self) -> List[DocumentRecord]:
        return self.store.list_documents()

    def close(self) -> None:
        self.provider.close()
        self.store.close()

    def __enter__(self) -> "DocumentIndex":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        try:
            vectors = self.provider.embed_many(texts)
        except EmbeddingProviderError as e:
            log_with_context(
                logger, logging.ERROR,
                f"Embedding provider {self.provider.name} failed: {e}",
                provider=self.provider.name,
            )
            raise
        if len(vectors) != len(texts):
            raise EmbeddingProviderError(
                f"Provider returned {len(vectors)} embeddings for {len(texts)} texts",
                provider=self.provider.name,
            )
        return vectors


def _require_text(value: str, field: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{field} cannot be empty", field=field)
