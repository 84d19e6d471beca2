"""
Retrieval store interface for persisting chunks and answering similarity queries.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from ..contracts.retrieval_contracts import ChunkRecord, DocumentRecord, SearchHit
from ..core.exceptions import DimensionMismatchError, InvalidArgumentError
from ..retrieval.search import check_dimension, validate_embedding


DEFAULT_PREVIEW_LENGTH = 200

ChunkInput = Tuple[str, Sequence[float]]


class RetrievalStore(ABC):
    """
    Abstract base class for retrieval stores.

    A store holds two collections: one DocumentRecord per document and the
    document's ChunkRecords. Both are written and deleted together in a single
    commit, so a concurrent reader sees either all of a document or none of it.

    All embeddings in a store share one dimension. It is fixed at
    construction or by the first write that carries at least one chunk.
    """

    @property
    @abstractmethod
    def dimension(self) -> Optional[int]:
        """Established embedding dimension, or None before the first write."""
        pass

    @abstractmethod
    def write(
        self,
        document_id: str,
        chunks: Sequence[ChunkInput],
        page_count: Optional[int] = None,
        preview: Optional[str] = None,
    ) -> DocumentRecord:
        """
        Store a document's chunks, replacing any previous records for it.

        Args:
            document_id: Owning document identifier
            chunks: Ordered (text, embedding) pairs; position becomes chunk_index
            page_count: Optional page count of the source
            preview: Document preview (defaults to the start of the first chunk)

        Returns:
            The stored DocumentRecord

        Raises:
            InvalidArgumentError: Empty document id or malformed embedding
            DimensionMismatchError: An embedding length differs from the store
                dimension; nothing is written
        """
        pass

    @abstractmethod
    def search(
        self,
        query_embedding: Sequence[float],
        k: int,
        document_id: Optional[str] = None,
    ) -> List[SearchHit]:
        """
        Return the k chunks most similar to the query.

        Args:
            query_embedding: Query vector
            k: Maximum number of hits (must be positive)
            document_id: Restrict the search to one document

        Returns:
            Hits ordered by descending score, ties by (document_id, chunk_index);
            empty if nothing is stored or nothing matches the filter

        Raises:
            InvalidArgumentError: k <= 0 or malformed query vector
            DimensionMismatchError: Query length differs from the store dimension
        """
        pass

    @abstractmethod
    def delete_document(self, document_id: str) -> None:
        """
        Remove a document's metadata and all of its chunks.

        Raises:
            NotFoundError: If the document does not exist
        """
        pass

    @abstractmethod
    def get_document(self, document_id: str) -> Optional[DocumentRecord]:
        pass

    @abstractmethod
    def list_documents(self) -> List[DocumentRecord]:
        """All document records ordered by document_id."""
        pass

    @abstractmethod
    def get_chunks(self, document_id: str) -> List[ChunkRecord]:
        """A document's chunks ordered by chunk_index (empty if unknown)."""
        pass

    @abstractmethod
    def count_chunks(self) -> int:
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> "RetrievalStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @staticmethod
    def _prepare_batch(
        document_id: str,
        chunks: Sequence[ChunkInput],
    ) -> Tuple[List[str], List[List[float]]]:
        """
        Validate a write batch before any lock is taken.

        Checks the document id, every embedding, and that all embeddings in
        the batch share one length.
        """
        if not isinstance(document_id, str) or not document_id.strip():
            raise InvalidArgumentError("document_id cannot be empty", field="document_id")

        texts: List[str] = []
        vectors: List[List[float]] = []
        for i, (text, embedding) in enumerate(chunks):
            field = f"chunks[{i}].embedding"
            vector = validate_embedding(embedding, field=field)
            if vectors and len(vector) != len(vectors[0]):
                raise DimensionMismatchError(
                    expected=len(vectors[0]), actual=len(vector), field=field
                )
            texts.append(text)
            vectors.append(vector)
        return texts, vectors

    @staticmethod
    def _batch_dimension(
        vectors: List[List[float]],
        established: Optional[int],
    ) -> Optional[int]:
        """
        Check a validated batch against the store dimension.

        Returns the dimension the store has after the batch is written.
        """
        if not vectors:
            return established
        check_dimension(vectors[0], established, field="chunks[0].embedding")
        return established if established is not None else len(vectors[0])

    @staticmethod
    def _prepare_query(
        query_embedding: Sequence[float],
        k: int,
        established: Optional[int],
    ) -> List[float]:
        if k <= 0:
            raise InvalidArgumentError(f"k must be positive, got {k}", field="k")
        query = validate_embedding(query_embedding, field="query_embedding")
        check_dimension(query, established, field="query_embedding")
        return query

    @staticmethod
    def _default_preview(texts: List[str], preview: Optional[str]) -> str:
        if preview is not None:
            return preview
        if not texts:
            return ""
        return texts[0][:DEFAULT_PREVIEW_LENGTH]
