"""
In-memory retrieval store.

State lives in an immutable snapshot. Writers build a new snapshot under a
short commit lock and publish it with a single reference assignment; readers
take the current reference and never lock.
"""

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Tuple

from ..contracts.retrieval_contracts import ChunkRecord, DocumentRecord, SearchHit
from ..core.exceptions import InvalidArgumentError, NotFoundError
from ..retrieval.search import rank_chunks
from .base import ChunkInput, RetrievalStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Snapshot:
    documents: Mapping[str, DocumentRecord]
    chunks: Mapping[str, Tuple[ChunkRecord, ...]]
    dimension: Optional[int]


class InMemoryRetrievalStore(RetrievalStore):
    """
    Process-local retrieval store.

    Each instance is independent; tests create one per case.
    """

    def __init__(self, dimension: Optional[int] = None):
        """
        Initialize an empty store.

        Args:
            dimension: Fixed embedding dimension (None: set by first write)
        """
        if dimension is not None and dimension <= 0:
            raise InvalidArgumentError(
                f"dimension must be positive, got {dimension}", field="dimension"
            )
        self._snapshot = _Snapshot(
            documents=MappingProxyType({}),
            chunks=MappingProxyType({}),
            dimension=dimension,
        )
        self._commit_lock = threading.Lock()

    @property
    def dimension(self) -> Optional[int]:
        return self._snapshot.dimension

    def write(
        self,
        document_id: str,
        chunks: Sequence[ChunkInput],
        page_count: Optional[int] = None,
        preview: Optional[str] = None,
    ) -> DocumentRecord:
        texts, vectors = self._prepare_batch(document_id, chunks)
        created = datetime.now(timezone.utc)
        records = tuple(
            ChunkRecord(
                document_id=document_id,
                chunk_index=i,
                text=text,
                embedding=vector,
                created_utc=created,
            )
            for i, (text, vector) in enumerate(zip(texts, vectors))
        )
        document = DocumentRecord(
            document_id=document_id,
            preview=self._default_preview(texts, preview),
            chunk_count=len(records),
            page_count=page_count,
            created_utc=created,
        )

        with self._commit_lock:
            current = self._snapshot
            dimension = self._batch_dimension(vectors, current.dimension)

            documents = dict(current.documents)
            documents[document_id] = document
            chunk_map = dict(current.chunks)
            chunk_map[document_id] = records

            replaced = document_id in current.documents
            self._snapshot = _Snapshot(
                documents=MappingProxyType(documents),
                chunks=MappingProxyType(chunk_map),
                dimension=dimension,
            )

        logger.debug(
            f"Wrote {len(records)} chunks for document {document_id}"
            f"{' (replaced previous version)' if replaced else ''}"
        )
        return dataclasses.replace(document)

    def search(
        self,
        query_embedding: Sequence[float],
        k: int,
        document_id: Optional[str] = None,
    ) -> List[SearchHit]:
        start_time = time.time()
        snapshot = self._snapshot
        query = self._prepare_query(query_embedding, k, snapshot.dimension)

        if document_id is not None:
            candidates = list(snapshot.chunks.get(document_id, ()))
        else:
            candidates = [c for records in snapshot.chunks.values() for c in records]

        hits = rank_chunks(query, candidates, k)
        for hit in hits:
            hit.chunk = _copy_chunk(hit.chunk)

        execution_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            f"Scored {len(candidates)} chunks, returning {len(hits)} in {execution_ms}ms"
        )
        return hits

    def delete_document(self, document_id: str) -> None:
        with self._commit_lock:
            current = self._snapshot
            if document_id not in current.documents:
                raise NotFoundError(document_id)

            documents = dict(current.documents)
            del documents[document_id]
            chunk_map = dict(current.chunks)
            removed = len(chunk_map.pop(document_id, ()))

            self._snapshot = _Snapshot(
                documents=MappingProxyType(documents),
                chunks=MappingProxyType(chunk_map),
                dimension=current.dimension,
            )

        logger.debug(f"Deleted document {document_id} and {removed} chunks")

    def get_document(self, document_id: str) -> Optional[DocumentRecord]:
        document = self._snapshot.documents.get(document_id)
        return dataclasses.replace(document) if document else None

    def list_documents(self) -> List[DocumentRecord]:
        documents = self._snapshot.documents
        return [dataclasses.replace(documents[key]) for key in sorted(documents)]

    def get_chunks(self, document_id: str) -> List[ChunkRecord]:
        return [_copy_chunk(c) for c in self._snapshot.chunks.get(document_id, ())]

    def count_chunks(self) -> int:
        return sum(len(records) for records in self._snapshot.chunks.values())


def _copy_chunk(chunk: ChunkRecord) -> ChunkRecord:
    return dataclasses.replace(chunk, embedding=list(chunk.embedding))
