"""
SQLite-based retrieval store.

Persists documents and chunks in a local database file. Each thread gets its
own connection; the database runs in WAL mode so readers never block the
single writer, and every write or delete is one BEGIN IMMEDIATE transaction.
"""

import json
import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from ..contracts.retrieval_contracts import ChunkRecord, DocumentRecord, SearchHit
from ..core.exceptions import (
    DimensionMismatchError,
    InvalidArgumentError,
    NotFoundError,
    StorageError,
)
from ..retrieval.search import rank_chunks
from .base import ChunkInput, RetrievalStore


logger = logging.getLogger(__name__)

DIMENSION_KEY = "dimension"


class SqliteRetrievalStore(RetrievalStore):
    """
    SQLite-based implementation of the retrieval store.

    Tables:
    - documents: one row per document (metadata)
    - chunks: one row per (document_id, chunk_index), embedding as JSON array
    - store_meta: key/value settings, holds the established dimension
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        dimension: Optional[int] = None,
        auto_init: bool = True,
        timeout_seconds: float = 30.0,
    ):
        """
        Initialize the SQLite retrieval store.

        Args:
            db_path: Path to the SQLite database file
            dimension: Fixed embedding dimension (None: set by first write)
            auto_init: Whether to create tables automatically
            timeout_seconds: How long a writer waits for the database lock

        Raises:
            DimensionMismatchError: If dimension disagrees with the one
                already stored in the database
        """
        if str(db_path) == ":memory:":
            raise InvalidArgumentError(
                "SqliteRetrievalStore needs a database file; use "
                "InMemoryRetrievalStore for a process-local store",
                field="db_path",
            )
        if dimension is not None and dimension <= 0:
            raise InvalidArgumentError(
                f"dimension must be positive, got {dimension}", field="dimension"
            )

        self.db_path = Path(db_path)
        self.timeout_seconds = timeout_seconds
        self._thread_local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        if auto_init:
            self._init_schema(dimension)

    def _connect(self) -> sqlite3.Connection:
        """Return this thread's connection, opening it on first use."""
        conn = getattr(self._thread_local, "conn", None)
        if conn is not None:
            return conn

        try:
            conn = sqlite3.connect(
                str(self.db_path),
                timeout=self.timeout_seconds,
                isolation_level=None,
                check_same_thread=False,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open SQLite store at {self.db_path}: {e}") from e

        self._thread_local.conn = conn
        with self._connections_lock:
            self._connections.append(conn)

        logger.debug(f"Connected to SQLite retrieval store: {self.db_path}")
        return conn

    @contextmanager
    def _transaction(self, immediate: bool = False) -> Iterator[sqlite3.Connection]:
        """
        Run a block in one transaction, rolling back on any exception.

        IMMEDIATE takes the write lock up front so concurrent writers queue
        instead of failing at commit time.
        """
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
        except sqlite3.Error as e:
            raise StorageError(f"Cannot start transaction: {e}") from e

        try:
            yield conn
        except sqlite3.Error as e:
            conn.execute("ROLLBACK")
            logger.error(f"SQLite error, transaction rolled back: {e}")
            raise StorageError(f"SQLite error: {e}") from e
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        else:
            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                conn.execute("ROLLBACK")
                raise StorageError(f"Commit failed: {e}") from e

    def _init_schema(self, dimension: Optional[int]) -> None:
        """Initialize database schema and reconcile the configured dimension."""
        with self._transaction(immediate=True) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    document_id TEXT PRIMARY KEY,
                    preview TEXT NOT NULL,
                    chunk_count INTEGER NOT NULL,
                    page_count INTEGER,
                    created_utc TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS chunks (
                    document_id TEXT NOT NULL,
                    chunk_index INTEGER NOT NULL,
                    text TEXT NOT NULL,
                    embedding_json TEXT NOT NULL,
                    created_utc TEXT NOT NULL,
                    PRIMARY KEY (document_id, chunk_index)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS store_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            if dimension is not None:
                stored = self._read_dimension(conn)
                if stored is None:
                    self._write_dimension(conn, dimension)
                elif stored != dimension:
                    raise DimensionMismatchError(
                        expected=stored, actual=dimension, field="dimension"
                    )

        logger.debug("Initialized retrieval store schema")

    @property
    def dimension(self) -> Optional[int]:
        with self._transaction() as conn:
            return self._read_dimension(conn)

    def write(
        self,
        document_id: str,
        chunks: Sequence[ChunkInput],
        page_count: Optional[int] = None,
        preview: Optional[str] = None,
    ) -> DocumentRecord:
        texts, vectors = self._prepare_batch(document_id, chunks)
        created = datetime.now(timezone.utc)
        document = DocumentRecord(
            document_id=document_id,
            preview=self._default_preview(texts, preview),
            chunk_count=len(texts),
            page_count=page_count,
            created_utc=created,
        )
        rows = [
            (document_id, i, text, json.dumps(vector), created.isoformat())
            for i, (text, vector) in enumerate(zip(texts, vectors))
        ]

        with self._transaction(immediate=True) as conn:
            established = self._read_dimension(conn)
            dimension = self._batch_dimension(vectors, established)

            conn.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
            conn.execute("DELETE FROM documents WHERE document_id = ?", (document_id,))
            conn.execute(
                """
                INSERT INTO documents (document_id, preview, chunk_count, page_count, created_utc)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    document.document_id,
                    document.preview,
                    document.chunk_count,
                    document.page_count,
                    created.isoformat(),
                ),
            )
            conn.executemany(
                """
                INSERT INTO chunks (document_id, chunk_index, text, embedding_json, created_utc)
                VALUES (?, ?, ?, ?, ?)
                """,
                rows,
            )

            if established is None and dimension is not None:
                self._write_dimension(conn, dimension)

        logger.debug(f"Wrote {len(rows)} chunks for document {document_id}")
        return document

    def search(
        self,
        query_embedding: Sequence[float],
        k: int,
        document_id: Optional[str] = None,
    ) -> List[SearchHit]:
        start_time = time.time()

        with self._transaction() as conn:
            query = self._prepare_query(query_embedding, k, self._read_dimension(conn))
            if document_id is not None:
                cursor = conn.execute(
                    "SELECT * FROM chunks WHERE document_id = ?", (document_id,)
                )
            else:
                cursor = conn.execute("SELECT * FROM chunks")
            candidates = [self._row_to_chunk(row) for row in cursor.fetchall()]

        hits = rank_chunks(query, candidates, k)

        execution_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            f"Scored {len(candidates)} chunks, returning {len(hits)} in {execution_ms}ms"
        )
        return hits

    def delete_document(self, document_id: str) -> None:
        with self._transaction(immediate=True) as conn:
            row = conn.execute(
                "SELECT 1 FROM documents WHERE document_id = ?", (document_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError(document_id)

            removed = conn.execute(
                "DELETE FROM chunks WHERE document_id = ?", (document_id,)
            ).rowcount
            conn.execute("DELETE FROM documents WHERE document_id = ?", (document_id,))

        logger.debug(f"Deleted document {document_id} and {removed} chunks")

    def get_document(self, document_id: str) -> Optional[DocumentRecord]:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM documents WHERE document_id = ?", (document_id,)
            ).fetchone()
        return self._row_to_document(row) if row else None

    def list_documents(self) -> List[DocumentRecord]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM documents ORDER BY document_id"
            ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def get_chunks(self, document_id: str) -> List[ChunkRecord]:
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM chunks WHERE document_id = ? ORDER BY chunk_index",
                (document_id,),
            ).fetchall()
        return [self._row_to_chunk(row) for row in rows]

    def count_chunks(self) -> int:
        with self._transaction() as conn:
            return conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]

    def close(self) -> None:
        """Close every connection opened by this store."""
        with self._connections_lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
        self._thread_local = threading.local()
        logger.debug(f"Closed SQLite retrieval store: {self.db_path}")

    def _read_dimension(self, conn: sqlite3.Connection) -> Optional[int]:
        row = conn.execute(
            "SELECT value FROM store_meta WHERE key = ?", (DIMENSION_KEY,)
        ).fetchone()
        return int(row["value"]) if row else None

    def _write_dimension(self, conn: sqlite3.Connection, dimension: int) -> None:
        conn.execute(
            "INSERT INTO store_meta (key, value) VALUES (?, ?)",
            (DIMENSION_KEY, str(dimension)),
        )

    @staticmethod
    def _row_to_chunk(row: sqlite3.Row) -> ChunkRecord:
        return ChunkRecord(
            document_id=row["document_id"],
            chunk_index=row["chunk_index"],
            text=row["text"],
            embedding=json.loads(row["embedding_json"]),
            created_utc=datetime.fromisoformat(row["created_utc"]),
        )

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> DocumentRecord:
        return DocumentRecord(
            document_id=row["document_id"],
            preview=row["preview"],
            chunk_count=row["chunk_count"],
            page_count=row["page_count"],
            created_utc=datetime.fromisoformat(row["created_utc"]),
        )
