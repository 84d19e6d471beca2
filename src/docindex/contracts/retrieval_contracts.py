"""
Retrieval Contracts - data models for chunking, storage and search.

These models define the structure of chunk records, document metadata
records and search hits exchanged between the chunker, the stores and the
document index.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.exceptions import InvalidArgumentError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return _utcnow()


@dataclass
class ChunkingPolicy:
    """
    Policy for chunking documents into searchable units.

    Attributes:
        chunk_size: Window size in characters
        overlap: Characters shared by consecutive windows
        version: Policy version identifier
    """
    chunk_size: int = 1000
    overlap: int = 100
    version: str = "1.0"

    @property
    def step(self) -> int:
        """Distance between the starts of consecutive chunks."""
        return self.chunk_size - self.overlap

    def validate(self) -> None:
        """
        Check that the step between chunks stays strictly positive.

        Raises:
            InvalidArgumentError: If chunk_size or overlap is not an integer or
                out of range
        """
        for name in ("chunk_size", "overlap"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidArgumentError(
                    f"{name} must be an integer, got {value!r}", field=name
                )
        if self.chunk_size <= 0:
            raise InvalidArgumentError(
                f"chunk_size must be positive, got {self.chunk_size}",
                field="chunk_size",
            )
        if self.overlap < 0:
            raise InvalidArgumentError(
                f"overlap must be non-negative, got {self.overlap}",
                field="overlap",
            )
        if self.overlap >= self.chunk_size:
            raise InvalidArgumentError(
                f"overlap must be less than chunk_size "
                f"({self.overlap} >= {self.chunk_size})",
                field="overlap",
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunk_size": self.chunk_size,
            "overlap": self.overlap,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkingPolicy":
        return cls(
            chunk_size=data.get("chunk_size", 1000),
            overlap=data.get("overlap", 100),
            version=data.get("version", "1.0"),
        )


@dataclass(frozen=True)
class TextChunk:
    """
    A window of source text produced by the chunker.

    Attributes:
        chunk_index: Zero-based position in the chunk sequence
        start_offset: Offset of the first character in the source
        end_offset: Offset one past the last character in the source
        text: The covered substring
    """
    chunk_index: int
    start_offset: int
    end_offset: int
    text: str


@dataclass
class ChunkRecord:
    """
    A stored chunk: the unit of retrieval.

    Attributes:
        document_id: Identifier of the owning document
        chunk_index: Zero-based position within the document's chunks
        text: Literal substring of the source document
        embedding: Embedding vector; its length is the store dimension
        created_utc: When the chunk was written (shared by one batch)
    """
    document_id: str
    chunk_index: int
    text: str
    embedding: List[float]
    created_utc: datetime = field(default_factory=_utcnow)

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "document_id": self.document_id,
            "chunk_index": self.chunk_index,
            "text": self.text,
            "embedding": list(self.embedding),
            "created_utc": self.created_utc.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkRecord":
        """Create from dictionary."""
        return cls(
            document_id=data["document_id"],
            chunk_index=data["chunk_index"],
            text=data["text"],
            embedding=[float(v) for v in data["embedding"]],
            created_utc=_parse_timestamp(data.get("created_utc")),
        )


@dataclass
class DocumentRecord:
    """
    Metadata for one ingested document.

    Attributes:
        document_id: Unique document identifier
        preview: Short preview of the document text
        chunk_count: Number of chunk records stored with the document
        page_count: Page count reported by the text extractor, if any
        created_utc: When the document was written
    """
    document_id: str
    preview: str = ""
    chunk_count: int = 0
    page_count: Optional[int] = None
    created_utc: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "document_id": self.document_id,
            "preview": self.preview,
            "chunk_count": self.chunk_count,
            "page_count": self.page_count,
            "created_utc": self.created_utc.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentRecord":
        """Create from dictionary."""
        return cls(
            document_id=data["document_id"],
            preview=data.get("preview", ""),
            chunk_count=data.get("chunk_count", 0),
            page_count=data.get("page_count"),
            created_utc=_parse_timestamp(data.get("created_utc")),
        )


@dataclass
class SearchHit:
    """
    A single search result.

    Attributes:
        chunk: The matched chunk record
        score: Cosine similarity between query and chunk embedding
        rank: Position in the result ranking (1-indexed)
    """
    chunk: ChunkRecord
    score: float
    rank: int

    def to_dict(self, include_embedding: bool = False) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        chunk = self.chunk.to_dict()
        if not include_embedding:
            chunk.pop("embedding")
        return {
            "rank": self.rank,
            "score": self.score,
            "chunk": chunk,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchHit":
        """Create from dictionary (the chunk must carry its embedding)."""
        return cls(
            chunk=ChunkRecord.from_dict(data["chunk"]),
            score=data["score"],
            rank=data["rank"],
        )


__all__ = [
    "ChunkingPolicy",
    "TextChunk",
    "ChunkRecord",
    "DocumentRecord",
    "SearchHit",
]
