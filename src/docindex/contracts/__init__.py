"""
Contract models shared by the chunker, the stores and the document index.
"""

from .retrieval_contracts import (
    ChunkingPolicy,
    ChunkRecord,
    DocumentRecord,
    SearchHit,
    TextChunk,
)

__all__ = [
    "ChunkingPolicy",
    "ChunkRecord",
    "DocumentRecord",
    "SearchHit",
    "TextChunk",
]
