"""
Retrieval module.

This module provides:
- Chunking: Split documents into overlapping windows
- Search: Cosine scoring and deterministic top-K ranking
"""

from .chunker import Chunker, chunk_text, merge_chunks
from .search import cosine_similarity, rank_chunks

__all__ = [
    "Chunker",
    "chunk_text",
    "merge_chunks",
    "cosine_similarity",
    "rank_chunks",
]
