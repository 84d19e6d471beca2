"""
Chunker - Split documents into overlapping windows for embedding.

Implements fixed-size character windows:
- Chunk i starts at i * (chunk_size - overlap)
- Chunking stops once a start offset reaches the end of the text
- Output is a pure function of (text, chunk_size, overlap)
"""

import logging
from typing import List, Optional, Sequence

from ..contracts.retrieval_contracts import ChunkingPolicy, TextChunk

logger = logging.getLogger(__name__)


class Chunker:
    """
    Chunks text content into overlapping windows.

    Example:
        >>> chunker = Chunker(ChunkingPolicy(chunk_size=1000, overlap=100))
        >>> [c.start_offset for c in chunker.chunk("x" * 2500)]
        [0, 900, 1800]
    """

    def __init__(self, policy: Optional[ChunkingPolicy] = None):
        """
        Initialize the chunker.

        Args:
            policy: Chunking policy (uses default if not provided)

        Raises:
            InvalidArgumentError: If the policy parameters are out of range
        """
        self.policy = policy or ChunkingPolicy()
        self.policy.validate()

    def chunk(self, text: str) -> List[TextChunk]:
        """
        Split text into chunks with their source offsets.

        Args:
            text: Text content to chunk

        Returns:
            List of TextChunk objects, empty for empty text
        """
        chunks = [
            TextChunk(
                chunk_index=i,
                start_offset=start,
                end_offset=end,
                text=text[start:end],
            )
            for i, (start, end) in enumerate(
                _window_bounds(len(text), self.policy.chunk_size, self.policy.step)
            )
        ]
        logger.debug(
            f"Created {len(chunks)} chunks from {len(text)} characters "
            f"(chunk_size={self.policy.chunk_size}, overlap={self.policy.overlap})"
        )
        return chunks


def chunk_text(text: str, chunk_size: int = 1000, overlap: int = 100) -> List[str]:
    """
    Split text into overlapping chunks.

    Args:
        text: Text content to chunk
        chunk_size: Size of each chunk in characters
        overlap: Overlap between chunks in characters

    Returns:
        List of chunk strings in source order

    Raises:
        InvalidArgumentError: If chunk_size <= 0, overlap < 0 or overlap >= chunk_size
    """
    chunker = Chunker(ChunkingPolicy(chunk_size=chunk_size, overlap=overlap))
    return [c.text for c in chunker.chunk(text)]


def merge_chunks(chunks: Sequence[str], chunk_size: int, overlap: int) -> str:
    """
    Rebuild the source text from chunks produced with the same parameters.

    Each chunk starts ``chunk_size - overlap`` characters after the previous
    one; only the part of a chunk beyond what is already covered is appended.

    Args:
        chunks: Chunk strings in order
        chunk_size: Chunk size used to produce them
        overlap: Overlap used to produce them

    Returns:
        The reconstructed text
    """
    policy = ChunkingPolicy(chunk_size=chunk_size, overlap=overlap)
    policy.validate()

    parts = []
    covered = 0
    for i, piece in enumerate(chunks):
        start = i * policy.step
        parts.append(piece[max(0, covered - start):])
        covered = max(covered, start + len(piece))
    return "".join(parts)


def _window_bounds(text_len: int, chunk_size: int, step: int):
    start = 0
    while start < text_len:
        yield start, min(start + chunk_size, text_len)
        start += step
