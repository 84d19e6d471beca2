"""
Retrieval Search - score and rank stored chunks against a query.

Implements:
- Cosine similarity scoring (zero vectors score 0.0)
- Embedding validation shared by the store backends
- Top-K ranking with deterministic tie-breaks on (document_id, chunk_index)

Scoring is a brute-force scan over every candidate. An approximate
nearest-neighbour index would replace rank_chunks behind the same store
``search`` contract.
"""

import logging
import math
from typing import Iterable, List, Optional, Sequence

from ..contracts.retrieval_contracts import ChunkRecord, SearchHit
from ..core.exceptions import DimensionMismatchError, InvalidArgumentError

logger = logging.getLogger(__name__)


def vector_norm(vec: Sequence[float]) -> float:
    """Euclidean (L2) norm of a vector."""
    return math.sqrt(sum(v * v for v in vec))


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Compute cosine similarity between two vectors.

    Args:
        vec_a: First vector
        vec_b: Second vector

    Returns:
        Cosine similarity score between -1 and 1; 0.0 if either vector has
        zero norm

    Raises:
        DimensionMismatchError: If vectors have different lengths
    """
    if len(vec_a) != len(vec_b):
        raise DimensionMismatchError(expected=len(vec_a), actual=len(vec_b))

    return _score(vec_a, vector_norm(vec_a), vec_b)


def validate_embedding(vector: Sequence[float], field: str = "embedding") -> List[float]:
    """
    Check that a vector is non-empty and finite, and return it as a float list.

    Raises:
        InvalidArgumentError: If the vector is empty or has non-finite values
    """
    if vector is None or len(vector) == 0:
        raise InvalidArgumentError(f"{field} cannot be empty", field=field)

    values = []
    for v in vector:
        try:
            value = float(v)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(
                f"{field} contains a non-numeric value: {v!r}", field=field
            ) from e
        if not math.isfinite(value):
            raise InvalidArgumentError(
                f"{field} contains a non-finite value: {value}", field=field
            )
        values.append(value)
    return values


def check_dimension(
    vector: Sequence[float],
    expected: Optional[int],
    field: str = "embedding",
) -> None:
    """
    Raise DimensionMismatchError if expected is set and the length differs.
    """
    if expected is not None and len(vector) != expected:
        raise DimensionMismatchError(expected=expected, actual=len(vector), field=field)


def rank_chunks(
    query_embedding: Sequence[float],
    candidates: Iterable[ChunkRecord],
    k: int,
) -> List[SearchHit]:
    """
    Return the top-k chunks for a query.

    Results are ordered by descending score; ties are broken by ascending
    (document_id, chunk_index) so identical inputs give identical output.

    Args:
        query_embedding: Query vector (already validated against the store)
        candidates: Chunk records to score
        k: Maximum number of hits

    Returns:
        List of SearchHit with 1-indexed ranks
    """
    if k <= 0:
        raise InvalidArgumentError(f"k must be positive, got {k}", field="k")

    query_norm = vector_norm(query_embedding)

    scored = []
    for chunk in candidates:
        scored.append((_score(query_embedding, query_norm, chunk.embedding), chunk))

    scored.sort(key=lambda item: (-item[0], item[1].document_id, item[1].chunk_index))

    return [
        SearchHit(chunk=chunk, score=score, rank=rank)
        for rank, (score, chunk) in enumerate(scored[:k], start=1)
    ]


def _score(query: Sequence[float], query_norm: float, vector: Sequence[float]) -> float:
    """Cosine score with the query norm computed once per search."""
    if query_norm == 0:
        return 0.0
    norm = vector_norm(vector)
    if norm == 0:
        return 0.0
    dot_product = sum(a * b for a, b in zip(query, vector))
    # rounding can push identical vectors a hair past 1.0
    return max(-1.0, min(1.0, dot_product / (query_norm * norm)))
