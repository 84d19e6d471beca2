"""
Hashing embedding provider.

Deterministic, offline feature hashing of word tokens. Useful for local
runs without an embedding server and as a reproducible provider in tests.
"""

import hashlib
import math
import re
from typing import List

from ..core.exceptions import InvalidArgumentError
from .base import EmbeddingProvider


TOKEN_PATTERN = re.compile(r"\w+", re.UNICODE)


class HashingEmbeddingProvider(EmbeddingProvider):
    """
    Maps lower-cased word tokens into a fixed number of signed buckets.

    Texts sharing words get positive cosine similarity; identical texts get
    identical vectors. Text with no word tokens maps to the zero vector.
    """

    name = "hashing"

    def __init__(self, dimension: int = 256):
        if dimension <= 0:
            raise InvalidArgumentError(
                f"dimension must be positive, got {dimension}", field="dimension"
            )
        self.dimension = dimension

    def embed(self, text: str) -> List[float]:
        vector = [0.0] * self.dimension
        for token in TOKEN_PATTERN.findall(text.lower()):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:8], "big") % self.dimension
            sign = 1.0 if digest[8] & 1 else -1.0
            vector[bucket] += sign

        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]
