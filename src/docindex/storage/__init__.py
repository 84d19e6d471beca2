"""
Retrieval store implementations.

The default backend is the in-memory store. The SQLite store persists
documents across processes.

To select a backend, set the DOCINDEX_STORE_BACKEND environment variable:
    - DOCINDEX_STORE_BACKEND=memory (default)
    - DOCINDEX_STORE_BACKEND=sqlite
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..core.exceptions import ConfigError
from .base import RetrievalStore
from .memory_store import InMemoryRetrievalStore
from .sqlite_store import SqliteRetrievalStore


logger = logging.getLogger(__name__)

DEFAULT_SQLITE_PATH = Path("local/docindex/docindex.db")


def create_retrieval_store(
    backend: Optional[str] = None,
    db_path: Optional[Union[str, Path]] = None,
    dimension: Optional[int] = None,
) -> RetrievalStore:
    """
    Factory function to create the retrieval store for a backend name.

    Args:
        backend: 'memory' or 'sqlite'. Defaults to DOCINDEX_STORE_BACKEND or 'memory'.
        db_path: SQLite database file (sqlite backend only)
        dimension: Fixed embedding dimension (None: set by first write)

    Returns:
        RetrievalStore instance

    Raises:
        ConfigError: If backend is not recognized
    """
    if backend is None:
        backend = os.environ.get("DOCINDEX_STORE_BACKEND", "memory")
    backend = backend.lower()

    if backend == "memory":
        logger.debug("Using in-memory retrieval store")
        return InMemoryRetrievalStore(dimension=dimension)

    if backend == "sqlite":
        path = Path(db_path) if db_path is not None else DEFAULT_SQLITE_PATH
        logger.debug(f"Using SQLite retrieval store at {path}")
        return SqliteRetrievalStore(db_path=path, dimension=dimension)

    raise ConfigError(
        f"Unknown store backend: {backend}. "
        "Supported backends: 'memory' (default), 'sqlite'"
    )


__all__ = [
    "RetrievalStore",
    "InMemoryRetrievalStore",
    "SqliteRetrievalStore",
    "create_retrieval_store",
]
