"""
Shared test fixtures and configuration for pytest.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Generator

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docindex.providers import HashingEmbeddingProvider
from docindex.storage import InMemoryRetrievalStore, RetrievalStore, SqliteRetrievalStore


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (filesystem, threads)")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep DOCINDEX_* and OLLAMA_* variables from the shell out of tests."""
    for name in list(os.environ):
        if name.startswith("DOCINDEX_") or name.startswith("OLLAMA_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def hashing_provider() -> HashingEmbeddingProvider:
    """Deterministic offline embedding provider."""
    return HashingEmbeddingProvider(dimension=64)


@pytest.fixture
def memory_store() -> Generator[InMemoryRetrievalStore, None, None]:
    store = InMemoryRetrievalStore()
    yield store
    store.close()


@pytest.fixture
def sqlite_store(tmp_path) -> Generator[SqliteRetrievalStore, None, None]:
    """SQLite store backed by a file under the test's tmp_path."""
    store = SqliteRetrievalStore(db_path=tmp_path / "docindex.db")
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path) -> Generator[RetrievalStore, None, None]:
    """Runs a behaviour test once per store backend."""
    if request.param == "memory":
        instance: RetrievalStore = InMemoryRetrievalStore()
    else:
        instance = SqliteRetrievalStore(db_path=tmp_path / "docindex.db")
    yield instance
    instance.close()


@pytest.fixture
def store_factory(tmp_path):
    """
    Build stores of a given backend with extra constructor arguments.

    Stores created through the factory are closed after the test.
    """
    created = []

    def _make(backend: str, **kwargs) -> RetrievalStore:
        if backend == "memory":
            instance = InMemoryRetrievalStore(**kwargs)
        else:
            instance = SqliteRetrievalStore(db_path=tmp_path / "factory.db", **kwargs)
        created.append(instance)
        return instance

    yield _make

    for instance in created:
        instance.close()


@pytest.fixture
def package_logger() -> Generator[logging.Logger, None, None]:
    """Restore the docindex logger's handlers and level after the test."""
    package = logging.getLogger("docindex")
    handlers = list(package.handlers)
    level = package.level
    yield package
    package.handlers = handlers
    package.setLevel(level)
