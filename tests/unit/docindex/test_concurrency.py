"""
Concurrency tests for the retrieval stores.

Tests for:
- Concurrent writes of different documents
- Searches running while a document is re-ingested
- Concurrent deletes racing on one document
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from docindex.core.exceptions import NotFoundError


pytestmark = pytest.mark.integration


BATCH_SIZE = 8


def _batch(version: int):
    """A full batch whose every chunk carries the version in its text and vector."""
    return [(f"v{version}-c{i}", [1.0, float(version), float(i)]) for i in range(BATCH_SIZE)]


class TestConcurrentWrites:
    """Writers on different documents."""

    def test_all_documents_visible(self, store):
        documents = [f"doc-{i:02d}" for i in range(16)]

        def write(document_id):
            return store.write(document_id, [(document_id, [1.0, 0.0]), ("tail", [0.0, 1.0])])

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(write, documents))

        assert [r.document_id for r in results] == documents
        assert [d.document_id for d in store.list_documents()] == documents
        assert store.count_chunks() == 2 * len(documents)

    def test_concurrent_reingest_of_one_document_never_mixes_batches(self, store):
        """Whichever write commits last wins in full."""
        with ThreadPoolExecutor(max_workers=4) as executor:
            list(executor.map(lambda v: store.write("doc", _batch(v)), range(1, 9)))

        chunks = store.get_chunks("doc")
        versions = {c.text.split("-")[0] for c in chunks}

        assert len(chunks) == BATCH_SIZE
        assert len(versions) == 1
        assert store.get_document("doc").chunk_count == BATCH_SIZE


class TestSearchDuringWrites:
    """Readers racing a writer."""

    def test_search_never_sees_partial_batch(self, store):
        store.write("doc", _batch(0))
        stop = threading.Event()
        observed = []
        errors = []

        def reader():
            while not stop.is_set():
                try:
                    hits = store.search([1.0, 0.0, 0.0], k=100, document_id="doc")
                except Exception as e:  # surfaced through the errors list
                    errors.append(e)
                    return
                observed.append([h.chunk.text for h in hits])

        readers = [threading.Thread(target=reader) for _ in range(3)]
        for thread in readers:
            thread.start()
        try:
            for version in range(1, 21):
                store.write("doc", _batch(version))
        finally:
            stop.set()
            for thread in readers:
                thread.join(timeout=10)

        assert errors == []
        assert observed
        for texts in observed:
            assert len(texts) == BATCH_SIZE
            assert len({t.split("-")[0] for t in texts}) == 1

    def test_document_and_chunks_appear_together(self, store):
        stop = threading.Event()
        inconsistent = []

        def reader():
            while not stop.is_set():
                hits = store.search([1.0, 0.0], k=100)
                for document_id in {h.chunk.document_id for h in hits}:
                    if store.get_document(document_id) is None:
                        # only acceptable if it was deleted in between
                        if store.get_chunks(document_id):
                            inconsistent.append(document_id)

        thread = threading.Thread(target=reader)
        thread.start()
        try:
            for i in range(30):
                store.write(f"doc-{i}", [("text", [1.0, 0.0])])
                if i % 3 == 0:
                    store.delete_document(f"doc-{i}")
        finally:
            stop.set()
            thread.join(timeout=10)

        assert inconsistent == []


class TestConcurrentDeletes:
    """Racing deletes of one document."""

    def test_exactly_one_delete_succeeds(self, store):
        store.write("doc", [("text", [1.0])])
        outcomes = []
        barrier = threading.Barrier(4)

        def delete():
            barrier.wait()
            try:
                store.delete_document("doc")
                outcomes.append("deleted")
            except NotFoundError:
                outcomes.append("missing")

        threads = [threading.Thread(target=delete) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert sorted(outcomes) == ["deleted", "missing", "missing", "missing"]
        assert store.count_chunks() == 0
