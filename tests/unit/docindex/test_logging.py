"""
Unit tests for logging utilities.
"""

import io
import json
import logging
import threading

import pytest

from docindex.core.logging import (
    CORRELATION_FIELDS,
    CorrelationContext,
    HumanReadableFormatter,
    StructuredFormatter,
    configure_logging,
    log_with_context,
)


def _record(message="hello", **extra):
    record = logging.LogRecord(
        name="docindex.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Tests for the log formatters."""

    def test_structured_output_is_json(self):
        line = StructuredFormatter().format(
            _record("Ingested", document_id="doc-1", operation="ingest")
        )
        entry = json.loads(line)

        assert entry["message"] == "Ingested"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "docindex.test"
        assert entry["document_id"] == "doc-1"
        assert entry["operation"] == "ingest"
        assert "timestamp" in entry

    def test_structured_carries_provider(self):
        entry = json.loads(StructuredFormatter().format(_record("Embedded", provider="ollama")))
        assert entry["provider"] == "ollama"

    def test_correlation_fields(self):
        assert CORRELATION_FIELDS == ("correlation_id", "document_id", "operation", "provider")

    def test_structured_without_timestamp(self):
        entry = json.loads(StructuredFormatter(include_timestamp=False).format(_record()))
        assert "timestamp" not in entry

    def test_human_readable_appends_context(self):
        line = HumanReadableFormatter(include_timestamp=False).format(
            _record("Deleted", document_id="doc-1", operation="delete")
        )

        assert line == "docindex.test - INFO - Deleted [document_id=doc-1 operation=delete]"

    def test_human_readable_without_context(self):
        line = HumanReadableFormatter(include_timestamp=False).format(_record("plain"))
        assert line == "docindex.test - INFO - plain"


class TestCorrelationContext:
    """Tests for CorrelationContext."""

    def test_nested_contexts_restore(self):
        assert CorrelationContext.get_current() == {}

        with CorrelationContext(document_id="outer"):
            with CorrelationContext(document_id="inner", operation="query"):
                assert CorrelationContext.get_current() == {
                    "document_id": "inner",
                    "operation": "query",
                }
            assert CorrelationContext.get_current() == {"document_id": "outer"}

        assert CorrelationContext.get_current() == {}

    def test_context_is_per_thread(self):
        seen = []

        def worker():
            seen.append(CorrelationContext.get_current())

        with CorrelationContext(document_id="main-thread"):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()

        assert seen == [{}]

    def test_log_with_context_attaches_fields(self, caplog):
        logger = logging.getLogger("docindex.test.context")

        with caplog.at_level(logging.INFO, logger="docindex.test.context"):
            with CorrelationContext(document_id="doc-9", operation="ingest"):
                log_with_context(logger, logging.INFO, "chunked", provider="hashing")

        record = caplog.records[-1]
        assert record.document_id == "doc-9"
        assert record.operation == "ingest"
        assert record.provider == "hashing"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_single_handler_on_repeat(self, package_logger):
        stream = io.StringIO()
        configure_logging(stream=stream)
        configure_logging(level=logging.DEBUG, structured=True, stream=stream)

        tagged = [h for h in package_logger.handlers if getattr(h, "_docindex_handler", False)]
        assert len(tagged) == 1
        assert package_logger.level == logging.DEBUG

    def test_structured_output(self, package_logger):
        stream = io.StringIO()
        configure_logging(structured=True, stream=stream)

        logging.getLogger("docindex.storage").info("committed")

        entry = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert entry["message"] == "committed"
        assert entry["logger"] == "docindex.storage"
