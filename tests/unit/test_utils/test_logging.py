"""Tests for the logging helpers."""

import logging
from collections.abc import Generator
from pathlib import Path

import pytest

from sqlbind._serialization import decode_json
from sqlbind.utils.logging import (
    CorrelationIDFilter,
    StructuredFormatter,
    configure_logging,
    correlation_scope,
    get_correlation_id,
    get_logger,
    log_with_context,
    set_correlation_id,
)


@pytest.fixture
def restore_sqlbind_logger() -> "Generator[logging.Logger, None, None]":
    root = logging.getLogger("sqlbind")
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate


@pytest.fixture
def correlation_id() -> "Generator[str, None, None]":
    set_correlation_id("req-42")
    yield "req-42"
    set_correlation_id(None)


def make_record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("sqlbind.test", logging.INFO, __file__, 10, message, None, None)


def test_get_logger_namespaces_names() -> None:
    assert get_logger().name == "sqlbind"
    assert get_logger("core.batch").name == "sqlbind.core.batch"
    assert get_logger("sqlbind.driver").name == "sqlbind.driver"

    logger = get_logger("core.batch")
    assert sum(isinstance(f, CorrelationIDFilter) for f in logger.filters) == 1
    get_logger("core.batch")
    assert sum(isinstance(f, CorrelationIDFilter) for f in logger.filters) == 1


def test_structured_formatter() -> None:
    record = make_record()
    record.extra_fields = {"rows": 3}  # type: ignore[attr-defined]

    entry = decode_json(StructuredFormatter().format(record))

    assert entry["message"] == "hello"
    assert entry["level"] == "INFO"
    assert entry["logger"] == "sqlbind.test"
    assert entry["rows"] == 3
    assert "correlation_id" not in entry


def test_correlation_id_is_attached(correlation_id: str) -> None:
    record = make_record()

    assert CorrelationIDFilter().filter(record)
    assert record.correlation_id == correlation_id  # type: ignore[attr-defined]
    assert decode_json(StructuredFormatter().format(record))["correlation_id"] == correlation_id


def test_configure_logging(restore_sqlbind_logger: logging.Logger, tmp_path: Path) -> None:
    log_file = tmp_path / "sqlbind.log"
    configure_logging(level="DEBUG", log_to_file=str(log_file))

    assert restore_sqlbind_logger.level == logging.DEBUG
    assert restore_sqlbind_logger.propagate is False
    assert len(restore_sqlbind_logger.handlers) == 2

    log_with_context(get_logger("test"), logging.INFO, "batch done", chunks=5)
    for handler in restore_sqlbind_logger.handlers:
        handler.flush()
    lines = [decode_json(line) for line in log_file.read_text().splitlines()]
    assert lines[-1]["message"] == "batch done"
    assert lines[-1]["chunks"] == 5
    for handler in restore_sqlbind_logger.handlers:
        handler.close()


def test_log_with_context_skips_disabled_levels(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("test.quiet")
    with caplog.at_level(logging.WARNING, logger="sqlbind"):
        log_with_context(logger, logging.DEBUG, "not emitted")
        log_with_context(logger, logging.WARNING, "emitted", reason="test")

    assert [record.getMessage() for record in caplog.records] == ["emitted"]
    assert caplog.records[0].extra_fields == {"reason": "test"}  # type: ignore[attr-defined]


def test_correlation_scope_restores_previous_id(correlation_id: str) -> None:
    with correlation_scope("batch-7") as active:
        assert active == "batch-7"
        assert get_correlation_id() == "batch-7"
    assert get_correlation_id() == correlation_id

    with correlation_scope() as generated:
        assert len(generated) == 32
    assert get_correlation_id() == correlation_id


def test_simple_format_style(restore_sqlbind_logger: logging.Logger) -> None:
    configure_logging(level=logging.WARNING, format_style="simple")

    assert restore_sqlbind_logger.level == logging.WARNING
    [handler] = restore_sqlbind_logger.handlers
    assert not isinstance(handler.formatter, StructuredFormatter)
