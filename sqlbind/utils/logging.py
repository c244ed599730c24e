"""Logging helpers for sqlbind.

Library modules log through :func:`get_logger` and never install handlers
themselves. Applications that want to see statement parsing, session
lifecycle and batch chunk events call :func:`configure_logging`, which renders
records as JSON lines by default.

Structured fields ride on the record as ``extra_fields``; use
:func:`log_with_context` to attach them.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Final

from sqlbind._serialization import encode_json

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from logging import LogRecord

__all__ = (
    "ROOT_LOGGER_NAME",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "correlation_scope",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "set_correlation_id",
)

ROOT_LOGGER_NAME: Final = "sqlbind"
SIMPLE_FORMAT: Final = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# (output key, LogRecord attribute)
_RECORD_FIELDS: Final = (
    ("level", "levelname"),
    ("logger", "name"),
    ("module", "module"),
    ("function", "funcName"),
    ("line", "lineno"),
)

correlation_id_var: ContextVar[str | None] = ContextVar("sqlbind_correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current context, if any."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Tag every record logged from the current context with ``correlation_id``.

    Pass ``None`` to stop tagging.
    """
    correlation_id_var.set(correlation_id)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Tag records logged inside the block, restoring the previous ID on exit.

    Args:
        correlation_id: ID to use. A random hex ID is generated when omitted.

    Yields:
        The active correlation ID.
    """
    active = correlation_id or uuid.uuid4().hex
    token = correlation_id_var.set(active)
    try:
        yield active
    finally:
        correlation_id_var.reset(token)


class CorrelationIDFilter(logging.Filter):
    """Copy the context's correlation ID onto each record passing through."""

    def filter(self, record: LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


class StructuredFormatter(logging.Formatter):
    """Render a record as one JSON object per line.

    The object carries the timestamp, the rendered message, the fields listed
    in ``_RECORD_FIELDS``, the correlation ID when one is set and every entry
    of the record's ``extra_fields``. Exception text goes under ``exception``.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = {"timestamp": self.formatTime(record, self.datefmt), "message": record.getMessage()}
        entry.update((key, getattr(record, attribute)) for key, attribute in _RECORD_FIELDS)

        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id is not None:
            entry["correlation_id"] = correlation_id
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return encode_json(entry)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger inside the ``sqlbind`` namespace.

    Args:
        name: Dotted name relative to the package, such as ``"core.batch"``.
            Names already starting with ``sqlbind`` are used as given.

    Returns:
        The logger, with a :class:`CorrelationIDFilter` attached once.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    qualified = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(qualified)
    if not any(isinstance(existing, CorrelationIDFilter) for existing in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def _build_handlers(format_style: str, log_to_file: str | None) -> Iterable[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter() if format_style == "structured" else logging.Formatter(SIMPLE_FORMAT))
    yield console
    if log_to_file:
        # Files are always written as JSON lines.
        file_handler = logging.FileHandler(log_to_file)
        file_handler.setFormatter(StructuredFormatter())
        yield file_handler


def configure_logging(
    level: str | int = "INFO",
    format_style: str = "structured",
    log_to_file: str | None = None,
    extra_handlers: list[logging.Handler] | None = None,
) -> None:
    """Route the ``sqlbind`` logger tree to stdout and optional extra sinks.

    Calling this again replaces the handlers installed by the previous call.
    The ``sqlbind`` logger stops propagating to the root logger.

    Args:
        level: Level name or number. ``DEBUG`` shows statement and batch events.
        format_style: ``"structured"`` for JSON lines, anything else for plain text.
        log_to_file: Optional path that receives JSON lines as well.
        extra_handlers: Handlers added unchanged after the built-in ones.
    """
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level.upper() if isinstance(level, str) else level)
    package_logger.handlers.clear()
    for handler in (*_build_handlers(format_style, log_to_file), *(extra_handlers or ())):
        package_logger.addHandler(handler)
    package_logger.propagate = False

    log_with_context(
        package_logger,
        logging.DEBUG,
        "Logging configured",
        format_style=format_style,
        handlers=len(package_logger.handlers),
    )


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log ``message`` with ``extra_fields`` attached for :class:`StructuredFormatter`.

    Nothing is built when ``level`` is disabled for ``logger``.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra={"extra_fields": extra_fields}, stacklevel=2)
