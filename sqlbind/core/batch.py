"""Chunked execution of one statement over many parameter rows."""

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from sqlbind.core.result import BatchOutcome
from sqlbind.exceptions import BatchExecutionError, InvalidChunkSizeError, SQLBindError
from sqlbind.parameters.binding import BindingSet
from sqlbind.utils.logging import get_logger, log_with_context
from sqlbind.utils.type_guards import is_parameter_sequence

if TYPE_CHECKING:
    from sqlbind.core.statement import Statement
    from sqlbind.driver._common import DriverAdapterBase

__all__ = ("BatchExecutor", "bind_row")

logger = get_logger("core.batch")


def _reason(exc: SQLBindError) -> str:
    # The statement text is attached once, to the batch error itself.
    return getattr(exc, "message", None) or exc.detail


def bind_row(statement: "Statement", row: Any, require_bindings: bool = False) -> BindingSet:
    """Bind one batch row and validate it.

    ``row`` may be a :class:`BindingSet`, a mapping (bound by name), a list
    or tuple (bound by ordinal) or a record object (bound by member).
    Every key of a mapping must name a placeholder; pass a :class:`BindingSet`
    built with ``bind_object`` to ignore extra keys.
    """
    if isinstance(row, BindingSet):
        bindings = row
    elif isinstance(row, Mapping) or is_parameter_sequence(row):
        bindings = BindingSet(statement).bind_all(row)
    else:
        bindings = BindingSet(statement).bind_object(row)
    bindings.validate(require_bindings)
    return bindings


class BatchExecutor:
    """Sends parameter rows to the driver in fixed-size chunks.

    Rows are consumed lazily. A chunk is executed as soon as it is full, or
    when the input is exhausted, and its outcome is yielded before the next
    chunk starts accumulating.
    """

    __slots__ = ("chunk_size", "connection", "driver", "require_bindings")

    def __init__(
        self, driver: "DriverAdapterBase", connection: Any, chunk_size: int, *, require_bindings: bool = False
    ) -> None:
        if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size <= 0:
            raise InvalidChunkSizeError(chunk_size)
        self.driver = driver
        self.connection = connection
        self.chunk_size = chunk_size
        self.require_bindings = require_bindings

    def execute_batch(
        self, statement: "Statement", rows: "Iterable[Any]", *, collect_generated_keys: bool = False
    ) -> "Iterator[BatchOutcome]":
        """Execute ``statement`` once per row, one chunk per driver call.

        Args:
            statement: Prepared statement.
            rows: Parameter rows; see :func:`bind_row`.
            collect_generated_keys: Report generated keys for every row.

        Raises:
            BatchExecutionError: a row of the current chunk could not be bound,
                or the driver rejected the chunk.

        Yields:
            One outcome per executed chunk.
        """
        chunk: list[tuple[Any, ...]] = []
        chunk_index = 0
        start_row = 0
        for row in rows:
            try:
                bindings = bind_row(statement, row, self.require_bindings)
            except SQLBindError as exc:
                raise BatchExecutionError(
                    _reason(exc), chunk_index=chunk_index, row_index=len(chunk), sql=statement.sql
                ) from exc
            chunk.append(bindings.to_driver_parameters())
            if len(chunk) == self.chunk_size:
                yield self._execute_chunk(statement, chunk, chunk_index, start_row, collect_generated_keys)
                start_row += len(chunk)
                chunk_index += 1
                chunk = []
        if chunk:
            yield self._execute_chunk(statement, chunk, chunk_index, start_row, collect_generated_keys)

    def _execute_chunk(
        self,
        statement: "Statement",
        chunk: "list[tuple[Any, ...]]",
        chunk_index: int,
        start_row: int,
        collect_generated_keys: bool,
    ) -> BatchOutcome:
        savepoint = f"sqlbind_chunk_{chunk_index}"
        self.driver.begin_chunk(self.connection, savepoint)
        try:
            result = self.driver.execute_many(
                self.connection, statement, chunk, collect_generated_keys=collect_generated_keys
            )
        except SQLBindError as exc:
            self.driver.rollback_chunk(self.connection, savepoint)
            raise BatchExecutionError(_reason(exc), chunk_index=chunk_index, sql=statement.sql) from exc
        self.driver.release_chunk(self.connection, savepoint)
        log_with_context(
            logger,
            logging.DEBUG,
            "Executed batch chunk",
            chunk_index=chunk_index,
            row_count=len(chunk),
            rows_affected=result.rows_affected,
        )
        return BatchOutcome(chunk_index, start_row, len(chunk), result.rows_affected, result.generated_keys)
