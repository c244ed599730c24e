"""Common driver adapter implementation shared by every DB-API backed driver."""

from abc import ABC, abstractmethod
from collections.abc import Generator, Iterable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from sqlbind.core.result import ExecutionResult
from sqlbind.core.statement import StatementConfig, parse_statement
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from sqlbind.core.statement import Statement

__all__ = ("DEFAULT_FETCH_SIZE", "DriverAdapterBase")

logger = get_logger("driver")

DEFAULT_FETCH_SIZE = 500

_KEY_GENERATING_OPERATIONS = frozenset({"INSERT", "REPLACE"})


class DriverAdapterBase(ABC):
    """Executes prepared statements on a DB-API connection.

    A driver holds no connection of its own. Every operation receives the
    connection of the session it runs in, so a single driver can serve any
    number of sessions.
    """

    __slots__ = ("statement_config",)

    dialect: "ClassVar[Optional[str]]" = None
    supports_savepoints: "ClassVar[bool]" = False

    def __init__(self, statement_config: "Optional[StatementConfig]" = None) -> None:
        self.statement_config = statement_config or StatementConfig(dialect=self.dialect)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(statement_config={self.statement_config!r})"

    @abstractmethod
    def with_cursor(self, connection: Any) -> "AbstractContextManager[Any]":
        """Create and return a context manager for cursor acquisition and cleanup."""

    @abstractmethod
    def handle_database_exceptions(self, sql: Optional[str] = None) -> "AbstractContextManager[None]":
        """Context manager that wraps driver errors in :class:`~sqlbind.exceptions.SQLExecutionError`."""

    def begin(self, connection: Any) -> None:
        """Begin a transaction. DB-API connections open one implicitly."""

    def commit(self, connection: Any) -> None:
        """Commit the current transaction."""
        with self.handle_database_exceptions():
            connection.commit()

    def rollback(self, connection: Any) -> None:
        """Rollback the current transaction."""
        with self.handle_database_exceptions():
            connection.rollback()

    def begin_chunk(self, connection: Any, savepoint: str) -> None:
        """Mark the start of a batch chunk so a failing chunk can be undone on its own.

        Drivers without savepoint support leave this as a no-op; a failed
        chunk is then only undone by rolling back the whole unit of work.
        """
        if self.supports_savepoints:
            self._execute_control(connection, f"SAVEPOINT {savepoint}")

    def rollback_chunk(self, connection: Any, savepoint: str) -> None:
        """Undo every row of the chunk started by :meth:`begin_chunk`."""
        if self.supports_savepoints:
            self._execute_control(connection, f"ROLLBACK TO SAVEPOINT {savepoint}")
            self._execute_control(connection, f"RELEASE SAVEPOINT {savepoint}")

    def release_chunk(self, connection: Any, savepoint: str) -> None:
        """Keep the rows of a successful chunk in the enclosing transaction."""
        if self.supports_savepoints:
            self._execute_control(connection, f"RELEASE SAVEPOINT {savepoint}")

    def _execute_control(self, connection: Any, sql: str) -> None:
        with self.handle_database_exceptions(sql), self.with_cursor(connection) as cursor:
            cursor.execute(sql)

    def prepare_statement(self, sql: str) -> "Statement":
        """Parse ``sql`` for this driver's marker style and dialect."""
        config = self.statement_config
        return parse_statement(sql, config.parameter_style, config.dialect or self.dialect)

    def prepare_value(self, value: Any) -> Any:
        """Convert a bound value into something the driver accepts.

        Enum members are sent by name, matching how result columns are
        coerced back into enums.
        """
        if isinstance(value, Enum):
            return value.name
        converter = self.statement_config.type_coercion_map.get(type(value))
        return converter(value) if converter is not None else value

    def prepare_parameters(self, parameters: "Sequence[Any]") -> "tuple[Any, ...]":
        return tuple(self.prepare_value(value) for value in parameters)

    def execute(self, connection: Any, statement: "Statement", parameters: "Sequence[Any]" = ()) -> ExecutionResult:
        """Execute one statement with one row of parameters.

        Args:
            connection: Connection of the calling session.
            statement: Prepared statement.
            parameters: Values in ordinal order.

        Returns:
            Rows for row-returning statements, otherwise the affected row count
            and any generated key.
        """
        prepared = self.prepare_parameters(parameters)
        with self.handle_database_exceptions(statement.sql), self.with_cursor(connection) as cursor:
            cursor.execute(statement.normalized_sql, prepared)
            if statement.returns_rows or cursor.description:
                column_names = self._column_names(cursor)
                rows = [dict(zip(column_names, row)) for row in cursor.fetchall()]
                return ExecutionResult(rows, column_names, len(rows), [])
            rows_affected = self._rows_affected(cursor)
            keys = self._generated_keys(cursor, statement) if rows_affected else []
            return ExecutionResult([], [], rows_affected, keys)

    def execute_many(
        self,
        connection: Any,
        statement: "Statement",
        parameter_rows: "Iterable[Sequence[Any]]",
        *,
        collect_generated_keys: bool = False,
    ) -> ExecutionResult:
        """Execute one statement once per parameter row.

        DB-API ``executemany`` does not report generated keys, so when they are
        requested the rows are executed one at a time on the same cursor.
        """
        prepared_rows = [self.prepare_parameters(row) for row in parameter_rows]
        logger.debug("Executing %d parameter row(s) for one statement", len(prepared_rows))
        with self.handle_database_exceptions(statement.sql), self.with_cursor(connection) as cursor:
            if not collect_generated_keys:
                cursor.executemany(statement.normalized_sql, prepared_rows)
                return ExecutionResult([], [], self._rows_affected(cursor), [])

            rows_affected = 0
            keys: list[Any] = []
            for row in prepared_rows:
                cursor.execute(statement.normalized_sql, row)
                affected = self._rows_affected(cursor)
                rows_affected += max(affected, 0)
                if affected:
                    keys.extend(self._generated_keys(cursor, statement))
            return ExecutionResult([], [], rows_affected, keys)

    def iter_rows(
        self,
        connection: Any,
        statement: "Statement",
        parameters: "Sequence[Any]" = (),
        fetch_size: int = DEFAULT_FETCH_SIZE,
    ) -> "Generator[dict[str, Any], None, None]":
        """Stream result rows, fetching ``fetch_size`` rows per driver call."""
        prepared = self.prepare_parameters(parameters)
        with self.handle_database_exceptions(statement.sql), self.with_cursor(connection) as cursor:
            cursor.execute(statement.normalized_sql, prepared)
            column_names = self._column_names(cursor)
            while True:
                batch = cursor.fetchmany(fetch_size)
                if not batch:
                    break
                for row in batch:
                    yield dict(zip(column_names, row))

    def execute_script(self, connection: Any, sql: str) -> int:
        """Execute a statement without placeholder processing and return its row count."""
        with self.handle_database_exceptions(sql), self.with_cursor(connection) as cursor:
            cursor.execute(sql)
            return self._rows_affected(cursor)

    @staticmethod
    def _column_names(cursor: Any) -> "list[str]":
        return [column[0] for column in cursor.description or ()]

    @staticmethod
    def _rows_affected(cursor: Any) -> int:
        rowcount = getattr(cursor, "rowcount", None)
        return rowcount if isinstance(rowcount, int) else -1

    def _generated_keys(self, cursor: Any, statement: "Statement") -> "list[Any]":
        if statement.operation_type not in _KEY_GENERATING_OPERATIONS:
            return []
        last_row_id = getattr(cursor, "lastrowid", None)
        return [] if last_row_id is None else [last_row_id]
