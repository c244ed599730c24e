"""Caller-facing query objects."""

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Callable, Optional, Union, overload

from sqlbind.core.batch import BatchExecutor
from sqlbind.core.coercion import coerce_value
from sqlbind.core.interpreter import interpret
from sqlbind.core.mapping import ColumnMapping, ResultMapper
from sqlbind.core.records import is_record_type
from sqlbind.core.shapes import CollectionShape, GenericMapShape, KeyedMapShape, ScalarShape, resolve_shape
from sqlbind.driver.mixins import ToSchemaMixin
from sqlbind.exceptions import InvalidChunkSizeError, SessionError, UnsupportedReturnShapeError
from sqlbind.parameters.binding import BindingSet

if TYPE_CHECKING:
    from sqlbind.core.result import ExecutionResult
    from sqlbind.core.shapes import RowShape
    from sqlbind.driver.session import Session
    from sqlbind.typing import ModelT, StatementParameters

__all__ = ("DynamicQuery", "Query")


class Query(ToSchemaMixin):
    """One SQL statement, its bindings and the ways to run it.

    Values are bound onto the current row. :meth:`finish_batch` closes the
    current row and starts a new one; :meth:`execute_update` runs every
    finished row through the batch executor.
    """

    __slots__ = ("_bindings", "_column_mapping", "_finished", "session", "statement")

    def __init__(self, sql: str, session: "Session") -> None:
        self.session = session
        self.statement = session.driver.prepare_statement(sql)
        self._bindings = BindingSet(self.statement)
        self._finished: list[BindingSet] = []
        self._column_mapping = ColumnMapping()

    def __repr__(self) -> str:
        return f"Query(sql={self.statement.sql!r}, pending_rows={len(self._finished)})"

    @property
    def sql(self) -> str:
        return self.statement.sql

    @property
    def column_mapping(self) -> ColumnMapping:
        return self._column_mapping

    # -- Binding --
    def bind(self, key: Union[int, str], value: Any) -> "Query":
        """Bind ``value`` to the placeholder with ordinal or name ``key``."""
        self._bindings.bind(key, value)
        return self

    def bind_object(self, record: Any) -> "Query":
        """Bind every named placeholder from the matching member of ``record``."""
        self._bindings.bind_object(record)
        return self

    def bind_all(self, values: "StatementParameters") -> "Query":
        self._bindings.bind_all(values)
        return self

    def add_column_mapping(self, column: str, member: str) -> "Query":
        """Map result column ``column`` onto member ``member`` instead of the translated name."""
        self._column_mapping.add(column, member)
        return self

    def finish_batch(self) -> "Query":
        """Validate the current row and start a new one."""
        self._bindings.validate(self.session.statement_config.require_bindings)
        self._finished.append(self._bindings)
        self._bindings = BindingSet(self.statement)
        return self

    def add_batch(self, record: Any) -> "Query":
        """Bind ``record`` as one complete batch row."""
        return self.bind_object(record).finish_batch()

    # -- Execution --
    def _parameters(self) -> "tuple[Any, ...]":
        self._bindings.validate(self.session.statement_config.require_bindings)
        return self._bindings.to_driver_parameters()

    def execute(self) -> "ExecutionResult":
        """Execute the current row and return the raw driver result."""
        parameters = self._parameters()
        return self.session.driver.execute(self.session.connection, self.statement, parameters)

    def _rows(self) -> "list[dict[str, Any]]":
        return self.execute().rows

    def _stream(self) -> "Iterator[dict[str, Any]]":
        parameters = self._parameters()
        return self.session.driver.iter_rows(self.session.connection, self.statement, parameters)

    def _mapper(self) -> ResultMapper:
        return ResultMapper(self._column_mapping)

    def interpret(self, declared_type: Any, key_field: Optional[str] = None) -> Any:
        """Execute and materialize the result as ``declared_type``.

        ``list[Address]`` returns every row, ``dict[int, Address]`` indexes
        records by ``key_field``, and scalar, dict or record types return the
        single row of the result.
        """
        shape = resolve_shape(declared_type, key_field)
        return interpret(self._rows(), shape, self._mapper())

    def fetch(self) -> "list[dict[str, Any]]":
        """Return every row as a dict of column label to value."""
        return interpret(self._rows(), CollectionShape(GenericMapShape()), self._mapper())

    def fetch_as(self, record_type: "type[ModelT]") -> "list[ModelT]":
        """Return every row mapped into ``record_type``."""
        if is_record_type(record_type):
            return self.to_schema(self._rows(), schema_type=record_type, column_mapping=self._column_mapping)
        return self.interpret(list[record_type])  # type: ignore[valid-type]

    def stream_as(self, record_type: "type[ModelT]") -> "Iterator[ModelT]":
        """Lazily map rows into ``record_type`` while they are fetched."""
        element = _element_shape(record_type)
        mapper = self._mapper()
        for row in self._stream():
            yield mapper.map_row(row, element)

    def get_unique_result_as(self, result_type: "type[ModelT]") -> "ModelT":
        """Return the only row of the result mapped into ``result_type``.

        Raises:
            EmptyResultError: the query returned no rows.
            NonUniqueResultError: the query returned more than one row.
        """
        shape = resolve_shape(result_type)
        if isinstance(shape, (CollectionShape, KeyedMapShape)):
            raise UnsupportedReturnShapeError(result_type, "a unique result cannot be a collection")
        return interpret(self._rows(), shape, self._mapper())

    def fetch_scalar(self, scalar_type: "type[ModelT]") -> "ModelT":
        """Return the first column of the only row, coerced to ``scalar_type``."""
        shape = resolve_shape(scalar_type)
        if not isinstance(shape, ScalarShape):
            raise UnsupportedReturnShapeError(scalar_type, "not a scalar type")
        return interpret(self._rows(), shape, self._mapper())

    def fetch_as_map(self, record_type: "type[ModelT]", key_field: str) -> "dict[Any, ModelT]":
        """Return records indexed by their ``key_field`` member; later rows win on duplicate keys."""
        return self.interpret(dict[Any, record_type], key_field)  # type: ignore[valid-type]

    def batch_process(
        self, record_type: "type[ModelT]", batch_size: int, consumer: "Callable[[list[ModelT]], Any]"
    ) -> None:
        """Stream rows and hand them to ``consumer`` in lists of ``batch_size`` records.

        The last list holds the remaining rows and may be shorter.
        """
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
            raise InvalidChunkSizeError(batch_size)
        batch: list[ModelT] = []
        for record in self.stream_as(record_type):
            batch.append(record)
            if len(batch) == batch_size:
                consumer(batch)
                batch = []
        if batch:
            consumer(batch)

    @overload
    def execute_update(self, key_type: None = None) -> int: ...
    @overload
    def execute_update(self, key_type: "type[ModelT]") -> "list[ModelT]": ...

    def execute_update(self, key_type: "Optional[type[ModelT]]" = None) -> "Union[int, list[ModelT]]":
        """Execute every finished row, plus the current one when it has bindings.

        Args:
            key_type: When given, return the generated keys coerced to this type
                instead of the affected row count.

        Returns:
            Total affected rows, or the generated keys.
        """
        if self._bindings.was_bound:
            self.finish_batch()
        session = self.session
        config = session.statement_config
        collect_keys = key_type is not None

        if not self._finished:
            result = session.driver.execute(session.connection, self.statement, self._parameters())
            rows_affected, keys = result.rows_affected, result.generated_keys
        else:
            rows, self._finished = self._finished, []
            executor = BatchExecutor(
                session.driver, session.connection, config.batch_chunk_size, require_bindings=config.require_bindings
            )
            rows_affected, keys = 0, []
            for outcome in executor.execute_batch(self.statement, rows, collect_generated_keys=collect_keys):
                rows_affected += max(outcome.rows_affected, 0)
                keys.extend(outcome.generated_keys)

        if key_type is None:
            return rows_affected
        return [coerce_value(key, key_type, column="generated key") for key in keys]


def _element_shape(element_type: Any) -> "RowShape":
    shape = resolve_shape(list[element_type])  # type: ignore[valid-type]
    if not isinstance(shape, CollectionShape):
        raise UnsupportedReturnShapeError(element_type)
    return shape.element


class DynamicQuery:
    """Joins SQL fragments and collects their positional parameters.

    Parameters are bound by ordinal, in the order they were added, when
    :meth:`build` creates the query.
    """

    __slots__ = ("_fragments", "_parameters", "session")

    def __init__(self, session: "Optional[Session]" = None) -> None:
        self.session = session
        self._fragments: list[str] = []
        self._parameters: list[Any] = []

    def __repr__(self) -> str:
        return f"DynamicQuery(sql={self.sql!r}, parameters={self._parameters!r})"

    @property
    def sql(self) -> str:
        return " ".join(self._fragments)

    @property
    def parameters(self) -> "tuple[Any, ...]":
        return tuple(self._parameters)

    def query(self, sql: str, *parameters: Any) -> "DynamicQuery":
        self._fragments.append(sql)
        return self.add_parameters(*parameters)

    def query_if(self, condition: bool, sql: str, *parameters: Any) -> "DynamicQuery":
        """Append ``sql`` and its parameters only when ``condition`` holds."""
        return self.query(sql, *parameters) if condition else self

    def query_if_not_none(self, value: Any, sql: str) -> "DynamicQuery":
        """Append ``sql`` with ``value`` as its parameter when ``value`` is not ``None``."""
        return self.query_if(value is not None, sql, value)

    def add_parameters(self, *parameters: Any) -> "DynamicQuery":
        self._parameters.extend(parameters)
        return self

    def build(self) -> Query:
        """Create the query and bind the collected parameters by ordinal.

        Raises:
            SessionError: the builder is not attached to a session.
        """
        if self.session is None:
            msg = "DynamicQuery must be created from a session to be built"
            raise SessionError(msg)
        query = self.session.create_query(self.sql)
        for ordinal, value in enumerate(self._parameters, start=1):
            query.bind(ordinal, value)
        return query
