from collections.abc import Generator, Sequence
from contextlib import contextmanager
from typing import Any, Optional, Union

__all__ = (
    "BatchExecutionError",
    "DuplicateParameterError",
    "EmptyResultError",
    "EnumCoercionError",
    "ImproperConfigurationError",
    "InvalidChunkSizeError",
    "MalformedQueryError",
    "MappingError",
    "MissingKeyFieldDeclarationError",
    "MissingParametersError",
    "NoParametersSetError",
    "NonUniqueResultError",
    "NullMapKeyError",
    "NullToPrimitiveError",
    "ParameterError",
    "ParameterIndexOutOfRangeError",
    "ReflectionBindError",
    "ResultShapeError",
    "SQLBindError",
    "SQLExecutionError",
    "ScalarCoercionError",
    "SessionError",
    "UnknownMappedFieldError",
    "UnknownParameterError",
    "UnsupportedReturnShapeError",
    "wrap_exceptions",
)


class SQLBindError(Exception):
    """Base exception class from which all sqlbind exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLBindError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(SQLBindError):
    """Improper configuration error.

    Raised when the caller declares something the engine cannot act on,
    such as a keyed result without a key field or a non-positive chunk size.
    """


class SessionError(SQLBindError):
    """A session was used outside of its active unit of work."""


class SQLExecutionError(SQLBindError):
    """The database driver failed to execute a statement."""

    message: str
    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql
        self.message = message


# -- Parameter Errors --
class ParameterError(SQLBindError):
    """Base class for parameter-related errors."""

    message: str
    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql
        self.message = message


class MalformedQueryError(ParameterError):
    """The query references a parameter its SQL text never declared."""


class UnknownParameterError(MalformedQueryError):
    """Raised when binding a name that does not appear in the statement."""

    name: str

    def __init__(self, name: str, sql: Optional[str] = None) -> None:
        super().__init__(f"Unknown query parameter: {name}", sql)
        self.name = name


class ParameterIndexOutOfRangeError(ParameterError):
    """Raised when binding an ordinal outside of the statement's placeholders."""

    ordinal: int
    max_parameters: int

    def __init__(self, ordinal: int, max_parameters: int, sql: Optional[str] = None) -> None:
        super().__init__(
            f"Parameter index {ordinal} is out of range of this query's parameters (max parameters: {max_parameters})",
            sql,
        )
        self.ordinal = ordinal
        self.max_parameters = max_parameters


class DuplicateParameterError(ParameterError):
    """Raised when the same parameter is bound twice for one row."""

    parameter: Union[str, int]

    def __init__(self, parameter: Union[str, int], sql: str) -> None:
        label = f"'{parameter}'" if isinstance(parameter, str) else str(parameter)
        # The SQL is part of the message itself, so it is not passed to the base class.
        super().__init__(f"Duplicate parameter {label} in query:\n{sql}")
        self.sql = sql
        self.parameter = parameter


class MissingParametersError(ParameterError):
    """Raised when a statement is executed with unbound placeholders."""

    missing: "tuple[Union[str, int], ...]"

    def __init__(self, missing: "Sequence[Union[str, int]]", sql: Optional[str] = None) -> None:
        self.missing = tuple(missing)
        super().__init__(self._build_message(), sql)

    def _build_message(self) -> str:
        listed = ", ".join(str(item) for item in self.missing)
        return f"Missing parameter values for the following parameters: [{listed}]"


class NoParametersSetError(MissingParametersError):
    """Raised when a parameterized code path executes without any binding."""

    def _build_message(self) -> str:
        return "No parameters set"


class ReflectionBindError(ParameterError):
    """Raised when an object cannot supply a member for a named placeholder."""

    member: str
    object_type: type

    def __init__(self, member: str, object_type: type, sql: Optional[str] = None) -> None:
        super().__init__(
            f"No member named '{member}' found in {object_type.__qualname__} to bind parameter :{member}", sql
        )
        self.member = member
        self.object_type = object_type


# -- Mapping Errors --
class MappingError(SQLBindError):
    """Base class for errors raised while mapping result rows."""


class UnknownMappedFieldError(MappingError):
    """A column mapping names a member the target type does not have."""

    column: str
    member: str
    target_type: type

    def __init__(self, column: str, member: str, target_type: type) -> None:
        super().__init__(
            f"Custom-mapped field {member} not found in class {target_type.__qualname__} "
            f"for result set column {column}"
        )
        self.column = column
        self.member = member
        self.target_type = target_type


class NullToPrimitiveError(MappingError):
    """A null column was mapped onto a non-nullable primitive member."""

    column: str
    member: Optional[str]
    target_type: Any

    def __init__(self, column: str, target_type: Any, member: Optional[str] = None) -> None:
        where = f"member '{member}'" if member else "scalar result"
        super().__init__(
            f"Cannot map null value of column {column} onto {where} of non-nullable type {_type_name(target_type)}"
        )
        self.column = column
        self.member = member
        self.target_type = target_type


class EnumCoercionError(MappingError):
    """A raw column value does not name any member of the target enum."""

    value: Any
    enum_type: type

    def __init__(self, value: Any, enum_type: type, column: Optional[str] = None) -> None:
        suffix = f" (column {column})" if column else ""
        super().__init__(f"Value {value!r} is not a member name of enum {enum_type.__qualname__}{suffix}")
        self.value = value
        self.enum_type = enum_type
        self.column = column


class ScalarCoercionError(MappingError):
    """A raw value cannot be coerced to the requested type."""

    value: Any
    target_type: Any

    def __init__(
        self, value: Any, target_type: Any, column: Optional[str] = None, member: Optional[str] = None
    ) -> None:
        parts = [f"Cannot coerce {value!r} ({type(value).__name__}) to {_type_name(target_type)}"]
        if column:
            parts.append(f"column {column}")
        if member:
            parts.append(f"member '{member}'")
        super().__init__(", ".join(parts))
        self.value = value
        self.target_type = target_type
        self.column = column
        self.member = member


# -- Result Shape Errors --
class ResultShapeError(SQLBindError):
    """Base class for errors raised while assembling results into a shape."""


class EmptyResultError(ResultShapeError):
    """A unique result was requested but the query returned no rows."""


class NonUniqueResultError(ResultShapeError):
    """A unique result was requested but the query returned more than one row."""


class NullMapKeyError(ResultShapeError):
    """A keyed result produced a row whose key member is null."""

    key_field: str
    row_index: int

    def __init__(self, key_field: str, target_type: type, row_index: int) -> None:
        super().__init__(
            f"Null value encountered for key field '{key_field}' while constructing {target_type.__qualname__} "
            f"for insertion into map (row {row_index}). "
            "Double check your query column names match up with the entity field names"
        )
        self.key_field = key_field
        self.row_index = row_index


class UnsupportedReturnShapeError(ResultShapeError):
    """No strategy knows how to materialize the declared return type."""

    declared_type: Any

    def __init__(self, declared_type: Any, reason: Optional[str] = None) -> None:
        message = f"No valid query interpreters found for {_type_name(declared_type)}"
        message = f"{message}: {reason}" if reason else f"{message}. Make sure generic type info is present"
        super().__init__(message)
        self.declared_type = declared_type


class MissingKeyFieldDeclarationError(ImproperConfigurationError):
    """A keyed result was requested without a usable key field."""


class InvalidChunkSizeError(ImproperConfigurationError):
    """A batch chunk size must be a positive integer."""

    def __init__(self, chunk_size: Any) -> None:
        super().__init__(f"Batch chunk size must be a positive integer, got {chunk_size!r}")
        self.chunk_size = chunk_size


class BatchExecutionError(SQLExecutionError):
    """A batch chunk failed.

    Rows of the failing chunk are undone through a savepoint on drivers that
    support one; chunks executed before it stay in the enclosing transaction.
    """

    row_index: Optional[int]
    chunk_index: int

    def __init__(
        self, message: str, *, chunk_index: int, row_index: Optional[int] = None, sql: Optional[str] = None
    ) -> None:
        location = f"chunk {chunk_index}"
        if row_index is not None:
            location = f"{location}, row {row_index}"
        super().__init__(f"Batch execution failed at {location}: {message}", sql)
        self.chunk_index = chunk_index
        self.row_index = row_index


def _type_name(target_type: Any) -> str:
    return target_type.__qualname__ if isinstance(target_type, type) else repr(target_type)


@contextmanager
def wrap_exceptions(sql: Optional[str] = None) -> Generator[None, None, None]:
    """Re-raise non-sqlbind exceptions as :class:`SQLExecutionError`.

    sqlbind's own exceptions pass through unchanged so callers can keep
    matching on them.
    """
    try:
        yield
    except SQLBindError:
        raise
    except Exception as exc:
        msg = f"{type(exc).__name__}: {exc}"
        raise SQLExecutionError(msg, sql) from exc
