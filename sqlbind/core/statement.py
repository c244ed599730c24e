"""Parsed, immutable SQL statements.

A :class:`Statement` is produced once per raw SQL text and driver marker
style and is shared by every query that runs the same text.
"""

from functools import lru_cache
from typing import TYPE_CHECKING, Any, Callable, Final, Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from sqlbind.exceptions import ImproperConfigurationError, InvalidChunkSizeError
from sqlbind.parameters.parser import PlaceholderParser
from sqlbind.parameters.types import ParameterStyle
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.parameters.types import ParameterInfo

__all__ = ("DEFAULT_BATCH_CHUNK_SIZE", "Statement", "StatementConfig", "parse_statement")

logger = get_logger("core.statement")

ROW_RETURNING_KEYWORDS: Final = frozenset({"SELECT", "WITH", "VALUES", "TABLE", "SHOW", "DESCRIBE", "PRAGMA", "EXPLAIN"})
_ROW_RETURNING_EXPRESSIONS: Final = (
    exp.Select,
    exp.Union,
    exp.Except,
    exp.Intersect,
    exp.Values,
    exp.Show,
    exp.Describe,
    exp.Pragma,
)
_OPERATION_TYPES: Final["dict[type[exp.Expression], str]"] = {
    exp.Select: "SELECT",
    exp.Union: "SELECT",
    exp.Except: "SELECT",
    exp.Intersect: "SELECT",
    exp.Insert: "INSERT",
    exp.Update: "UPDATE",
    exp.Delete: "DELETE",
    exp.Merge: "MERGE",
    exp.Create: "DDL",
    exp.Drop: "DDL",
    exp.Alter: "DDL",
}


class Statement:
    """Immutable parse result of one SQL text.

    Attributes:
        sql: The raw SQL text as supplied by the caller.
        normalized_sql: ``sql`` with every placeholder replaced by the driver marker.
        placeholders: Placeholder descriptors in ordinal order.
        parameter_style: Driver marker style used for ``normalized_sql``.
    """

    __slots__ = (
        "_names",
        "_operation_type",
        "_ordinals_by_name",
        "_returns_rows",
        "normalized_sql",
        "parameter_style",
        "placeholders",
        "sql",
    )

    sql: str
    normalized_sql: str
    placeholders: "tuple[ParameterInfo, ...]"
    parameter_style: ParameterStyle

    def __init__(
        self,
        sql: str,
        normalized_sql: str,
        placeholders: "tuple[ParameterInfo, ...]",
        parameter_style: ParameterStyle = ParameterStyle.QMARK,
        dialect: Optional[str] = None,
    ) -> None:
        ordinals_by_name: dict[str, list[int]] = {}
        for placeholder in placeholders:
            if placeholder.name is not None:
                ordinals_by_name.setdefault(placeholder.name, []).append(placeholder.ordinal)

        object.__setattr__(self, "sql", sql)
        object.__setattr__(self, "normalized_sql", normalized_sql)
        object.__setattr__(self, "placeholders", placeholders)
        object.__setattr__(self, "parameter_style", parameter_style)
        object.__setattr__(self, "_names", tuple(ordinals_by_name))
        object.__setattr__(
            self, "_ordinals_by_name", {name: tuple(ordinals) for name, ordinals in ordinals_by_name.items()}
        )
        operation_type, returns_rows = _classify(sql, dialect)
        object.__setattr__(self, "_operation_type", operation_type)
        object.__setattr__(self, "_returns_rows", returns_rows)

    def __setattr__(self, name: str, value: Any) -> None:
        msg = f"{type(self).__name__} is immutable"
        raise AttributeError(msg)

    @property
    def placeholder_count(self) -> int:
        return len(self.placeholders)

    @property
    def parameter_names(self) -> "tuple[str, ...]":
        """Distinct placeholder names in first-seen order."""
        return self._names

    @property
    def returns_rows(self) -> bool:
        """Whether executing the statement produces a result set."""
        return self._returns_rows

    @property
    def operation_type(self) -> str:
        """Upper-case statement keyword such as ``SELECT`` or ``INSERT``."""
        return self._operation_type

    def has_name(self, name: str) -> bool:
        return name in self._ordinals_by_name

    def ordinals_for(self, name: str) -> "tuple[int, ...]":
        """Return every ordinal that carries ``name``, or an empty tuple."""
        return self._ordinals_by_name.get(name, ())

    def placeholder_at(self, ordinal: int) -> "ParameterInfo":
        return self.placeholders[ordinal - 1]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Statement):
            return False
        return self.sql == other.sql and self.parameter_style == other.parameter_style

    def __hash__(self) -> int:
        return hash((self.sql, self.parameter_style))

    def __repr__(self) -> str:
        return (
            f"Statement(sql={self.sql!r}, normalized_sql={self.normalized_sql!r}, "
            f"placeholders={len(self.placeholders)}, parameter_style={self.parameter_style!r})"
        )


def _classify(sql: str, dialect: Optional[str]) -> "tuple[str, bool]":
    """Return the operation type and whether the statement produces rows.

    Falls back to the leading keyword when sqlglot cannot parse the text,
    which happens for vendor statements and for unusual placeholder usage.
    """
    try:
        expression = sqlglot.parse_one(sql, read=dialect)
    except SqlglotError:
        expression = None
    if expression is not None and not isinstance(expression, exp.Command):
        operation_type = _OPERATION_TYPES.get(type(expression), expression.key.upper())
        if isinstance(expression, _ROW_RETURNING_EXPRESSIONS):
            return operation_type, True
        return operation_type, expression.args.get("returning") is not None
    keyword = _leading_keyword(sql)
    return keyword, keyword in ROW_RETURNING_KEYWORDS


def _leading_keyword(sql: str) -> str:
    stripped = sql.lstrip().lstrip("(")
    keyword = stripped.split(None, 1)[0] if stripped else ""
    return keyword.upper().rstrip(";")


@lru_cache(maxsize=1024)
def parse_statement(
    sql: str, parameter_style: ParameterStyle = ParameterStyle.QMARK, dialect: Optional[str] = None
) -> Statement:
    """Parse ``sql`` into a cached, shareable :class:`Statement`.

    Args:
        sql: Raw SQL text with ``:name`` and ``?`` placeholders.
        parameter_style: Driver marker style for the normalized text.
        dialect: Optional sqlglot dialect used to classify the statement.

    Returns:
        The parsed statement.
    """
    parsed = PlaceholderParser(parameter_style).parse(sql)
    statement = Statement(sql, parsed.normalized_sql, parsed.placeholders, parameter_style, dialect)
    logger.debug(
        "Parsed statement with %d placeholder(s) into %s markers", statement.placeholder_count, parameter_style.value
    )
    return statement


DEFAULT_BATCH_CHUNK_SIZE: Final = 1000

STATEMENT_CONFIG_SLOTS: Final = (
    "batch_chunk_size",
    "dialect",
    "parameter_style",
    "require_bindings",
    "type_coercion_map",
)


class StatementConfig:
    """Options applied to every statement a driver prepares and executes.

    Args:
        parameter_style: Driver marker style placeholders are rewritten into.
        batch_chunk_size: Rows sent per driver call by the batch executor.
        require_bindings: Reject statements that were never bound, even without placeholders.
        dialect: sqlglot dialect used to classify statements.
        type_coercion_map: Converters applied to bound values, keyed by exact value type.
    """

    __slots__ = STATEMENT_CONFIG_SLOTS

    def __init__(
        self,
        parameter_style: ParameterStyle = ParameterStyle.QMARK,
        batch_chunk_size: int = DEFAULT_BATCH_CHUNK_SIZE,
        require_bindings: bool = False,
        dialect: Optional[str] = None,
        type_coercion_map: "Optional[dict[type, Callable[[Any], Any]]]" = None,
    ) -> None:
        if isinstance(batch_chunk_size, bool) or not isinstance(batch_chunk_size, int) or batch_chunk_size <= 0:
            raise InvalidChunkSizeError(batch_chunk_size)
        if not parameter_style.is_driver_marker:
            msg = f"{parameter_style} is not a driver marker style"
            raise ImproperConfigurationError(msg)
        self.parameter_style = parameter_style
        self.batch_chunk_size = batch_chunk_size
        self.require_bindings = require_bindings
        self.dialect = dialect
        self.type_coercion_map = dict(type_coercion_map or {})

    def replace(self, **kwargs: Any) -> "StatementConfig":
        """Return a copy with the given attributes replaced.

        Raises:
            TypeError: an unknown attribute was given.
        """
        for key in kwargs:
            if key not in STATEMENT_CONFIG_SLOTS:
                msg = f"{key!r} is not a field in {type(self).__name__}"
                raise TypeError(msg)
        current_kwargs = {slot: getattr(self, slot) for slot in STATEMENT_CONFIG_SLOTS}
        current_kwargs.update(kwargs)
        return type(self)(**current_kwargs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return all(getattr(self, slot) == getattr(other, slot) for slot in STATEMENT_CONFIG_SLOTS)

    def __hash__(self) -> int:
        return hash((self.parameter_style, self.batch_chunk_size, self.require_bindings, self.dialect))

    def __repr__(self) -> str:
        field_strs = [f"{slot}={getattr(self, slot)!r}" for slot in STATEMENT_CONFIG_SLOTS]
        return f"{type(self).__name__}({', '.join(field_strs)})"
