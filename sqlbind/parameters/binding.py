"""Per-invocation parameter bindings and their validation."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Union

from sqlbind.exceptions import (
    DuplicateParameterError,
    MissingParametersError,
    NoParametersSetError,
    ParameterIndexOutOfRangeError,
    ReflectionBindError,
    UnknownParameterError,
)

if TYPE_CHECKING:
    from sqlbind.core.statement import Statement
    from sqlbind.typing import StatementParameters

__all__ = ("BindingSet",)


class BindingSet:
    """Values bound to one row of a statement's placeholders.

    Values are keyed by 1-based ordinal. Binding a name sets every ordinal
    that carries it, and so does binding the ordinal of a named placeholder.
    """

    __slots__ = ("_bind_called", "names_seen", "statement", "values")

    def __init__(self, statement: "Statement") -> None:
        self.statement = statement
        self.values: dict[int, Any] = {}
        self.names_seen: set[str] = set()
        self._bind_called = False

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"BindingSet(sql={self.statement.sql!r}, values={self.values!r})"

    @property
    def is_empty(self) -> bool:
        return not self.values

    @property
    def was_bound(self) -> bool:
        """Whether any bind call was made, even one that bound nothing."""
        return self._bind_called

    def is_bound(self, key: Union[int, str]) -> bool:
        if isinstance(key, str):
            return key in self.names_seen
        return key in self.values

    def bind(self, key: Union[int, str], value: Any) -> "BindingSet":
        """Bind ``value`` by ordinal (``int``) or by name (``str``).

        Raises:
            UnknownParameterError: ``key`` names no placeholder of the statement.
            ParameterIndexOutOfRangeError: ``key`` is outside ``1..placeholder_count``.
            DuplicateParameterError: ``key`` was already bound in this row.
        """
        if isinstance(key, str):
            self._bind_name(key, value)
        else:
            self._bind_ordinal(key, value)
        self._bind_called = True
        return self

    def _bind_name(self, name: str, value: Any) -> None:
        statement = self.statement
        ordinals = statement.ordinals_for(name)
        if not ordinals:
            raise UnknownParameterError(name, statement.sql)
        if name in self.names_seen:
            raise DuplicateParameterError(name, statement.sql)
        for ordinal in ordinals:
            self.values[ordinal] = value
        self.names_seen.add(name)

    def _bind_ordinal(self, ordinal: int, value: Any) -> None:
        statement = self.statement
        if ordinal < 1 or ordinal > statement.placeholder_count:
            raise ParameterIndexOutOfRangeError(ordinal, statement.placeholder_count, statement.sql)
        name = statement.placeholder_at(ordinal).name
        if name is not None:
            # Every occurrence of a name shares one value, so its ordinals are bound together.
            if name in self.names_seen:
                raise DuplicateParameterError(ordinal, statement.sql)
            self._bind_name(name, value)
            return
        if ordinal in self.values:
            raise DuplicateParameterError(ordinal, statement.sql)
        self.values[ordinal] = value

    def bind_object(self, record: Any) -> "BindingSet":
        """Bind every named placeholder from the matching member of ``record``.

        Positional placeholders are left untouched. Member values are all
        resolved before any of them is applied, so a failure leaves the set
        unchanged.

        Raises:
            ReflectionBindError: a named placeholder has no matching member.
        """
        from sqlbind.core.records import get_record_adapter

        adapter = get_record_adapter(type(record))
        resolved: list[tuple[str, Any]] = []
        for name in self.statement.parameter_names:
            member = adapter.find_member(name, record)
            if member is None:
                raise ReflectionBindError(name, type(record), self.statement.sql)
            resolved.append((name, adapter.get(record, member)))

        for name, _ in resolved:
            if name in self.names_seen:
                raise DuplicateParameterError(name, self.statement.sql)
        for name, value in resolved:
            self._bind_name(name, value)
        self._bind_called = True
        return self

    def bind_all(self, values: "StatementParameters") -> "BindingSet":
        """Bind a mapping by name or a sequence positionally, starting at ordinal 1."""
        if isinstance(values, Mapping):
            for name, value in values.items():
                self.bind(name, value)
        else:
            for ordinal, value in enumerate(values, start=1):
                self.bind(ordinal, value)
        self._bind_called = True
        return self

    def missing(self) -> "list[Union[str, int]]":
        """Unbound placeholders in ascending ordinal order, names listed once."""
        missing: list[Union[str, int]] = []
        reported: set[str] = set()
        for placeholder in self.statement.placeholders:
            if placeholder.ordinal in self.values:
                continue
            if placeholder.name is None:
                missing.append(placeholder.ordinal)
            elif placeholder.name not in reported:
                reported.add(placeholder.name)
                missing.append(placeholder.name)
        return missing

    def validate(self, require_bindings: bool = False) -> None:
        """Check that every placeholder has a value.

        Args:
            require_bindings: Also reject a statement without placeholders
                when nothing was ever bound to it.

        Raises:
            NoParametersSetError: nothing was bound at all.
            MissingParametersError: some placeholders are still unbound.
        """
        statement = self.statement
        missing = self.missing()
        if statement.placeholder_count and not self.values:
            raise NoParametersSetError(missing, statement.sql)
        if require_bindings and not statement.placeholder_count and not self._bind_called:
            raise NoParametersSetError((), statement.sql)
        if missing:
            raise MissingParametersError(missing, statement.sql)

    def to_driver_parameters(self) -> "tuple[Any, ...]":
        """Values in ordinal order, ready for the driver."""
        return tuple(self.values[ordinal] for ordinal in range(1, self.statement.placeholder_count + 1))
