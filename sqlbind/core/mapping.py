"""Mapping of result rows into scalars, dicts and records."""

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, Optional

from sqlbind.core.coercion import coerce_value
from sqlbind.core.records import get_record_adapter
from sqlbind.core.shapes import GenericMapShape, RecordShape, ScalarShape
from sqlbind.exceptions import UnknownMappedFieldError

if TYPE_CHECKING:
    from sqlbind.core.records import RecordAdapter
    from sqlbind.core.shapes import RowShape

__all__ = ("ColumnMapping", "ResultMapper")


class ColumnMapping(Mapping[str, str]):
    """Column label to member name overrides.

    Labels are matched case-insensitively, the way SQL treats unquoted
    identifiers.
    """

    __slots__ = ("_labels", "_members")

    def __init__(self, mapping: "Optional[Mapping[str, str]]" = None) -> None:
        self._members: dict[str, str] = {}
        self._labels: dict[str, str] = {}
        for column, member in (mapping or {}).items():
            self.add(column, member)

    def add(self, column: str, member: str) -> "ColumnMapping":
        key = column.casefold()
        self._members[key] = member
        self._labels[key] = column
        return self

    def __getitem__(self, column: str) -> str:
        return self._members[column.casefold()]

    def __contains__(self, column: object) -> bool:
        return isinstance(column, str) and column.casefold() in self._members

    def __iter__(self) -> "Iterator[str]":
        return iter(self._labels.values())

    def __len__(self) -> int:
        return len(self._members)

    def __repr__(self) -> str:
        return f"ColumnMapping({dict(self.items())!r})"


class ResultMapper:
    """Maps one result row at a time into the element of a row shape.

    Column to member resolution is planned once per record type and column
    layout and reused for every following row.
    """

    __slots__ = ("_plans", "column_mapping")

    def __init__(self, column_mapping: "Optional[Mapping[str, str]]" = None) -> None:
        if column_mapping is None or isinstance(column_mapping, ColumnMapping):
            self.column_mapping = column_mapping or ColumnMapping()
        else:
            self.column_mapping = ColumnMapping(column_mapping)
        self._plans: dict[tuple[type, tuple[str, ...]], tuple[tuple[str, str], ...]] = {}

    def map_row(self, row: "Mapping[str, Any]", shape: "RowShape") -> Any:
        """Map ``row`` according to a scalar, generic map or record shape."""
        if isinstance(shape, ScalarShape):
            return self.map_scalar(row, shape)
        if isinstance(shape, RecordShape):
            return self.map_record(row, shape.type)
        if isinstance(shape, GenericMapShape):
            return self.map_generic(row)
        msg = f"{type(shape).__name__} cannot be mapped from a single row"
        raise TypeError(msg)

    @staticmethod
    def map_generic(row: "Mapping[str, Any]") -> "dict[str, Any]":
        return dict(row)

    @staticmethod
    def map_scalar(row: "Mapping[str, Any]", shape: ScalarShape) -> Any:
        """Coerce the first column of ``row``."""
        column, value = next(iter(row.items()))
        target = shape.type if not shape.nullable else Optional[shape.type]
        return coerce_value(value, target, column=column)

    def map_record(self, row: "Mapping[str, Any]", record_type: type) -> Any:
        """Build a ``record_type`` instance from ``row``.

        Columns without a matching member are ignored. Members without a
        column keep their default or zero value.
        """
        adapter = get_record_adapter(record_type)
        plan = self._plan(adapter, tuple(row))
        values = {
            member: coerce_value(row[column], adapter.member_type(member), column=column, member=member)
            for column, member in plan
        }
        return adapter.construct(values)

    def _plan(self, adapter: "RecordAdapter", columns: "tuple[str, ...]") -> "tuple[tuple[str, str], ...]":
        key = (adapter.record_type, columns)
        plan = self._plans.get(key)
        if plan is not None:
            return plan

        pairs: list[tuple[str, str]] = []
        for column in columns:
            if column in self.column_mapping:
                member = self.column_mapping[column]
                if not adapter.has_member(member):
                    raise UnknownMappedFieldError(column, member, adapter.record_type)
                pairs.append((column, member))
                continue
            found = adapter.find_member(column)
            if found is not None:
                pairs.append((column, found))
        plan = tuple(pairs)
        self._plans[key] = plan
        return plan
