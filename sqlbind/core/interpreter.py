"""Assembly of mapped rows into the resolved row shape."""

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from sqlbind.core.records import get_record_adapter
from sqlbind.core.shapes import CollectionShape, KeyedMapShape
from sqlbind.exceptions import EmptyResultError, NonUniqueResultError, NullMapKeyError

if TYPE_CHECKING:
    from sqlbind.core.mapping import ResultMapper
    from sqlbind.core.shapes import RowShape

__all__ = ("interpret", "unique_row")


def unique_row(rows: "Iterable[Mapping[str, Any]]") -> "Mapping[str, Any]":
    """Return the only row of ``rows``.

    Raises:
        EmptyResultError: there are no rows.
        NonUniqueResultError: there is more than one row.
    """
    iterator = iter(rows)
    try:
        row = next(iterator)
    except StopIteration:
        msg = "Query returned no results where exactly one row was expected"
        raise EmptyResultError(msg) from None
    if next(iterator, None) is not None:
        msg = "Query returned more than one row where exactly one row was expected"
        raise NonUniqueResultError(msg)
    return row


def interpret(rows: "Iterable[Mapping[str, Any]]", shape: "RowShape", mapper: "ResultMapper") -> Any:
    """Consume ``rows`` and assemble them according to ``shape``.

    Scalars, records and generic maps at the top level require exactly one
    row. Collections keep driver order. Keyed maps keep the last record
    seen for each key.
    """
    if isinstance(shape, CollectionShape):
        return [mapper.map_row(row, shape.element) for row in rows]
    if isinstance(shape, KeyedMapShape):
        return _interpret_keyed(rows, shape, mapper)
    return mapper.map_row(unique_row(rows), shape)


def _interpret_keyed(
    rows: "Iterable[Mapping[str, Any]]", shape: KeyedMapShape, mapper: "ResultMapper"
) -> "dict[Any, Any]":
    record_type = shape.element.type
    adapter = get_record_adapter(record_type)
    result: dict[Any, Any] = {}
    for index, row in enumerate(rows):
        record = mapper.map_record(row, record_type)
        key = adapter.get(record, shape.key_field)
        if key is None:
            raise NullMapKeyError(shape.key_field, record_type, index)
        result[key] = record
    return result
