"""Tests for assembling mapped rows into result shapes."""

from dataclasses import dataclass
from typing import Any, Optional

import pytest

from sqlbind.core.interpreter import interpret, unique_row
from sqlbind.core.mapping import ResultMapper
from sqlbind.core.shapes import resolve_shape
from sqlbind.exceptions import EmptyResultError, NonUniqueResultError, NullMapKeyError


@dataclass
class Address:
    address_id: Optional[int]
    street: str


ROWS = [
    {"ADDRESS_ID": 1, "STREET": "1 Main St"},
    {"ADDRESS_ID": 2, "STREET": "2 Oak Ave"},
]


def test_collection_preserves_driver_order() -> None:
    result = interpret(ROWS, resolve_shape(list[Address]), ResultMapper())

    assert result == [Address(1, "1 Main St"), Address(2, "2 Oak Ave")]


def test_collection_of_scalars_uses_first_column() -> None:
    assert interpret(ROWS, resolve_shape(list[int]), ResultMapper()) == [1, 2]


def test_empty_collection() -> None:
    assert interpret([], resolve_shape(list[Address]), ResultMapper()) == []


@pytest.mark.parametrize("declared_type", [Address, int, dict])
def test_unique_result_with_no_rows(declared_type: Any) -> None:
    with pytest.raises(EmptyResultError, match="Query returned no results where exactly one row was expected"):
        interpret([], resolve_shape(declared_type), ResultMapper())


@pytest.mark.parametrize("declared_type", [Address, int, dict])
def test_unique_result_with_many_rows(declared_type: Any) -> None:
    with pytest.raises(NonUniqueResultError):
        interpret(ROWS, resolve_shape(declared_type), ResultMapper())


def test_unique_row_consumes_at_most_two_rows() -> None:
    consumed = []

    def rows() -> Any:
        for row in [*ROWS, {"ADDRESS_ID": 3, "STREET": "3 Pine Rd"}]:
            consumed.append(row)
            yield row

    with pytest.raises(NonUniqueResultError):
        unique_row(rows())
    assert len(consumed) == 2


def test_keyed_map_last_row_wins() -> None:
    rows = [*ROWS, {"ADDRESS_ID": 1, "STREET": "3 Pine Rd"}]
    result = interpret(rows, resolve_shape(dict[int, Address], "address_id"), ResultMapper())

    assert result == {1: Address(1, "3 Pine Rd"), 2: Address(2, "2 Oak Ave")}
    assert list(result) == [1, 2]


def test_keyed_map_null_key() -> None:
    rows = [ROWS[0], {"ADDRESS_ID": None, "STREET": "Nowhere"}]

    with pytest.raises(NullMapKeyError) as exc_info:
        interpret(rows, resolve_shape(dict[int, Address], "address_id"), ResultMapper())
    assert exc_info.value.row_index == 1
    assert exc_info.value.key_field == "address_id"
