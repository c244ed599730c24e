"""Tests for chunked batch execution."""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Optional

import pytest

from sqlbind.core.batch import BatchExecutor, bind_row
from sqlbind.core.result import ExecutionResult
from sqlbind.core.statement import parse_statement
from sqlbind.exceptions import (
    BatchExecutionError,
    InvalidChunkSizeError,
    MissingParametersError,
    SQLExecutionError,
    UnknownParameterError,
)
from sqlbind.parameters import BindingSet

INSERT_ADDRESS = parse_statement("insert into address (street, city) values (:street, :city)")


@dataclass
class Address:
    street: str
    city: str


class RecordingDriver:
    """Stands in for a driver and records every chunk it receives."""

    def __init__(self, fail_on_chunk: Optional[int] = None) -> None:
        self.chunks: list[list[tuple[Any, ...]]] = []
        self.savepoints: list[tuple[str, str]] = []
        self.fail_on_chunk = fail_on_chunk

    def begin_chunk(self, connection: Any, savepoint: str) -> None:
        self.savepoints.append(("begin", savepoint))

    def rollback_chunk(self, connection: Any, savepoint: str) -> None:
        self.savepoints.append(("rollback", savepoint))

    def release_chunk(self, connection: Any, savepoint: str) -> None:
        self.savepoints.append(("release", savepoint))

    def execute_many(
        self,
        connection: Any,
        statement: Any,
        parameter_rows: "Sequence[tuple[Any, ...]]",
        *,
        collect_generated_keys: bool = False,
    ) -> ExecutionResult:
        if self.fail_on_chunk == len(self.chunks):
            msg = "constraint failed"
            raise SQLExecutionError(msg, statement.sql)
        self.chunks.append(list(parameter_rows))
        keys = list(range(len(parameter_rows))) if collect_generated_keys else []
        return ExecutionResult([], [], len(parameter_rows), keys)


def address_rows(count: int) -> "list[dict[str, Any]]":
    return [{"street": f"{number} Main St", "city": "Springfield"} for number in range(count)]


def test_rows_are_split_into_full_chunks() -> None:
    driver = RecordingDriver()
    outcomes = list(BatchExecutor(driver, None, 4).execute_batch(INSERT_ADDRESS, address_rows(20)))  # type: ignore[arg-type]

    assert len(outcomes) == 5
    assert [outcome.row_count for outcome in outcomes] == [4] * 5
    assert [outcome.start_row for outcome in outcomes] == [0, 4, 8, 12, 16]
    assert sum(outcome.rows_affected for outcome in outcomes) == 20
    assert driver.chunks[0][0] == ("0 Main St", "Springfield")


def test_last_chunk_holds_the_remainder() -> None:
    driver = RecordingDriver()
    outcomes = list(BatchExecutor(driver, None, 4).execute_batch(INSERT_ADDRESS, address_rows(22)))  # type: ignore[arg-type]

    assert [outcome.row_count for outcome in outcomes] == [4, 4, 4, 4, 4, 2]
    assert [outcome.chunk_index for outcome in outcomes] == [0, 1, 2, 3, 4, 5]


def test_empty_input_executes_nothing() -> None:
    driver = RecordingDriver()

    assert list(BatchExecutor(driver, None, 4).execute_batch(INSERT_ADDRESS, [])) == []  # type: ignore[arg-type]
    assert driver.chunks == []


def test_rows_are_consumed_lazily() -> None:
    driver = RecordingDriver()
    consumed = 0

    def rows() -> "Iterator[dict[str, Any]]":
        nonlocal consumed
        for row in address_rows(10):
            consumed += 1
            yield row

    outcomes = BatchExecutor(driver, None, 4).execute_batch(INSERT_ADDRESS, rows())  # type: ignore[arg-type]
    assert consumed == 0
    next(outcomes)
    assert consumed == 4
    assert len(driver.chunks) == 1


def test_mixed_row_kinds() -> None:
    driver = RecordingDriver()
    rows = [
        {"street": "1 Main St", "city": "Springfield"},
        ("2 Oak Ave", "Springfield"),
        Address("3 Pine Rd", "Shelbyville"),
        BindingSet(INSERT_ADDRESS).bind("street", "4 Elm St").bind("city", "Shelbyville"),
    ]

    list(BatchExecutor(driver, None, 10).execute_batch(INSERT_ADDRESS, rows))  # type: ignore[arg-type]

    assert driver.chunks == [
        [
            ("1 Main St", "Springfield"),
            ("2 Oak Ave", "Springfield"),
            ("3 Pine Rd", "Shelbyville"),
            ("4 Elm St", "Shelbyville"),
        ]
    ]


def test_generated_keys_are_reported_per_chunk() -> None:
    outcomes = list(
        BatchExecutor(RecordingDriver(), None, 3).execute_batch(  # type: ignore[arg-type]
            INSERT_ADDRESS, address_rows(5), collect_generated_keys=True
        )
    )

    assert [outcome.generated_keys for outcome in outcomes] == [[0, 1, 2], [0, 1]]


@pytest.mark.parametrize("chunk_size", [0, -1, True, 1.5])
def test_invalid_chunk_size(chunk_size: Any) -> None:
    with pytest.raises(InvalidChunkSizeError):
        BatchExecutor(RecordingDriver(), None, chunk_size)  # type: ignore[arg-type]


def test_malformed_row_reports_chunk_and_row() -> None:
    driver = RecordingDriver()
    rows = address_rows(8)
    rows[5] = {"street": "5 Main St"}

    with pytest.raises(BatchExecutionError) as exc_info:
        list(BatchExecutor(driver, None, 4).execute_batch(INSERT_ADDRESS, rows))  # type: ignore[arg-type]

    assert exc_info.value.chunk_index == 1
    assert exc_info.value.row_index == 1
    assert isinstance(exc_info.value.__cause__, MissingParametersError)
    assert len(driver.chunks) == 1
    assert driver.savepoints == [("begin", "sqlbind_chunk_0"), ("release", "sqlbind_chunk_0")]


def test_driver_failure_reports_chunk() -> None:
    driver = RecordingDriver(fail_on_chunk=1)

    with pytest.raises(BatchExecutionError) as exc_info:
        list(BatchExecutor(driver, None, 4).execute_batch(INSERT_ADDRESS, address_rows(12)))  # type: ignore[arg-type]

    assert exc_info.value.chunk_index == 1
    assert exc_info.value.row_index is None
    assert "constraint failed" in str(exc_info.value)
    assert len(driver.chunks) == 1
    assert driver.savepoints == [
        ("begin", "sqlbind_chunk_0"),
        ("release", "sqlbind_chunk_0"),
        ("begin", "sqlbind_chunk_1"),
        ("rollback", "sqlbind_chunk_1"),
    ]


def test_bind_row_validates() -> None:
    with pytest.raises(MissingParametersError):
        bind_row(INSERT_ADDRESS, {"street": "1 Main St"})
    assert bind_row(INSERT_ADDRESS, ["1 Main St", "Springfield"]).to_driver_parameters() == (
        "1 Main St",
        "Springfield",
    )


def test_mapping_rows_with_extra_keys() -> None:
    row = {"street": "1 Main St", "city": "Springfield", "zip": "62701"}

    with pytest.raises(UnknownParameterError):
        bind_row(INSERT_ADDRESS, row)

    driver = RecordingDriver()
    lenient = BindingSet(INSERT_ADDRESS).bind_object(row)
    list(BatchExecutor(driver, None, 2).execute_batch(INSERT_ADDRESS, [lenient]))  # type: ignore[arg-type]
    assert driver.chunks == [[("1 Main St", "Springfield")]]


def test_each_chunk_is_logged_with_fields(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.DEBUG, logger="sqlbind.core.batch"):
        list(BatchExecutor(RecordingDriver(), None, 3).execute_batch(INSERT_ADDRESS, address_rows(5)))  # type: ignore[arg-type]

    events = [record.extra_fields for record in caplog.records if record.getMessage() == "Executed batch chunk"]  # type: ignore[attr-defined]
    assert events == [
        {"chunk_index": 0, "row_count": 3, "rows_affected": 3},
        {"chunk_index": 1, "row_count": 2, "rows_affected": 2},
    ]
