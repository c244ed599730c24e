"""Chunked batch execution against SQLite."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import pytest

from sqlbind import SQLBind, SqliteConfig
from sqlbind.adapters.sqlite import sqlite_statement_config
from sqlbind.core.batch import BatchExecutor
from sqlbind.exceptions import BatchExecutionError, MissingParametersError

pytestmark = pytest.mark.sqlite

INSERT_ADDRESS = "insert into address (street, city, state) values (:street, :city, :state)"
COUNT_ADDRESSES = "select count(*) from address"


@dataclass
class NewAddress:
    street: str
    city: str
    state: str
    address_id: Optional[int] = None


def address_rows(count: int) -> "list[dict[str, Any]]":
    return [{"street": f"{number} Batch St", "city": "Capital City", "state": "IL"} for number in range(count)]


@pytest.mark.parametrize(("row_count", "chunk_sizes"), [(20, [4] * 5), (22, [4, 4, 4, 4, 4, 2])])
def test_chunks_reach_the_database(db: SQLBind, row_count: int, chunk_sizes: "list[int]") -> None:
    with db.provide_session() as session:
        executor = BatchExecutor(session.driver, session.connection, 4)
        statement = session.driver.prepare_statement(INSERT_ADDRESS)
        outcomes = list(executor.execute_batch(statement, address_rows(row_count)))

    assert [outcome.row_count for outcome in outcomes] == chunk_sizes
    assert sum(outcome.rows_affected for outcome in outcomes) == row_count
    assert db.query_int(COUNT_ADDRESSES) == 3 + row_count


def test_batch_update_with_records(db: SQLBind) -> None:
    rows = [NewAddress(f"{number} Record Rd", "Ogdenville", "MO") for number in range(5)]

    assert db.batch_update(INSERT_ADDRESS, rows) == 5
    assert db.query_int("select count(*) from address where city = ?", "Ogdenville") == 5


def test_batch_update_uses_configured_chunk_size(tmp_path: Path) -> None:
    config = SqliteConfig(
        connection_config={"database": str(tmp_path / "chunks.db")},
        statement_config=sqlite_statement_config.replace(batch_chunk_size=3),
    )
    db = SQLBind(config)
    db.batch_exec("create table item (name text not null)")

    assert db.batch_update("insert into item (name) values (?)", ((f"item {n}",) for n in range(10))) == 10
    assert db.query_int("select count(*) from item") == 10


def test_malformed_row_rolls_back_the_unit(db: SQLBind) -> None:
    rows = address_rows(8)
    rows[5] = {"street": "5 Batch St", "city": "Capital City"}

    with pytest.raises(BatchExecutionError) as exc_info:
        db.batch_update(INSERT_ADDRESS, rows)

    assert exc_info.value.chunk_index == 0
    assert exc_info.value.row_index == 5
    assert isinstance(exc_info.value.__cause__, MissingParametersError)
    assert db.query_int(COUNT_ADDRESSES) == 3


def test_driver_failure_reports_chunk_without_row(db: SQLBind) -> None:
    rows = address_rows(6)
    rows[4]["state"] = None

    with db.provide_session() as session:
        executor = BatchExecutor(session.driver, session.connection, 2)
        statement = session.driver.prepare_statement(INSERT_ADDRESS)
        with pytest.raises(BatchExecutionError) as exc_info:
            list(executor.execute_batch(statement, rows))

    assert exc_info.value.chunk_index == 2
    assert exc_info.value.row_index is None
    assert "NOT NULL constraint failed" in str(exc_info.value)


def test_failed_chunk_is_undone_when_the_error_is_caught(db: SQLBind) -> None:
    rows = address_rows(6)
    rows[5]["state"] = None

    with db.provide_session() as session:
        executor = BatchExecutor(session.driver, session.connection, 2)
        statement = session.driver.prepare_statement(INSERT_ADDRESS)
        with pytest.raises(BatchExecutionError):
            list(executor.execute_batch(statement, rows))

    assert db.query_int(COUNT_ADDRESSES) == 3 + 4


def test_caught_query_batch_failure_commits_none_of_the_chunk(db: SQLBind) -> None:
    with db.provide_session() as session:
        query = session.create_query(INSERT_ADDRESS)
        for number, state in enumerate(["IL", "IL", None, "IL"]):
            query.bind("street", f"{number} Elm St").bind("city", "Ogdenville").bind("state", state).finish_batch()
        with pytest.raises(BatchExecutionError):
            query.execute_update()
        session.execute("insert into address (street, city, state) values (?, ?, ?)", "9 Elm St", "Ogdenville", "MO")

    assert db.query_int("select count(*) from address where city = ?", "Ogdenville") == 1


def test_query_batches_and_generated_keys(db: SQLBind) -> None:
    with db.provide_session() as session:
        query = session.create_query(INSERT_ADDRESS)
        query.add_batch(NewAddress("4 Elm St", "Ogdenville", "IL"))
        query.bind("street", "5 Elm St").bind("city", "Ogdenville").bind("state", "IL")
        keys = query.execute_update(int)

    assert keys == [4, 5]
    assert db.query_int("select count(*) from address where city = ?", "Ogdenville") == 2


def test_single_update_returns_affected_rows(db: SQLBind) -> None:
    with db.provide_session() as session:
        affected = (
            session.create_query("update address set zip = :zip where state = :state")
            .bind("zip", "00000")
            .bind("state", "IL")
            .execute_update()
        )

    assert affected == 2


def test_update_without_parameters(db: SQLBind) -> None:
    with db.provide_session() as session:
        assert session.create_query("delete from address where zip is null").execute_update() == 1
