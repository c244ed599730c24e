from collections.abc import Generator
from pathlib import Path

import pytest

from sqlbind import SQLBind, SqliteConfig

ADDRESS_DDL = """
create table address (
    address_id integer primary key autoincrement,
    street text not null,
    city text not null,
    state text not null,
    zip text
)
"""

EMPLOYEE_DDL = """
create table employee (
    employee_id integer primary key,
    first_name text not null,
    last_name text not null,
    salary real,
    hired_on text,
    active integer not null default 1,
    role text
)
"""


@pytest.fixture
def sqlite_config(tmp_path: Path) -> "Generator[SqliteConfig, None, None]":
    config = SqliteConfig(connection_config={"database": str(tmp_path / "sqlbind.db")})
    yield config
    config.close()


@pytest.fixture
def db(sqlite_config: SqliteConfig) -> SQLBind:
    """Database with seeded ``address`` and ``employee`` tables."""
    db = SQLBind(sqlite_config)
    db.batch_exec(ADDRESS_DDL, EMPLOYEE_DDL)
    db.batch_update(
        "insert into address (street, city, state, zip) values (?, ?, ?, ?)",
        [
            ("1 Main St", "Springfield", "IL", "62701"),
            ("2 Oak Ave", "Springfield", "MO", None),
            ("3 Pine Rd", "Shelbyville", "IL", "62565"),
        ],
    )
    db.batch_update(
        "insert into employee (employee_id, first_name, last_name, salary, hired_on, active, role) "
        "values (:employee_id, :first_name, :last_name, :salary, :hired_on, :active, :role)",
        [
            {
                "employee_id": 1,
                "first_name": "Ada",
                "last_name": "Lovelace",
                "salary": 120000.0,
                "hired_on": "2020-01-15",
                "active": 1,
                "role": "ENGINEER",
            },
            {
                "employee_id": 2,
                "first_name": "Grace",
                "last_name": "Hopper",
                "salary": None,
                "hired_on": "2018-06-01",
                "active": 0,
                "role": "MANAGER",
            },
        ],
    )
    return db
