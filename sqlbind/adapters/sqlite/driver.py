import datetime
import sqlite3
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlbind._serialization import encode_json
from sqlbind.adapters.dbapi import DBAPICursor, DBAPIDriver
from sqlbind.core.statement import StatementConfig
from sqlbind.parameters.types import ParameterStyle

if TYPE_CHECKING:
    from typing_extensions import TypeAlias

SqliteConnection: "TypeAlias" = sqlite3.Connection

__all__ = ("SqliteConnection", "SqliteCursor", "SqliteDriver", "sqlite_statement_config")

sqlite_statement_config = StatementConfig(
    parameter_style=ParameterStyle.QMARK,
    dialect="sqlite",
    type_coercion_map={
        datetime.datetime: lambda v: v.isoformat(),
        datetime.date: lambda v: v.isoformat(),
        datetime.time: lambda v: v.isoformat(),
        Decimal: str,
        UUID: str,
        dict: encode_json,
        list: encode_json,
        tuple: lambda v: encode_json(list(v)),
    },
)


class SqliteCursor(DBAPICursor):
    """Context manager for SQLite cursor management."""


class SqliteDriver(DBAPIDriver):
    """Driver for the standard library ``sqlite3`` module."""

    __slots__ = ()

    dialect = "sqlite"
    supports_savepoints = True

    def __init__(self, statement_config: "Optional[StatementConfig]" = None) -> None:
        super().__init__(sqlite3, statement_config or sqlite_statement_config)

    def with_cursor(self, connection: "SqliteConnection") -> "SqliteCursor":
        return SqliteCursor(connection)

    def begin(self, connection: "SqliteConnection") -> None:
        """Begin a database transaction unless one is already open."""
        if not connection.in_transaction:
            with self.handle_database_exceptions("BEGIN"):
                connection.execute("BEGIN")

