"""SQLite adapter for sqlbind."""

from sqlbind.adapters.sqlite.config import SqliteConfig, SqliteConnectionParams
from sqlbind.adapters.sqlite.driver import SqliteConnection, SqliteCursor, SqliteDriver, sqlite_statement_config

__all__ = (
    "SqliteConfig",
    "SqliteConnection",
    "SqliteConnectionParams",
    "SqliteCursor",
    "SqliteDriver",
    "sqlite_statement_config",
)
