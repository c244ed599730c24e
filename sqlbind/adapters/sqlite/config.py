"""SQLite database configuration."""

import sqlite3
import threading
import uuid
from typing import TYPE_CHECKING, Any, ClassVar, Optional, TypedDict, Union, cast

from typing_extensions import NotRequired

from sqlbind.adapters.sqlite.driver import SqliteConnection, SqliteDriver, sqlite_statement_config
from sqlbind.config import DatabaseConfig
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.core.statement import StatementConfig

logger = get_logger("adapters.sqlite")


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[Optional[str]]"
    check_same_thread: NotRequired[bool]
    factory: "NotRequired[Optional[type[SqliteConnection]]]"
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


__all__ = ("SqliteConfig", "SqliteConnectionParams")


class SqliteConfig(DatabaseConfig[SqliteConnection, SqliteDriver]):
    """SQLite configuration.

    Every session opens its own connection. In-memory databases are shared
    between those connections through a named shared-cache URI, kept alive
    by one anchor connection until :meth:`close` is called.
    """

    __slots__ = ("_anchor", "_anchor_lock")

    driver_type: "ClassVar[type[SqliteDriver]]" = SqliteDriver
    connection_type: "ClassVar[type[SqliteConnection]]" = SqliteConnection

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[SqliteConnectionParams, dict[str, Any]]]" = None,
        statement_config: "Optional[StatementConfig]" = None,
    ) -> None:
        """Initialize SQLite configuration.

        Args:
            connection_config: Keyword arguments for :func:`sqlite3.connect`.
            statement_config: Default SQL statement configuration.
        """
        connection_config = dict(connection_config or {})
        if connection_config.get("database", ":memory:") == ":memory:":
            connection_config["database"] = f"file:memory_{uuid.uuid4().hex}?mode=memory&cache=shared"
            connection_config["uri"] = True
        elif str(connection_config["database"]).startswith("file:") and not connection_config.get("uri"):
            logger.debug(
                "Database URI detected (%s) but uri=True not set. Auto-enabling URI mode.",
                connection_config["database"],
            )
            connection_config["uri"] = True
        super().__init__(
            connection_config=connection_config, statement_config=statement_config or sqlite_statement_config
        )
        self._anchor: Optional[SqliteConnection] = None
        self._anchor_lock = threading.Lock()

    @property
    def is_memory_database(self) -> bool:
        return "mode=memory" in str(self.connection_config.get("database", ""))

    def create_connection(self) -> SqliteConnection:
        """Create a new SQLite connection.

        Returns:
            SqliteConnection: A new connection.
        """
        if self.is_memory_database:
            with self._anchor_lock:
                if self._anchor is None:
                    self._anchor = sqlite3.connect(**self._connect_kwargs())
        return sqlite3.connect(**self._connect_kwargs())

    def _connect_kwargs(self) -> "dict[str, Any]":
        return cast("dict[str, Any]", {k: v for k, v in self.connection_config.items() if v is not None})

    def close(self) -> None:
        """Release the in-memory database, if any."""
        with self._anchor_lock:
            if self._anchor is not None:
                self._anchor.close()
                self._anchor = None
