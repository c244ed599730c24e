"""Sessions: one live connection bound to one unit of work."""

import threading
from typing import TYPE_CHECKING, Any, Optional

from sqlbind.exceptions import SessionError
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.core.result import ExecutionResult
    from sqlbind.core.statement import StatementConfig
    from sqlbind.driver._common import DriverAdapterBase
    from sqlbind.driver.query import DynamicQuery, Query

__all__ = ("Session",)

logger = get_logger("driver.session")


class Session:
    """A connection and the driver that executes on it.

    A session belongs to the thread that opened it. It is committed or
    rolled back by whoever opened it, see :meth:`sqlbind.SQLBind.provide_session`;
    code that merely receives a session only creates queries on it.
    """

    __slots__ = ("_closed", "_owner", "connection", "driver")

    def __init__(self, connection: Any, driver: "DriverAdapterBase") -> None:
        self.connection = connection
        self.driver = driver
        self._owner = threading.get_ident()
        self._closed = False
        logger.debug("Opened session on thread %d", self._owner)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Session(driver={type(self.driver).__name__}, owner={self._owner}, {state})"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def statement_config(self) -> "StatementConfig":
        return self.driver.statement_config

    def is_active_on_current_thread(self) -> bool:
        """Whether this session is open and was opened by the calling thread."""
        return not self._closed and self._owner == threading.get_ident()

    def _ensure_open(self) -> None:
        if self._closed:
            msg = "Session is closed"
            raise SessionError(msg)

    def begin(self) -> None:
        self._ensure_open()
        self.driver.begin(self.connection)

    def commit(self) -> None:
        self._ensure_open()
        self.driver.commit(self.connection)
        logger.debug("Committed session")

    def rollback(self) -> None:
        self._ensure_open()
        self.driver.rollback(self.connection)
        logger.debug("Rolled back session")

    def close(self) -> None:
        """Close the connection. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        with self.driver.handle_database_exceptions():
            self.connection.close()
        logger.debug("Closed session")

    def create_query(self, sql: str) -> "Query":
        """Create a query for ``sql`` bound to this session."""
        from sqlbind.driver.query import Query

        self._ensure_open()
        return Query(sql, self)

    def create_dynamic_query(self) -> "DynamicQuery":
        """Create a builder that joins SQL fragments and their positional parameters."""
        from sqlbind.driver.query import DynamicQuery

        self._ensure_open()
        return DynamicQuery(self)

    def execute(self, sql: str, *parameters: Any) -> "ExecutionResult":
        """Execute ``sql`` with positional ``parameters`` and return the raw result."""
        return self.create_dynamic_query().query(sql, *parameters).build().execute()
