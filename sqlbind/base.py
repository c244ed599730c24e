"""Entry point: units of work and shortcut helpers."""

from collections.abc import Generator, Iterable
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar, Union

from sqlbind.config import DatabaseConfig, GenericDatabaseConfig
from sqlbind.core.batch import BatchExecutor
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.driver import Session
    from sqlbind.typing import ModelT

__all__ = ("SQLBind",)

logger = get_logger()

T = TypeVar("T")


class SQLBind:
    """Runs units of work against the connections of one configuration.

    Example:
        .. code-block:: python

            db = SQLBind(SqliteConfig(connection_config={"database": "app.db"}))
            with db.provide_session() as session:
                addresses = session.create_query("select * from address where city = :city").bind(
                    "city", "Springfield"
                ).fetch_as(Address)
    """

    __slots__ = ("config",)

    def __init__(self, config: "Union[DatabaseConfig[Any, Any], Callable[[], Any]]") -> None:
        """Initialize with a configuration or a zero-argument connection factory.

        A bare factory is wrapped in a :class:`GenericDatabaseConfig` using
        ``?`` markers.
        """
        if not isinstance(config, DatabaseConfig):
            config = GenericDatabaseConfig(config)
        self.config = config

    def __repr__(self) -> str:
        return f"SQLBind(config={self.config!r})"

    @contextmanager
    def provide_session(self, session: "Optional[Session]" = None) -> "Generator[Session, None, None]":
        """Provide a session for one unit of work.

        Passing a session that is open on the calling thread reuses it: no
        new transaction is started and nothing is committed on exit. Any
        other call opens a new session that commits when the block succeeds,
        rolls back when it raises, and is always closed.

        Args:
            session: Session of an enclosing unit of work.

        Yields:
            The session to run queries on.
        """
        if session is not None and session.is_active_on_current_thread():
            yield session
            return

        new_session = self.config.create_session()
        try:
            new_session.begin()
            yield new_session
            new_session.commit()
        except BaseException:
            self._rollback(new_session)
            raise
        finally:
            new_session.close()

    @staticmethod
    def _rollback(session: "Session") -> None:
        try:
            session.rollback()
        except Exception:
            # The error that caused the rollback is the one worth reporting.
            logger.warning("Rollback failed", exc_info=True)

    def transact(self, action: "Callable[[Session], Any]", session: "Optional[Session]" = None) -> None:
        """Run ``action`` inside a unit of work."""
        with self.provide_session(session) as active:
            action(active)

    def query(self, action: "Callable[[Session], T]", session: "Optional[Session]" = None) -> T:
        """Run ``action`` inside a unit of work and return its result."""
        with self.provide_session(session) as active:
            return action(active)

    def update(self, sql: str, *parameters: Any) -> int:
        """Execute one update statement with positional ``parameters``.

        Returns:
            The number of affected rows.
        """
        return self.query(lambda s: s.create_dynamic_query().query(sql, *parameters).build().execute_update())

    def fetch(self, sql: str, *parameters: Any) -> "list[dict[str, Any]]":
        """Return every row of ``sql`` as a dict."""
        return self.query(lambda s: s.create_dynamic_query().query(sql, *parameters).build().fetch())

    def fetch_as(self, record_type: "type[ModelT]", sql: str, *parameters: Any) -> "list[ModelT]":
        """Return every row of ``sql`` mapped into ``record_type``."""
        return self.query(lambda s: s.create_dynamic_query().query(sql, *parameters).build().fetch_as(record_type))

    def find_unique(self, result_type: "type[ModelT]", sql: str, *parameters: Any) -> "ModelT":
        """Return the only row of ``sql`` mapped into ``result_type``."""
        return self.query(
            lambda s: s.create_dynamic_query().query(sql, *parameters).build().get_unique_result_as(result_type)
        )

    def batch_update(self, sql: str, rows: "Iterable[Any]") -> int:
        """Execute ``sql`` once per row, in chunks of the configured batch size.

        Rows may be records, mappings or sequences; they are consumed lazily.
        Mappings are bound strictly by name, so a key that matches no
        placeholder fails the batch. Records are bound by member, and their
        extra members are ignored.

        Returns:
            The number of affected rows.
        """

        def _run(session: "Session") -> int:
            config = session.statement_config
            statement = session.driver.prepare_statement(sql)
            executor = BatchExecutor(
                session.driver, session.connection, config.batch_chunk_size, require_bindings=config.require_bindings
            )
            return sum(max(outcome.rows_affected, 0) for outcome in executor.execute_batch(statement, rows))

        return self.query(_run)

    def batch_exec(self, *statements: str) -> "list[int]":
        """Execute parameterless statements in one unit of work.

        Returns:
            The row count reported for each statement.
        """
        return self.query(lambda s: [s.driver.execute_script(s.connection, sql) for sql in statements])

    def query_scalar(self, scalar_type: "type[ModelT]", sql: str, *parameters: Any) -> "ModelT":
        """Return the first column of the only row of ``sql``, coerced to ``scalar_type``."""
        return self.query(
            lambda s: s.create_dynamic_query().query(sql, *parameters).build().fetch_scalar(scalar_type)
        )

    def query_int(self, sql: str, *parameters: Any) -> int:
        return self.query_scalar(int, sql, *parameters)

    def query_float(self, sql: str, *parameters: Any) -> float:
        return self.query_scalar(float, sql, *parameters)

    def query_bool(self, sql: str, *parameters: Any) -> bool:
        return self.query_scalar(bool, sql, *parameters)

    def query_str(self, sql: str, *parameters: Any) -> str:
        return self.query_scalar(str, sql, *parameters)

    def test_connection(self) -> None:
        """Open and close one connection; raises when the database is unreachable."""
        with self.config.provide_connection():
            logger.debug("Connection test succeeded")
