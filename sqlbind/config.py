from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from types import ModuleType
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Generic, Optional

from typing_extensions import TypeVar

from sqlbind.adapters.dbapi import DBAPIDriver, statement_config_for_module
from sqlbind.driver import DriverAdapterBase, Session
from sqlbind.exceptions import wrap_exceptions
from sqlbind.typing import ConnectionT
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.core.statement import StatementConfig

__all__ = ("DatabaseConfig", "DriverT", "GenericDatabaseConfig")

DriverT = TypeVar("DriverT", bound=DriverAdapterBase, default=DriverAdapterBase)

logger = get_logger("config")


class DatabaseConfig(ABC, Generic[ConnectionT, DriverT]):
    """Source of connections and the driver that executes on them."""

    __slots__ = ("_driver", "connection_config", "statement_config")

    driver_type: "ClassVar[type[Any]]"
    connection_type: "ClassVar[type[Any]]" = object

    def __init__(
        self,
        *,
        connection_config: "Optional[dict[str, Any]]" = None,
        statement_config: "Optional[StatementConfig]" = None,
    ) -> None:
        self.connection_config: dict[str, Any] = connection_config or {}
        self.statement_config = statement_config
        self._driver: Optional[DriverT] = None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(connection_config={self.connection_config!r}, "
            f"statement_config={self.statement_config!r})"
        )

    @abstractmethod
    def create_connection(self) -> ConnectionT:
        """Create and return a new database connection."""
        raise NotImplementedError

    @contextmanager
    def provide_connection(self) -> "Generator[ConnectionT, None, None]":
        """Provide a database connection that is closed on exit."""
        with wrap_exceptions():
            connection = self.create_connection()
        try:
            yield connection
        finally:
            connection.close()  # type: ignore[attr-defined]

    def create_driver(self) -> DriverT:
        """Create the driver; subclasses with extra driver arguments override this."""
        if self.statement_config is None:
            return self.driver_type()  # type: ignore[no-any-return]
        return self.driver_type(statement_config=self.statement_config)  # type: ignore[no-any-return]

    @property
    def driver(self) -> DriverT:
        """The driver shared by every session of this configuration."""
        if self._driver is None:
            self._driver = self.create_driver()
        return self._driver

    def create_session(self) -> Session:
        """Open a new session on a fresh connection.

        The caller owns the session and must close it.
        """
        with wrap_exceptions():
            connection = self.create_connection()
        return Session(connection, self.driver)


class GenericDatabaseConfig(DatabaseConfig[Any, DBAPIDriver]):
    """Configuration for any DB-API 2.0 connection factory.

    Args:
        connection_factory: Zero-argument callable returning a new connection.
        module: The DB-API module the connections come from; its ``paramstyle``
            selects the driver marker style.
        statement_config: Statement options; overrides ``module``'s paramstyle.
    """

    __slots__ = ("connection_factory", "module")

    driver_type: "ClassVar[type[DBAPIDriver]]" = DBAPIDriver

    def __init__(
        self,
        connection_factory: "Callable[[], Any]",
        *,
        module: "Optional[ModuleType]" = None,
        statement_config: "Optional[StatementConfig]" = None,
    ) -> None:
        if statement_config is None and module is not None:
            statement_config = statement_config_for_module(module)
        super().__init__(statement_config=statement_config)
        self.connection_factory = connection_factory
        self.module = module

    def create_connection(self) -> Any:
        return self.connection_factory()

    def create_driver(self) -> DBAPIDriver:
        return DBAPIDriver(self.module, self.statement_config)
