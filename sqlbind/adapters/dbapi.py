"""Driver for any DB-API 2.0 module."""

import contextlib
from collections.abc import Generator
from contextlib import contextmanager
from types import ModuleType
from typing import Any, Optional

from sqlbind.core.statement import StatementConfig
from sqlbind.driver import DriverAdapterBase
from sqlbind.exceptions import ImproperConfigurationError, SQLBindError, SQLExecutionError
from sqlbind.parameters.types import DBAPI_PARAMSTYLE_MAP

__all__ = ("DBAPICursor", "DBAPIDriver", "statement_config_for_module")


def statement_config_for_module(module: ModuleType, **kwargs: Any) -> StatementConfig:
    """Build a statement config whose marker style matches ``module.paramstyle``.

    Raises:
        ImproperConfigurationError: the module declares no supported ``paramstyle``.
    """
    paramstyle = getattr(module, "paramstyle", None)
    parameter_style = DBAPI_PARAMSTYLE_MAP.get(paramstyle) if isinstance(paramstyle, str) else None
    if parameter_style is None:
        msg = f"DB-API module {module.__name__!r} declares unsupported paramstyle {paramstyle!r}"
        raise ImproperConfigurationError(msg)
    return StatementConfig(parameter_style=parameter_style, **kwargs)


class DBAPICursor:
    """Context manager for DB-API cursor management."""

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self.cursor: Optional[Any] = None

    def __enter__(self) -> Any:
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            with contextlib.suppress(Exception):
                self.cursor.close()


class DBAPIDriver(DriverAdapterBase):
    """Driver for connections produced by a DB-API 2.0 module.

    The module's ``paramstyle`` selects the driver marker placeholders are
    rewritten into, and its ``Error`` class identifies database errors.
    """

    __slots__ = ("database_error", "module_name")

    def __init__(
        self, module: "Optional[ModuleType]" = None, statement_config: "Optional[StatementConfig]" = None
    ) -> None:
        if statement_config is None and module is not None:
            statement_config = statement_config_for_module(module)
        super().__init__(statement_config)
        self.database_error: type[Exception] = getattr(module, "Error", Exception)
        self.module_name = module.__name__ if module is not None else "dbapi"

    def with_cursor(self, connection: Any) -> DBAPICursor:
        return DBAPICursor(connection)

    @contextmanager
    def handle_database_exceptions(self, sql: Optional[str] = None) -> "Generator[None, None, None]":
        """Wrap database errors in :class:`~sqlbind.exceptions.SQLExecutionError`, attaching ``sql``."""
        try:
            yield
        except SQLBindError:
            raise
        except self.database_error as e:
            msg = f"{self.module_name} database error: {e}"
            raise SQLExecutionError(msg, sql) from e
        except Exception as e:
            msg = f"Unexpected error: {e}"
            raise SQLExecutionError(msg, sql) from e
