"""sqlbind: parameterized SQL with named placeholders and typed result mapping."""

from sqlbind import adapters, base, core, driver, exceptions, parameters, typing, utils
from sqlbind.__metadata__ import __version__
from sqlbind.adapters.dbapi import DBAPIDriver
from sqlbind.adapters.sqlite import SqliteConfig, SqliteDriver
from sqlbind.base import SQLBind
from sqlbind.config import DatabaseConfig, GenericDatabaseConfig
from sqlbind.core import (
    BatchExecutor,
    BatchOutcome,
    ColumnMapping,
    ExecutionResult,
    RecordAdapter,
    ResultMapper,
    Statement,
    StatementConfig,
    parse_statement,
    register_record_adapter,
    resolve_shape,
)
from sqlbind.driver import DriverAdapterBase, DynamicQuery, Query, Session
from sqlbind.exceptions import (
    ImproperConfigurationError,
    MappingError,
    ParameterError,
    ResultShapeError,
    SQLBindError,
    SQLExecutionError,
)
from sqlbind.parameters import BindingSet, ParameterStyle
from sqlbind.typing import ConnectionT, DictRow, ModelT, StatementParameters

__all__ = (
    "BatchExecutor",
    "BatchOutcome",
    "BindingSet",
    "ColumnMapping",
    "ConnectionT",
    "DBAPIDriver",
    "DatabaseConfig",
    "DictRow",
    "DriverAdapterBase",
    "DynamicQuery",
    "ExecutionResult",
    "GenericDatabaseConfig",
    "ImproperConfigurationError",
    "MappingError",
    "ModelT",
    "ParameterError",
    "ParameterStyle",
    "Query",
    "RecordAdapter",
    "ResultMapper",
    "ResultShapeError",
    "SQLBind",
    "SQLBindError",
    "SQLExecutionError",
    "Session",
    "SqliteConfig",
    "SqliteDriver",
    "Statement",
    "StatementConfig",
    "StatementParameters",
    "__version__",
    "adapters",
    "base",
    "core",
    "driver",
    "exceptions",
    "parameters",
    "parse_statement",
    "register_record_adapter",
    "resolve_shape",
    "typing",
    "utils",
)
