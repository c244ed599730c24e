"""Parameterized query engine.

- statement.py: parsed, immutable statements and their configuration
- records.py: record reflection adapters
- coercion.py: raw value to declared type coercion
- mapping.py: row to scalar, dict or record mapping
- shapes.py: declared return type to row shape resolution
- interpreter.py: assembly of mapped rows into the resolved shape
- batch.py: chunked batch execution
- result.py: driver execution results
"""

from sqlbind.core.batch import BatchExecutor, bind_row
from sqlbind.core.coercion import coerce_value
from sqlbind.core.interpreter import interpret, unique_row
from sqlbind.core.mapping import ColumnMapping, ResultMapper
from sqlbind.core.records import (
    DataclassAdapter,
    MappingAdapter,
    PlainClassAdapter,
    RecordAdapter,
    StructAdapter,
    get_record_adapter,
    is_record_type,
    register_record_adapter,
)
from sqlbind.core.result import BatchOutcome, ExecutionResult
from sqlbind.core.shapes import (
    CollectionShape,
    GenericMapShape,
    KeyedMapShape,
    RecordShape,
    RowShape,
    ScalarShape,
    resolve_shape,
)
from sqlbind.core.statement import DEFAULT_BATCH_CHUNK_SIZE, Statement, StatementConfig, parse_statement

__all__ = (
    "DEFAULT_BATCH_CHUNK_SIZE",
    "BatchExecutor",
    "BatchOutcome",
    "CollectionShape",
    "ColumnMapping",
    "DataclassAdapter",
    "ExecutionResult",
    "GenericMapShape",
    "KeyedMapShape",
    "MappingAdapter",
    "PlainClassAdapter",
    "RecordAdapter",
    "RecordShape",
    "ResultMapper",
    "RowShape",
    "ScalarShape",
    "Statement",
    "StatementConfig",
    "StructAdapter",
    "bind_row",
    "coerce_value",
    "get_record_adapter",
    "interpret",
    "is_record_type",
    "parse_statement",
    "register_record_adapter",
    "resolve_shape",
    "unique_row",
)
