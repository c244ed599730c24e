"""Raw execution results returned by drivers."""

from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from sqlbind.typing import DictRow

__all__ = ("BatchOutcome", "ExecutionResult")


class ExecutionResult(NamedTuple):
    """Everything a driver reports about one execution.

    Attributes:
        rows: Result rows keyed by column label, in driver order.
        column_names: Column labels in result set order.
        rows_affected: Row count reported by the driver, ``-1`` when unknown.
        generated_keys: Keys generated by the database for inserted rows.
    """

    rows: "list[DictRow]"
    column_names: "list[str]"
    rows_affected: int
    generated_keys: "list[Any]"


class BatchOutcome(NamedTuple):
    """Result of executing one chunk of a batch.

    Attributes:
        chunk_index: 0-based position of the chunk.
        start_row: 0-based index of the chunk's first input row.
        row_count: Number of rows sent in the chunk.
        rows_affected: Row count reported by the driver for the chunk.
        generated_keys: Keys generated for the chunk's rows, when collected.
    """

    chunk_index: int
    start_row: int
    row_count: int
    rows_affected: int
    generated_keys: "list[Any]"
