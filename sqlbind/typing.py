from collections.abc import Mapping, Sequence
from dataclasses import Field
from typing import Any, ClassVar, Protocol, Union

from typing_extensions import TypeAlias, TypeVar

__all__ = ("ConnectionT", "DataclassProtocol", "DictRow", "ModelT", "StatementParameters")


class DataclassProtocol(Protocol):
    """Protocol for instance checking dataclasses."""

    __dataclass_fields__: "ClassVar[dict[str, Field[Any]]]"


ConnectionT = TypeVar("ConnectionT")
"""Type variable for a DB-API connection object."""
ModelT = TypeVar("ModelT", default=Any)
"""Type variable for record types results are mapped into."""

DictRow: TypeAlias = "dict[str, Any]"
"""A result row keyed by column label, in column order."""
StatementParameters: TypeAlias = Union["Mapping[str, Any]", "Sequence[Any]"]
"""Parameters accepted when binding a whole row at once: by name, or by ordinal from 1."""
