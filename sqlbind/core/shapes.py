"""Row shapes and their resolution from declared return types.

A declared return type such as ``list[Address]`` or ``dict[int, Address]``
is resolved once into a :data:`RowShape` variant. The variant decides how
many rows are consumed and how each of them is mapped.
"""

import collections.abc
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Final, Optional, Union

from typing_extensions import TypeAlias

from sqlbind.core.records import SCALAR_TYPES, get_record_adapter, is_record_type, unwrap_optional
from sqlbind.exceptions import MissingKeyFieldDeclarationError, UnsupportedReturnShapeError
from sqlbind.utils.logging import get_logger
from sqlbind.utils.type_guards import is_enum_type

__all__ = (
    "CollectionShape",
    "GenericMapShape",
    "KeyedMapShape",
    "RecordShape",
    "RowShape",
    "ScalarShape",
    "resolve_shape",
)

logger = get_logger("core.shapes")


@dataclass(frozen=True)
class ScalarShape:
    """A single value taken from the first column."""

    type: Any
    nullable: bool = False


@dataclass(frozen=True)
class GenericMapShape:
    """A ``dict`` of column label to raw value."""


@dataclass(frozen=True)
class RecordShape:
    """An instance of a record type."""

    type: type


ElementShape: TypeAlias = Union[ScalarShape, GenericMapShape, RecordShape]


@dataclass(frozen=True)
class CollectionShape:
    """Every row, mapped into ``element``, in driver order."""

    element: ElementShape


@dataclass(frozen=True)
class KeyedMapShape:
    """Records indexed by the value of their ``key_field`` member."""

    key_field: str
    element: RecordShape


RowShape: TypeAlias = Union[ScalarShape, GenericMapShape, RecordShape, CollectionShape, KeyedMapShape]

ShapeStrategy: TypeAlias = Callable[[Any, Optional[str]], Optional[RowShape]]

_COLLECTION_ORIGINS: Final = frozenset(
    {list, tuple, collections.abc.Sequence, collections.abc.Iterable, collections.abc.Collection}
)
_MAPPING_ORIGINS: Final = frozenset({dict, collections.abc.Mapping, collections.abc.MutableMapping})


def _is_scalar_type(candidate: Any) -> bool:
    return candidate in SCALAR_TYPES or is_enum_type(candidate)


def _is_generic_value(candidate: Any) -> bool:
    return candidate is Any or candidate is object


def _keyed_map_strategy(declared_type: Any, key_field: Optional[str]) -> Optional[RowShape]:
    if typing.get_origin(declared_type) not in _MAPPING_ORIGINS:
        return None
    args = typing.get_args(declared_type)
    if len(args) != 2 or not is_record_type(args[1]):
        return None
    value_type = args[1]
    if not key_field:
        msg = f"{value_type.__qualname__} requires a key field in order to load records into a map"
        raise MissingKeyFieldDeclarationError(msg)
    member = get_record_adapter(value_type).find_member(key_field)
    if member is None:
        msg = f"Map key field '{key_field}' not found in {value_type.__qualname__}"
        raise MissingKeyFieldDeclarationError(msg)
    return KeyedMapShape(key_field=member, element=RecordShape(value_type))


def _collection_strategy(declared_type: Any, key_field: Optional[str]) -> Optional[RowShape]:
    origin = typing.get_origin(declared_type)
    if origin not in _COLLECTION_ORIGINS:
        return None
    args = typing.get_args(declared_type)
    if origin is tuple:
        if len(args) != 2 or args[1] is not Ellipsis:
            raise UnsupportedReturnShapeError(declared_type, "only variadic tuple[T, ...] is supported")
        args = args[:1]
    if len(args) != 1:
        return None
    element = _resolve_element(args[0])
    if element is None:
        raise UnsupportedReturnShapeError(declared_type, f"unsupported element type {args[0]!r}")
    return CollectionShape(element)


def _generic_map_strategy(declared_type: Any, key_field: Optional[str]) -> Optional[RowShape]:
    if declared_type in _MAPPING_ORIGINS:
        return GenericMapShape()
    if typing.get_origin(declared_type) not in _MAPPING_ORIGINS:
        return None
    key_type, value_type = typing.get_args(declared_type) or (str, Any)
    if key_type is str and _is_generic_value(value_type):
        return GenericMapShape()
    return None


def _scalar_strategy(declared_type: Any, key_field: Optional[str]) -> Optional[RowShape]:
    target, nullable = unwrap_optional(declared_type)
    if _is_scalar_type(target):
        return ScalarShape(target, nullable)
    return None


def _record_strategy(declared_type: Any, key_field: Optional[str]) -> Optional[RowShape]:
    if is_record_type(declared_type):
        return RecordShape(declared_type)
    return None


_STRATEGIES: "tuple[ShapeStrategy, ...]" = (
    _keyed_map_strategy,
    _collection_strategy,
    _generic_map_strategy,
    _scalar_strategy,
    _record_strategy,
)
_ELEMENT_STRATEGIES: "tuple[ShapeStrategy, ...]" = (_generic_map_strategy, _scalar_strategy, _record_strategy)


def _resolve_element(element_type: Any) -> "Optional[ElementShape]":
    for strategy in _ELEMENT_STRATEGIES:
        shape = strategy(element_type, None)
        if shape is not None:
            return typing.cast("ElementShape", shape)
    return None


@lru_cache(maxsize=256)
def resolve_shape(declared_type: Any, key_field: Optional[str] = None) -> RowShape:
    """Resolve a declared return type into a row shape.

    Strategies are tried in order and the first match wins: keyed map,
    collection, generic map, scalar, record.

    Args:
        declared_type: The caller's requested result type.
        key_field: Member used as the key of a keyed map result.

    Raises:
        MissingKeyFieldDeclarationError: a keyed map was requested without a usable key field.
        UnsupportedReturnShapeError: no strategy can materialize ``declared_type``.

    Returns:
        The resolved shape.
    """
    for strategy in _STRATEGIES:
        shape = strategy(declared_type, key_field)
        if shape is not None:
            logger.debug("Resolved %r into %r", declared_type, shape)
            return shape
    raise UnsupportedReturnShapeError(declared_type)
