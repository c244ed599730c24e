"""Type guard functions for runtime type checking in sqlbind."""

import enum
from typing import TYPE_CHECKING, Any, Union, get_origin

from msgspec import Struct

if TYPE_CHECKING:
    from typing_extensions import TypeGuard

    from sqlbind.typing import DataclassProtocol

__all__ = ("is_dataclass", "is_enum_type", "is_msgspec_struct_type", "is_parameter_sequence")


def is_dataclass(obj: Any) -> "TypeGuard[type[DataclassProtocol]]":
    """Check if an object is a dataclass type.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return _is_plain_class(obj) and hasattr(obj, "__dataclass_fields__")


def is_msgspec_struct_type(obj: Any) -> "TypeGuard[type[Struct]]":
    """Check if a value is a msgspec struct class."""
    return _is_plain_class(obj) and issubclass(obj, Struct)


def is_enum_type(obj: Any) -> "TypeGuard[type[enum.Enum]]":
    """Check if a value is an enum class."""
    return _is_plain_class(obj) and issubclass(obj, enum.Enum)


def _is_plain_class(obj: Any) -> bool:
    # Parameterized generics such as list[int] pass isinstance(obj, type) on older interpreters.
    return isinstance(obj, type) and get_origin(obj) is None


def is_parameter_sequence(obj: Any) -> "TypeGuard[Union[tuple[Any, ...], list[Any]]]":
    """Check if a value is a positional parameter sequence (list or tuple)."""
    return isinstance(obj, (list, tuple))
