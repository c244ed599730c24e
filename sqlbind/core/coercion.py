"""Coercion of raw column values into declared Python types."""

import datetime
import typing
from decimal import Decimal
from typing import Any, Callable, Final, Optional
from uuid import UUID

from sqlbind.core.records import unwrap_optional
from sqlbind.exceptions import EnumCoercionError, NullToPrimitiveError, ScalarCoercionError
from sqlbind.utils.type_guards import is_enum_type

__all__ = ("NON_NULLABLE_PRIMITIVES", "coerce_value")

NON_NULLABLE_PRIMITIVES: Final = (bool, int, float)

_TRUE_STRINGS: Final = frozenset({"true", "t", "yes", "y", "1"})
_FALSE_STRINGS: Final = frozenset({"false", "f", "no", "n", "0"})


def _unsupported(value: Any) -> "TypeError":
    return TypeError(f"unsupported source type {type(value).__name__}")


def _to_int(value: Any) -> int:
    if isinstance(value, float):
        if not value.is_integer():
            msg = f"{value!r} is not integral"
            raise ValueError(msg)
        return int(value)
    if isinstance(value, Decimal):
        if value != value.to_integral_value():
            msg = f"{value!r} is not integral"
            raise ValueError(msg)
        return int(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return _to_int(Decimal(text))
    raise _unsupported(value)


def _to_float(value: Any) -> float:
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise _unsupported(value)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, (int, str)):
        return Decimal(value.strip() if isinstance(value, str) else value)
    raise _unsupported(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, (int, Decimal)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        msg = f"{value!r} is not a boolean literal"
        raise ValueError(msg)
    raise _unsupported(value)


def _to_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8")
    return str(value)


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise _unsupported(value)


def _parse_iso_datetime(text: str) -> datetime.datetime:
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    return datetime.datetime.fromisoformat(text)


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        return _parse_iso_datetime(value)
    raise _unsupported(value)


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.date.fromisoformat(text)
        except ValueError:
            return _parse_iso_datetime(text).date()
    raise _unsupported(value)


def _to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.datetime):
        return value.time()
    if isinstance(value, str):
        return datetime.time.fromisoformat(value.strip())
    raise _unsupported(value)


def _to_uuid(value: Any) -> UUID:
    if isinstance(value, str):
        return UUID(value.strip())
    if isinstance(value, (bytes, bytearray, memoryview)):
        return UUID(bytes=bytes(value))
    raise _unsupported(value)


_DEFAULT_TYPE_DECODERS: "list[tuple[Callable[[Any], bool], Callable[[Any], Any]]]" = [
    (lambda t: t is bool, _to_bool),
    (lambda t: t is int, _to_int),
    (lambda t: t is float, _to_float),
    (lambda t: t is Decimal, _to_decimal),
    (lambda t: t is str, _to_str),
    (lambda t: t is bytes, _to_bytes),
    (lambda t: t is datetime.datetime, _to_datetime),
    (lambda t: t is datetime.date, _to_date),
    (lambda t: t is datetime.time, _to_time),
    (lambda t: t is UUID, _to_uuid),
]


def _coerce_enum(value: Any, enum_type: Any, column: Optional[str]) -> Any:
    if isinstance(value, enum_type):
        return value
    member = enum_type.__members__.get(value) if isinstance(value, str) else None
    if member is None:
        raise EnumCoercionError(value, enum_type, column)
    return member


def coerce_value(
    value: Any, target_type: Any, *, column: Optional[str] = None, member: Optional[str] = None
) -> Any:
    """Coerce a raw column value to ``target_type``.

    Args:
        value: Value as returned by the driver.
        target_type: Declared type, possibly ``Optional``.
        column: Column label, used in error messages.
        member: Member name, used in error messages.

    Raises:
        NullToPrimitiveError: ``value`` is ``None`` and the type is a non-optional ``int``, ``float`` or ``bool``.
        EnumCoercionError: ``value`` names no member of the target enum.
        ScalarCoercionError: ``value`` cannot be converted to the target type.

    Returns:
        The converted value.
    """
    target, nullable = unwrap_optional(target_type)
    if value is None:
        if not nullable and target in NON_NULLABLE_PRIMITIVES:
            raise NullToPrimitiveError(column or "?", target, member)
        return None
    if target is Any or target is object or isinstance(target, typing.TypeVar):
        return value
    if is_enum_type(target):
        return _coerce_enum(value, target, column)
    if type(value) is target:
        return value

    for predicate, decoder in _DEFAULT_TYPE_DECODERS:
        if predicate(target):
            try:
                return decoder(value)
            except (ArithmeticError, TypeError, ValueError) as exc:
                raise ScalarCoercionError(value, target, column, member) from exc

    origin = typing.get_origin(target)
    check_type = origin if isinstance(origin, type) else target
    if isinstance(check_type, type) and isinstance(value, check_type):
        return value
    if not isinstance(check_type, type):
        # Unions and other special forms are passed through untouched.
        return value
    raise ScalarCoercionError(value, target, column, member)
