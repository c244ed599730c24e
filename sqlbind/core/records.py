"""Record reflection.

A :class:`RecordAdapter` gives uniform access to the members of a record
type: listing them, reading them from an instance, and constructing a new
instance from member values. Adapters exist for dataclasses, msgspec
Structs, mappings and plain annotated classes; other types can be
registered explicitly with :func:`register_record_adapter`.
"""

import dataclasses
import datetime
import enum
import threading
import types
import typing
import uuid
from abc import ABC, abstractmethod
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Final, Optional, Union

from msgspec import structs

from sqlbind.utils.text import member_key
from sqlbind.utils.type_guards import is_dataclass, is_msgspec_struct_type

__all__ = (
    "DataclassAdapter",
    "MappingAdapter",
    "PlainClassAdapter",
    "RecordAdapter",
    "StructAdapter",
    "get_record_adapter",
    "is_record_type",
    "register_record_adapter",
    "unwrap_optional",
    "zero_value",
)

_NONE_TYPE: Final = type(None)

SCALAR_TYPES: Final = frozenset(
    {
        int,
        float,
        str,
        bool,
        bytes,
        Decimal,
        datetime.date,
        datetime.datetime,
        datetime.time,
        uuid.UUID,
    }
)
"""Types that are always values, never records."""

_PRIMITIVE_ZERO_VALUES: Final["dict[Any, Any]"] = {bool: False, int: 0, float: 0.0}


def unwrap_optional(annotation: Any) -> "tuple[Any, bool]":
    """Split ``Optional[X]`` into ``(X, True)``; other annotations are returned as ``(annotation, False)``.

    Unions of more than one non-null type are returned unchanged.
    """
    if typing.get_origin(annotation) is Union or _is_pep604_union(annotation):
        args = [arg for arg in typing.get_args(annotation) if arg is not _NONE_TYPE]
        nullable = len(args) != len(typing.get_args(annotation))
        if len(args) == 1:
            return args[0], nullable
        return annotation, nullable
    return annotation, annotation is None or annotation is _NONE_TYPE


def _is_pep604_union(annotation: Any) -> bool:
    union_type = getattr(types, "UnionType", None)
    return union_type is not None and isinstance(annotation, union_type)


def zero_value(annotation: Any) -> Any:
    """Value given to a member that has neither a column nor a default.

    ``int``, ``float`` and ``bool`` members get ``0``, ``0.0`` and ``False``;
    every other member gets ``None``.
    """
    target, nullable = unwrap_optional(annotation)
    if nullable:
        return None
    return _PRIMITIVE_ZERO_VALUES.get(target)


def _resolve_hints(record_type: type) -> "dict[str, Any]":
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError):
        # Unresolvable forward references fall back to the raw annotations.
        hints: dict[str, Any] = {}
        for klass in reversed(record_type.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def _readable_attributes(record: Any) -> "tuple[str, ...]":
    names: dict[str, None] = {}
    for klass in type(record).__mro__:
        namespace = vars(klass)
        names.update((name, None) for name, attribute in namespace.items() if isinstance(attribute, property))
        slots = namespace.get("__slots__", ())
        for slot in (slots,) if isinstance(slots, str) else slots:
            if hasattr(record, slot):
                names.setdefault(slot)
    names.update(dict.fromkeys(getattr(record, "__dict__", {})))
    return tuple(name for name in names if not name.startswith("_"))


class RecordAdapter(ABC):
    """Member access for one record type."""

    __slots__ = ("_by_key", "record_type")

    def __init__(self, record_type: type) -> None:
        self.record_type = record_type
        self._by_key: dict[str, str] = {}
        for member in self.members():
            self._by_key.setdefault(member_key(member), member)

    @abstractmethod
    def members(self) -> "tuple[str, ...]":
        """Member names in declaration order."""

    @abstractmethod
    def member_type(self, member: str) -> Any:
        """Declared type of ``member``, or ``Any`` when undeclared."""

    @abstractmethod
    def get(self, record: Any, member: str) -> Any:
        """Read ``member`` from ``record``."""

    @abstractmethod
    def construct(self, values: "dict[str, Any]") -> Any:
        """Build a new record from ``values``.

        Members missing from ``values`` keep their default, or their
        :func:`zero_value` when they have none.
        """

    def has_member(self, member: str) -> bool:
        return member in self.members()

    def find_member(self, name: str, record: Any = None) -> Optional[str]:
        """Find the member a column label or placeholder name refers to.

        The exact member name wins; otherwise both sides are compared
        through :func:`~sqlbind.utils.text.member_key`. When reading from
        ``record``, its public properties, slots and instance attributes are
        searched after the declared members.
        """
        if self.has_member(name):
            return name
        member = self._by_key.get(member_key(name))
        if member is not None or record is None:
            return member
        attributes = _readable_attributes(record)
        if name in attributes:
            return name
        key = member_key(name)
        return next((attribute for attribute in attributes if member_key(attribute) == key), None)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.record_type.__qualname__})"


class DataclassAdapter(RecordAdapter):
    __slots__ = ("_fields", "_hints")

    def __init__(self, record_type: type) -> None:
        self._fields = {field.name: field for field in dataclasses.fields(record_type)}
        self._hints = _resolve_hints(record_type)
        super().__init__(record_type)

    def members(self) -> "tuple[str, ...]":
        return tuple(self._fields)

    def member_type(self, member: str) -> Any:
        return self._hints.get(member, Any)

    def get(self, record: Any, member: str) -> Any:
        return getattr(record, member)

    def construct(self, values: "dict[str, Any]") -> Any:
        kwargs: dict[str, Any] = {}
        late: dict[str, Any] = {}
        for name, field in self._fields.items():
            has_default = field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING
            if name in values:
                value = values[name]
            elif has_default:
                continue
            else:
                value = zero_value(self.member_type(name))
            if field.init:
                kwargs[name] = value
            else:
                late[name] = value
        record = self.record_type(**kwargs)
        for name, value in late.items():
            object.__setattr__(record, name, value)
        return record


class StructAdapter(RecordAdapter):
    __slots__ = ("_fields",)

    def __init__(self, record_type: type) -> None:
        self._fields = {field.name: field for field in structs.fields(record_type)}
        super().__init__(record_type)

    def members(self) -> "tuple[str, ...]":
        return tuple(self._fields)

    def member_type(self, member: str) -> Any:
        field = self._fields.get(member)
        return field.type if field is not None else Any

    def get(self, record: Any, member: str) -> Any:
        return getattr(record, member)

    def construct(self, values: "dict[str, Any]") -> Any:
        kwargs: dict[str, Any] = {}
        for name, field in self._fields.items():
            if name in values:
                kwargs[name] = values[name]
            elif field.required:
                kwargs[name] = zero_value(field.type)
        return self.record_type(**kwargs)


class MappingAdapter(RecordAdapter):
    """Adapter for dict-like records; members are the keys of each instance."""

    __slots__ = ()

    def members(self) -> "tuple[str, ...]":
        return ()

    def member_type(self, member: str) -> Any:
        return Any

    def find_member(self, name: str, record: Any = None) -> Optional[str]:
        if record is None:
            return None
        if name in record:
            return name
        key = member_key(name)
        return next((candidate for candidate in record if member_key(str(candidate)) == key), None)

    def get(self, record: Any, member: str) -> Any:
        return record[member]

    def construct(self, values: "dict[str, Any]") -> Any:
        return self.record_type(values)


class PlainClassAdapter(RecordAdapter):
    """Adapter for ordinary classes.

    Members are the class annotations. Instances are created with a
    no-argument constructor and populated attribute by attribute.
    """

    __slots__ = ("_hints",)

    def __init__(self, record_type: type) -> None:
        self._hints = {
            name: hint
            for name, hint in _resolve_hints(record_type).items()
            if not name.startswith("_") and typing.get_origin(hint) is not typing.ClassVar
        }
        super().__init__(record_type)

    def members(self) -> "tuple[str, ...]":
        return tuple(self._hints)

    def member_type(self, member: str) -> Any:
        return self._hints.get(member, Any)

    def get(self, record: Any, member: str) -> Any:
        return getattr(record, member)

    def construct(self, values: "dict[str, Any]") -> Any:
        record = self.record_type()
        for name in self.members():
            if name in values:
                setattr(record, name, values[name])
            elif not hasattr(record, name):
                setattr(record, name, zero_value(self.member_type(name)))
        return record


_registry: "dict[type, RecordAdapter]" = {}
_adapter_cache: "dict[type, RecordAdapter]" = {}
_lock = threading.Lock()


def register_record_adapter(record_type: type, adapter: "Optional[RecordAdapter]" = None) -> RecordAdapter:
    """Register how ``record_type`` is reflected.

    Args:
        record_type: The record class.
        adapter: Adapter to use; defaults to a :class:`PlainClassAdapter`.

    Returns:
        The registered adapter.
    """
    adapter = adapter or PlainClassAdapter(record_type)
    with _lock:
        _registry[record_type] = adapter
        _adapter_cache.clear()
    return adapter


def _registered_adapter(record_type: type) -> "Optional[RecordAdapter]":
    for klass in getattr(record_type, "__mro__", (record_type,)):
        if klass in _registry:
            return _registry[klass]
    return None


def get_record_adapter(record_type: type) -> RecordAdapter:
    """Return the adapter for ``record_type``, creating and caching it on first use."""
    adapter = _adapter_cache.get(record_type)
    if adapter is not None:
        return adapter

    adapter = _registered_adapter(record_type)
    if adapter is None:
        if is_dataclass(record_type):
            adapter = DataclassAdapter(record_type)
        elif is_msgspec_struct_type(record_type):
            adapter = StructAdapter(record_type)
        elif issubclass(record_type, Mapping):
            adapter = MappingAdapter(record_type)
        else:
            adapter = PlainClassAdapter(record_type)
    with _lock:
        _adapter_cache[record_type] = adapter
    return adapter


def is_record_type(candidate: Any) -> bool:
    """Whether ``candidate`` is a class results can be mapped into as a record."""
    if not isinstance(candidate, type) or candidate is Any or typing.get_origin(candidate) is not None:
        return False
    if _registered_adapter(candidate) is not None:
        return True
    if candidate in SCALAR_TYPES or issubclass(candidate, (enum.Enum, Mapping, list, tuple, set, frozenset)):
        return False
    if is_dataclass(candidate) or is_msgspec_struct_type(candidate):
        return True
    return bool(PlainClassAdapter(candidate).members())
