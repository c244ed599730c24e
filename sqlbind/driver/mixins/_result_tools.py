from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional, Union, cast, overload

from mypy_extensions import trait

from sqlbind.core.mapping import ResultMapper
from sqlbind.core.records import is_record_type
from sqlbind.exceptions import UnsupportedReturnShapeError

if TYPE_CHECKING:
    from sqlbind.typing import ModelT

__all__ = ("ToSchemaMixin",)


@trait
class ToSchemaMixin:
    __slots__ = ()

    @overload
    @staticmethod
    def to_schema(
        data: "Sequence[Mapping[str, Any]]",
        *,
        schema_type: "type[ModelT]",
        column_mapping: "Optional[Mapping[str, str]]" = None,
    ) -> "list[ModelT]": ...
    @overload
    @staticmethod
    def to_schema(
        data: "Mapping[str, Any]", *, schema_type: "type[ModelT]", column_mapping: "Optional[Mapping[str, str]]" = None
    ) -> "ModelT": ...
    @overload
    @staticmethod
    def to_schema(
        data: "Any", *, schema_type: None = None, column_mapping: "Optional[Mapping[str, str]]" = None
    ) -> "Any": ...

    @staticmethod
    def to_schema(
        data: "Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]",
        *,
        schema_type: "Optional[type[ModelT]]" = None,
        column_mapping: "Optional[Mapping[str, str]]" = None,
    ) -> Any:
        """Convert result rows into instances of a record type.

        Supports dataclasses, msgspec structs, registered record types and
        annotated classes. Handles both single rows and sequences of rows.

        Raises:
            UnsupportedReturnShapeError: ``schema_type`` is not a record type.

        Returns:
            Converted data in the specified schema type, or ``data`` unchanged
            when no schema type is given.
        """
        if schema_type is None:
            return data
        if not is_record_type(schema_type):
            raise UnsupportedReturnShapeError(schema_type, "`schema_type` should be a record type")
        mapper = ResultMapper(column_mapping)
        if isinstance(data, Mapping):
            return cast("ModelT", mapper.map_record(data, schema_type))
        return [mapper.map_record(row, schema_type) for row in data]
