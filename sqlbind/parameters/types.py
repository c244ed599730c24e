"""Core parameter types used throughout sqlbind."""

from enum import Enum
from typing import Final, Optional, Union

__all__ = (
    "DBAPI_PARAMSTYLE_MAP",
    "ParameterInfo",
    "ParameterStyle",
)


class ParameterStyle(str, Enum):
    """Parameter style enumeration with string values.

    ``QMARK`` and ``NAMED_COLON`` are the styles recognised in source SQL.
    ``QMARK``, ``POSITIONAL_PYFORMAT``, ``NUMERIC`` and ``POSITIONAL_COLON``
    are the positional driver markers a statement can be normalized into.
    """

    QMARK = "qmark"
    NAMED_COLON = "named_colon"
    NUMERIC = "numeric"
    POSITIONAL_COLON = "positional_colon"
    POSITIONAL_PYFORMAT = "pyformat_positional"

    def __str__(self) -> str:
        return self.value

    @property
    def is_driver_marker(self) -> bool:
        return self is not ParameterStyle.NAMED_COLON

    def render(self, ordinal: int) -> str:
        """Render the driver marker for a 1-based ordinal."""
        if self is ParameterStyle.QMARK:
            return "?"
        if self is ParameterStyle.POSITIONAL_PYFORMAT:
            return "%s"
        if self is ParameterStyle.NUMERIC:
            return f"${ordinal}"
        if self is ParameterStyle.POSITIONAL_COLON:
            return f":{ordinal}"
        msg = f"{self.value} is not a positional driver marker style"
        raise ValueError(msg)


DBAPI_PARAMSTYLE_MAP: Final["dict[str, ParameterStyle]"] = {
    "qmark": ParameterStyle.QMARK,
    "format": ParameterStyle.POSITIONAL_PYFORMAT,
    "pyformat": ParameterStyle.POSITIONAL_PYFORMAT,
    "numeric": ParameterStyle.POSITIONAL_COLON,
    "named": ParameterStyle.POSITIONAL_COLON,
}
"""Driver marker used for each DB-API 2.0 ``paramstyle`` value."""


class ParameterInfo:
    """Immutable placeholder descriptor.

    ``ordinal`` is 1-based and follows left-to-right source order. ``name`` is
    ``None`` for positional (``?``) placeholders.
    """

    __slots__ = ("name", "ordinal", "placeholder_text", "position", "style")

    name: Optional[str]
    ordinal: int
    placeholder_text: str
    position: int
    style: ParameterStyle

    def __init__(
        self, name: Optional[str], style: ParameterStyle, position: int, ordinal: int, placeholder_text: str
    ) -> None:
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "style", style)
        object.__setattr__(self, "position", position)
        object.__setattr__(self, "ordinal", ordinal)
        object.__setattr__(self, "placeholder_text", placeholder_text)

    def __setattr__(self, name: str, value: object) -> None:
        msg = f"{type(self).__name__} is immutable"
        raise AttributeError(msg)

    @property
    def is_named(self) -> bool:
        return self.name is not None

    @property
    def label(self) -> "Union[str, int]":
        """Name for named placeholders, ordinal for positional ones."""
        return self.name if self.name is not None else self.ordinal

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return (
            self.name == other.name
            and self.style == other.style
            and self.position == other.position
            and self.ordinal == other.ordinal
        )

    def __hash__(self) -> int:
        return hash((self.name, self.style, self.position, self.ordinal))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, ordinal={self.ordinal!r}, "
            f"placeholder_text={self.placeholder_text!r}, position={self.position!r}, style={self.style!r})"
        )
