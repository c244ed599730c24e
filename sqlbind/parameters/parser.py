"""Placeholder extraction and normalization.

Named (``:name``) and positional (``?``) placeholders are located outside of
string literals, quoted identifiers and comments, and rewritten into the
positional marker the driver expects.
"""

import re
from typing import Final, NamedTuple

from sqlbind.parameters.types import ParameterInfo, ParameterStyle

__all__ = ("ParsedSQL", "PlaceholderParser")


# Single comprehensive regex; inert regions are matched first so that
# placeholder-like characters inside them are never reported.
_PLACEHOLDER_REGEX: Final = re.compile(
    r"""
    (?P<squote>'(?:[^']|'')*(?:'|\Z)) |                         # 'literal', '' escapes a quote
    (?P<dquote>"(?:[^"]|"")*(?:"|\Z)) |                         # "quoted identifier"
    (?P<dollar_quoted_string>\$(?P<dollar_tag>(?:[A-Za-z_]\w*)?)\$[\s\S]*?\$(?P=dollar_tag)\$) |
    (?P<line_comment>--[^\r\n]*) |
    (?P<block_comment>/\*[\s\S]*?(?:\*/|\Z)) |
    (?P<pg_cast>::) |                                           # PostgreSQL cast, never a placeholder
    (?P<named_colon>:(?P<colon_name>\w+)) |
    (?P<qmark>\?)
    """,
    re.VERBOSE | re.UNICODE,
)

_INERT_GROUPS: Final = (
    "squote",
    "dquote",
    "dollar_quoted_string",
    "line_comment",
    "block_comment",
    "pg_cast",
)


class ParsedSQL(NamedTuple):
    """Result of normalizing one SQL text."""

    normalized_sql: str
    placeholders: "tuple[ParameterInfo, ...]"


class PlaceholderParser:
    """Extracts placeholders from SQL text and rewrites them into driver markers."""

    __slots__ = ("parameter_style",)

    def __init__(self, parameter_style: ParameterStyle = ParameterStyle.QMARK) -> None:
        if not parameter_style.is_driver_marker:
            msg = f"{parameter_style} cannot be used as a driver marker style"
            raise ValueError(msg)
        self.parameter_style = parameter_style

    def parse(self, sql: str) -> ParsedSQL:
        """Normalize ``sql`` and describe its placeholders.

        Parsing never rejects SQL text. Unterminated literals and comments
        run to the end of the text and are copied verbatim.

        Args:
            sql: Raw SQL text.

        Returns:
            The normalized text and the placeholders in source order.
        """
        escape_percent = self.parameter_style is ParameterStyle.POSITIONAL_PYFORMAT
        pieces: list[str] = []
        placeholders: list[ParameterInfo] = []
        cursor = 0

        for match in _PLACEHOLDER_REGEX.finditer(sql):
            pieces.append(self._copy(sql[cursor : match.start()], escape_percent))
            cursor = match.end()

            # lastgroup is the outermost alternative because nested groups close first.
            if match.lastgroup in _INERT_GROUPS:
                pieces.append(self._copy(match.group(0), escape_percent))
                continue

            ordinal = len(placeholders) + 1
            if match.group("named_colon"):
                placeholders.append(
                    ParameterInfo(
                        name=match.group("colon_name"),
                        style=ParameterStyle.NAMED_COLON,
                        position=match.start(),
                        ordinal=ordinal,
                        placeholder_text=match.group(0),
                    )
                )
            else:
                placeholders.append(
                    ParameterInfo(
                        name=None,
                        style=ParameterStyle.QMARK,
                        position=match.start(),
                        ordinal=ordinal,
                        placeholder_text=match.group(0),
                    )
                )
            pieces.append(self.parameter_style.render(ordinal))

        pieces.append(self._copy(sql[cursor:], escape_percent))
        return ParsedSQL("".join(pieces), tuple(placeholders))

    @staticmethod
    def _copy(text: str, escape_percent: bool) -> str:
        return text.replace("%", "%%") if escape_percent else text
