"""Placeholder parsing and parameter binding."""

from sqlbind.parameters.binding import BindingSet
from sqlbind.parameters.parser import ParsedSQL, PlaceholderParser
from sqlbind.parameters.types import DBAPI_PARAMSTYLE_MAP, ParameterInfo, ParameterStyle

__all__ = ("DBAPI_PARAMSTYLE_MAP", "BindingSet", "ParameterInfo", "ParameterStyle", "ParsedSQL", "PlaceholderParser")
