"""Driver base classes, sessions and queries."""

from sqlbind.driver import mixins
from sqlbind.driver._common import DriverAdapterBase
from sqlbind.driver.query import DynamicQuery, Query
from sqlbind.driver.session import Session

__all__ = ("DriverAdapterBase", "DynamicQuery", "Query", "Session", "mixins")
