"""Driver mixins for result conversion."""

from sqlbind.driver.mixins._result_tools import ToSchemaMixin

__all__ = ("ToSchemaMixin",)
