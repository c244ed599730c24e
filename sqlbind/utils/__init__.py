from sqlbind.utils import logging, text, type_guards

__all__ = ("logging", "text", "type_guards")
