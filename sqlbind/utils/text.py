"""Identifier translation between SQL column labels and Python member names."""

import re
from functools import lru_cache

# Anything that is not a letter or digit separates words, underscores included.
_SEPARATOR_RE = re.compile(r"[\W_]+")
# "addressId" -> "address|Id", "HTTPRequest" -> "HTTP|Request"
_CASE_BOUNDARY_RE = re.compile(r"(?<=[a-z\d])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

__all__ = ("member_key", "snake_case")


@lru_cache(maxsize=512)
def snake_case(string: str) -> str:
    """Convert an identifier to snake_case.

    SQL labels are case-insensitive, so a single-case label such as
    ``ADDRESS_ID`` only has its case folded, while a mixed-case label such as
    ``addressId`` is split at its case boundaries first. Both end up as
    ``address_id``.

    Args:
        string: The identifier to convert.

    Returns:
        The snake_case form, or an empty string when nothing word-like remains.
    """
    text = string.strip()
    if text.isupper() or text.islower():
        text = text.lower()
    words = (word for part in _SEPARATOR_RE.split(text) for word in _CASE_BOUNDARY_RE.split(part) if word)
    return "_".join(words).lower()


def member_key(name: str) -> str:
    """Key used to match a column label or placeholder name against record members.

    Both sides of the comparison go through this function, so ``ADDRESS_ID``,
    ``address_id`` and ``addressId`` all land on the same key.
    """
    return snake_case(name)
