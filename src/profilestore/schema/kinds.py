"""Basic value kinds compared by the validator."""

from collections.abc import Mapping
from typing import Any

NIL = "nil"
BOOLEAN = "boolean"
NUMBER = "number"
STRING = "string"
TABLE = "table"
ARRAY = "array"


def kind_of(value: Any) -> str:
    """Return the basic kind of ``value``; ints and floats are both numbers."""
    if value is None:
        return NIL
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, (int, float)):
        return NUMBER
    if isinstance(value, str):
        return STRING
    if isinstance(value, Mapping):
        return TABLE
    if isinstance(value, (list, tuple)):
        return ARRAY
    return type(value).__name__
