"""
profilestore Schema Module

Declarative schema markers, the schema compiler and the validators built on
the compiled schema.
"""

from .markers import MapMarker, PrivateMarker, map_field, private_field
from .kinds import kind_of
from .compiler import CompiledSchema, compile_schema, build_client_template, strip_private
from .validation import Mismatch, find_mismatch, validate_data, validate_write, make_write_validator

__all__ = [
    "MapMarker",
    "PrivateMarker",
    "map_field",
    "private_field",
    "kind_of",
    "CompiledSchema",
    "compile_schema",
    "build_client_template",
    "strip_private",
    "Mismatch",
    "find_mismatch",
    "validate_data",
    "validate_write",
    "make_write_validator",
]
