"""
profilestore Core Module

Domain layer - the observable tree and the primitives it is built from.
No dependency on schemas, persistence or transport.
"""

from .errors import (
    StoreError,
    SchemaError,
    SessionError,
    PathNotFound,
    ValidationRejected,
    UnknownPath,
    TypeMismatch,
    StructuralValidationFailed,
    MigrationFailed,
)
from .signals import Signal
from .tree import ObservableTree, ReadOnlyTree
from .utils import split_path, join_path, normalize_path, ancestor_paths, is_within

__all__ = [
    "StoreError",
    "SchemaError",
    "SessionError",
    "PathNotFound",
    "ValidationRejected",
    "UnknownPath",
    "TypeMismatch",
    "StructuralValidationFailed",
    "MigrationFailed",
    "Signal",
    "ObservableTree",
    "ReadOnlyTree",
    "split_path",
    "join_path",
    "normalize_path",
    "ancestor_paths",
    "is_within",
]
