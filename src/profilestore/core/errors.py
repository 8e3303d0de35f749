"""
profilestore error taxonomy.

Errors raised by ``ObservableTree.set`` (path and validation errors) are
surfaced synchronously and are recoverable by the caller. Load-time errors
(structural validation, migrations) end the entity's session instead.
"""

from typing import Optional


class StoreError(Exception):
    """Base exception for every profilestore error"""
    pass


class SchemaError(StoreError):
    """Raised when a schema description cannot be compiled"""
    pass


class SessionError(StoreError):
    """Raised when a persistence session cannot be claimed or used"""
    pass


class PathNotFound(StoreError):
    """Raised when ``set`` targets a path whose parent does not exist"""

    def __init__(self, path: str, missing: Optional[str] = None):
        self.path = path
        self.missing = missing if missing is not None else path
        super().__init__(f"Path '{path}' not found: '{self.missing}' does not exist")


class ValidationRejected(StoreError):
    """Raised when the write validator vetoes a write"""

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason or f"Write to '{path}' was rejected"
        super().__init__(self.reason)


class UnknownPath(ValidationRejected):
    """Raised when a write targets a path the schema does not declare"""

    def __init__(self, path: str):
        super().__init__(path, f"Unknown path '{path}': not declared in schema")


class TypeMismatch(ValidationRejected):
    """Raised when a written value's kind differs from the schema's"""

    def __init__(self, path: str, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(path, f"Type mismatch at '{path}': expected {expected}, got {actual}")


class StructuralValidationFailed(StoreError):
    """Raised when loaded data does not match the schema template"""

    def __init__(self, path: str, expected: str, actual: str):
        self.path = path
        self.expected = expected
        self.actual = actual
        where = path or "<root>"
        super().__init__(f"Structural validation failed at '{where}': expected {expected}, got {actual}")


class MigrationFailed(StoreError):
    """Raised when a migration function raises while upgrading data"""

    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(f"Migration {index} failed: {cause}")
