"""
profilestore - schema-validated, observable, replicated entity data

Per-entity persistent state (a player's save data, for example) held as a
path-addressed observable tree on an authoritative server and replicated,
minus private fields, to read-only mirrors.
"""

from .core import (
    ObservableTree, ReadOnlyTree, Signal,
    StoreError, SchemaError, SessionError, PathNotFound, ValidationRejected,
    UnknownPath, TypeMismatch, StructuralValidationFailed, MigrationFailed,
)
from .schema import (
    map_field, private_field, compile_schema, CompiledSchema,
    validate_data, validate_write,
)
from .persistence import ProfileBackend, ProfileHandle, MemoryBackend, get_memory_backend
from .app import (
    AuthoritativeStore, MirrorStore, SessionState,
    ReplicationMessage, ReplicationChannel, InProcessChannel,
    StoreConfig, MirrorConfig, LoggingConfig, configure_logging,
    create_authoritative_store, create_mirror_store, run_migrations,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    'ObservableTree',
    'ReadOnlyTree',
    'Signal',
    'StoreError',
    'SchemaError',
    'SessionError',
    'PathNotFound',
    'ValidationRejected',
    'UnknownPath',
    'TypeMismatch',
    'StructuralValidationFailed',
    'MigrationFailed',

    # Schema
    'map_field',
    'private_field',
    'compile_schema',
    'CompiledSchema',
    'validate_data',
    'validate_write',

    # Persistence
    'ProfileBackend',
    'ProfileHandle',
    'MemoryBackend',
    'get_memory_backend',

    # Stores
    'AuthoritativeStore',
    'MirrorStore',
    'SessionState',
    'ReplicationMessage',
    'ReplicationChannel',
    'InProcessChannel',
    'StoreConfig',
    'MirrorConfig',
    'LoggingConfig',
    'configure_logging',
    'create_authoritative_store',
    'create_mirror_store',
    'run_migrations',
]
