"""
Application Layer

Orchestrates the core tree and the schema into the two store roles:

- authoritative: owns, validates and persists each entity's data
- mirror: read-only replica fed by replication messages
- bus: the replication message and channel
- migrations: ordered upgrades of saved data
"""

from .authoritative import AuthoritativeStore, EntitySession, SessionState
from .bus import InProcessChannel, ReplicationChannel, ReplicationMessage, get_default_channel
from .config import LoggingConfig, MirrorConfig, StoreConfig, configure_logging
from .configurator import create_authoritative_store, create_mirror_store
from .migrations import run_migrations
from .mirror import MirrorStore

__all__ = [
    'AuthoritativeStore',
    'EntitySession',
    'SessionState',
    'InProcessChannel',
    'ReplicationChannel',
    'ReplicationMessage',
    'get_default_channel',
    'LoggingConfig',
    'MirrorConfig',
    'StoreConfig',
    'configure_logging',
    'create_authoritative_store',
    'create_mirror_store',
    'run_migrations',
    'MirrorStore',
]
