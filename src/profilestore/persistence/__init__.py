"""
profilestore Persistence Module

Boundary to the durable profile backend plus an in-memory implementation.
"""

from .base import NEW_ENTITY_VERSION, ProfileBackend, ProfileHandle
from .memory import MemoryBackend, MemoryProfile, get_memory_backend

__all__ = [
    "NEW_ENTITY_VERSION",
    "ProfileBackend",
    "ProfileHandle",
    "MemoryBackend",
    "MemoryProfile",
    "get_memory_backend",
]
