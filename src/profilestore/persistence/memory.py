"""
profilestore Persistence Layer - Memory Backend

In-memory profile persistence for development and testing.
Data is lost when the process exits.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, Optional

from ..core.errors import SessionError
from .base import NEW_ENTITY_VERSION, ProfileBackend, ProfileHandle

logger = logging.getLogger(__name__)


class MemoryProfile(ProfileHandle):
    """Session handle issued by ``MemoryBackend``."""

    def __init__(self, backend: 'MemoryBackend', entity_id: str, data: Dict[str, Any], version: int):
        super().__init__(entity_id, data, version)
        self._backend = backend

    async def save(self) -> None:
        if not self.active:
            raise SessionError(f"Cannot save '{self.entity_id}': session is no longer active")
        await self._backend._store(self)

    async def release(self) -> None:
        self._active = False
        self._backend._release(self)


class MemoryBackend(ProfileBackend):
    """
    In-memory profile backend.

    Refuses a second concurrent session for the same entity, which is how a
    session-claim conflict surfaces. ``load_delay`` simulates a slow store.
    """

    def __init__(self, load_delay: float = 0.0, save_delay: float = 0.0):
        self.load_delay = load_delay
        self.save_delay = save_delay
        self._records: Dict[str, Dict[str, Any]] = {}
        self._sessions: Dict[str, MemoryProfile] = {}
        self.save_count = 0

    async def start_session(self, entity_id: str, template: Dict[str, Any]) -> MemoryProfile:
        if entity_id in self._sessions:
            raise SessionError(f"Session for '{entity_id}' is already claimed")

        record = self._records.get(entity_id)
        if record is None:
            profile = MemoryProfile(self, entity_id, template, NEW_ENTITY_VERSION)
        else:
            profile = MemoryProfile(self, entity_id, copy.deepcopy(record["data"]), record["version"])
        self._sessions[entity_id] = profile

        try:
            await asyncio.sleep(self.load_delay)
        except asyncio.CancelledError:
            self._release(profile)
            raise
        return profile

    async def _store(self, profile: MemoryProfile) -> None:
        await asyncio.sleep(self.save_delay)
        self._records[profile.entity_id] = {
            "data": copy.deepcopy(profile.data),
            "version": profile.version,
        }
        self.save_count += 1
        logger.debug(f"Saved profile '{profile.entity_id}' at version {profile.version}")

    def _release(self, profile: MemoryProfile) -> None:
        if self._sessions.get(profile.entity_id) is profile:
            del self._sessions[profile.entity_id]

    def steal_session(self, entity_id: str, reason: str = "Session claimed by another server") -> bool:
        """End the active session for ``entity_id`` out of band."""
        profile = self._sessions.pop(entity_id, None)
        if profile is None:
            return False
        profile.end_session(reason)
        return True

    def seed(self, entity_id: str, data: Dict[str, Any], version: int) -> None:
        """Store data as if it had been saved by an earlier release."""
        self._records[entity_id] = {"data": copy.deepcopy(data), "version": version}

    def load_record(self, entity_id: str) -> Optional[Dict[str, Any]]:
        """Return a copy of the stored record (``data`` and ``version``)."""
        record = self._records.get(entity_id)
        return copy.deepcopy(record) if record is not None else None

    def exists(self, entity_id: str) -> bool:
        return entity_id in self._records

    def delete(self, entity_id: str) -> bool:
        return self._records.pop(entity_id, None) is not None

    def has_session(self, entity_id: str) -> bool:
        return entity_id in self._sessions


DEFAULT_STORE = "default"

_default_backends: Dict[str, MemoryBackend] = {}


def get_memory_backend(store_id: str = DEFAULT_STORE) -> MemoryBackend:
    """
    Get the process-wide default memory backend of one store.

    Records and sessions are keyed by entity id only, so every store id gets
    its own backend.
    """
    backend = _default_backends.get(store_id)
    if backend is None:
        backend = _default_backends[store_id] = MemoryBackend()
    return backend
