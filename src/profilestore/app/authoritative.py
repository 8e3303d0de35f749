"""
Authoritative Store

Server-side orchestrator. For every managed entity it claims a persistence
session, migrates and validates the saved data, wraps it in an
``ObservableTree`` guarded by the schema's write validator, and republishes
every non-private change as a replication message.

Per-entity lifecycle::

    UNLOADED -> LOADING -> ACTIVE -> UNLOADING -> UNLOADED

The backend's ``start_session`` is the only suspension point of a load. An
``unload`` requested while it is pending acts as a tombstone: the load
releases the session as soon as it resumes and never builds a tree.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from ..core.errors import MigrationFailed, StructuralValidationFailed
from ..core.signals import Disconnect
from ..core.tree import ObservableTree
from ..core.utils import ROOT
from ..persistence.base import ProfileHandle
from ..schema.compiler import compile_schema, strip_private
from ..schema.validation import make_write_validator, validate_data
from .bus import ReplicationMessage
from .config import StoreConfig
from .migrations import run_migrations

logger = logging.getLogger(__name__)

PreSaveCallback = Callable[[str, Dict[str, Any]], Any]


class SessionState(Enum):
    """Lifecycle states of an entity session"""
    UNLOADED = "unloaded"
    LOADING = "loading"
    ACTIVE = "active"
    UNLOADING = "unloading"


@dataclass
class EntitySession:
    """State the store keeps for one managed entity."""
    entity_id: str
    state: SessionState = SessionState.LOADING
    handle: Optional[ProfileHandle] = None
    tree: Optional[ObservableTree] = None
    unload_requested: bool = False
    sequence: int = 0
    resync: bool = False
    settled: asyncio.Event = field(default_factory=asyncio.Event)
    released: asyncio.Event = field(default_factory=asyncio.Event)
    cleanup: List[Disconnect] = field(default_factory=list)

    @property
    def version(self) -> Optional[int]:
        return self.handle.version if self.handle is not None else None


class AuthoritativeStore:
    """
    Owns the authoritative copy of every loaded entity of one store.

    Writes go through ``observe(entity_id).set(path, value)`` and are
    validated against the schema; reads that need no tracking can use
    ``get_data(entity_id)``.
    """

    def __init__(self, config: StoreConfig):
        self.config = config
        self.store_id = config.store_id
        self.schema = compile_schema(config.schema_)
        self._backend = config.backend
        self._channel = config.channel
        self._migrations = list(config.migrations)
        self._on_session_end = config.on_session_end or self._disconnect
        self._sessions: Dict[str, EntitySession] = {}
        self._pre_save: List[PreSaveCallback] = []
        self._waiters: Dict[str, Set[asyncio.Event]] = {}

    # Loading

    async def load(self, entity_id: str) -> Optional[ObservableTree]:
        """
        Load ``entity_id`` and start replicating it.

        Returns:
            The entity's ObservableTree, or None when the load was cancelled
            by ``unload`` or the data failed migration/validation

        Raises:
            Whatever the backend raises while claiming the session
        """
        session = self._sessions.get(entity_id)
        if session is not None:
            if session.state is SessionState.ACTIVE:
                return session.tree
            if session.state is SessionState.LOADING:
                await session.settled.wait()
                return self.observe(entity_id)
            await session.released.wait()
            return await self.load(entity_id)

        session = EntitySession(entity_id)
        self._sessions[entity_id] = session
        logger.info(f"[{self.store_id}] Loading '{entity_id}'")
        try:
            return await self._load(session)
        finally:
            session.settled.set()
            self._wake_waiters(entity_id)

    async def _load(self, session: EntitySession) -> Optional[ObservableTree]:
        entity_id = session.entity_id
        try:
            handle = await self._backend.start_session(entity_id, self.schema.fresh_template())
        except asyncio.CancelledError:
            logger.warning(f"[{self.store_id}] Load of '{entity_id}' was cancelled")
            self._forget(session)
            raise
        except Exception as e:
            logger.error(f"[{self.store_id}] Failed to claim session for '{entity_id}': {e}")
            self._forget(session)
            raise

        if session.unload_requested:
            logger.info(f"[{self.store_id}] '{entity_id}' was unloaded while loading; releasing session")
            try:
                await handle.release()
            finally:
                self._forget(session)
            return None

        session.handle = handle
        try:
            handle.version = run_migrations(self._migrations, handle.version, handle.data)
            validate_data(handle.data, self.schema.template, self.schema.map_paths)
        except (MigrationFailed, StructuralValidationFailed) as e:
            logger.error(f"[{self.store_id}] Refusing to serve '{entity_id}': {e}")
            session.state = SessionState.UNLOADING
            try:
                await handle.release()
            finally:
                self._forget(session)
            self._on_session_end(entity_id, str(e))
            return None

        tree = ObservableTree(handle.data, validator=make_write_validator(self.schema))
        session.tree = tree
        session.cleanup.append(handle.on_session_end(lambda reason: self._session_ended(session, reason)))
        session.state = SessionState.ACTIVE

        def replicate(value: Any, path: str, changed_value: Any, changed_path: str) -> None:
            self._replicate(session, changed_path, changed_value)

        # The immediate bind call publishes the full snapshot before any update
        session.cleanup.append(tree.bind(None, replicate))
        logger.info(f"[{self.store_id}] '{entity_id}' active at version {handle.version}")
        return tree

    def _replicate(self, session: EntitySession, path: str, value: Any) -> None:
        if self.schema.is_private(path):
            return
        if session.resync:
            # A previous message was lost; mirrors reset on a fresh snapshot
            path, value, sequence = ROOT, session.tree.get(), 0
        else:
            sequence = session.sequence
        message = ReplicationMessage(
            store_id=self.store_id,
            entity_id=session.entity_id,
            path=path,
            value=strip_private(value, self.schema.private_paths, path),
            sequence=sequence,
        )
        logger.debug(f"[{self.store_id}] Replicating '{session.entity_id}' #{sequence} at '{path}'")
        try:
            self._channel.publish(message)
        except Exception:
            logger.exception(f"[{self.store_id}] Failed to replicate '{session.entity_id}' at '{path}'; "
                             f"the next change resends a snapshot")
            session.resync = True
            return
        session.resync = False
        session.sequence = sequence + 1

    # Access

    def observe(self, entity_id: str) -> Optional[ObservableTree]:
        """Return the entity's tree for validated writes, or None if not active"""
        session = self._sessions.get(entity_id)
        if session is None or session.state is not SessionState.ACTIVE:
            return None
        return session.tree

    def get_data(self, entity_id: str) -> Optional[Dict[str, Any]]:
        """Return a live reference to the entity's data, or None if not active"""
        tree = self.observe(entity_id)
        return tree.get() if tree is not None else None

    async def wait_for_data(self, entity_id: str, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """
        Wait until ``entity_id`` is active.

        Returns:
            The entity's data, or None when the wait timed out or the load failed
        """
        data = self.get_data(entity_id)
        if data is not None:
            return data

        event = asyncio.Event()
        self._waiters.setdefault(entity_id, set()).add(event)
        try:
            await asyncio.wait_for(event.wait(), timeout)
        except asyncio.TimeoutError:
            return None
        finally:
            waiters = self._waiters.get(entity_id)
            if waiters is not None:
                waiters.discard(event)
                if not waiters:
                    del self._waiters[entity_id]
        return self.get_data(entity_id)

    def _wake_waiters(self, entity_id: str) -> None:
        for event in self._waiters.get(entity_id, ()):
            event.set()

    def state_of(self, entity_id: str) -> SessionState:
        session = self._sessions.get(entity_id)
        return session.state if session is not None else SessionState.UNLOADED

    def session(self, entity_id: str) -> Optional[EntitySession]:
        return self._sessions.get(entity_id)

    def loaded_entities(self) -> List[str]:
        return [entity_id for entity_id, session in self._sessions.items()
                if session.state is SessionState.ACTIVE]

    # Saving and unloading

    def before_save(self, callback: PreSaveCallback) -> Disconnect:
        """
        Register ``callback(entity_id, data)`` to run before every save.

        Returns:
            Action that unregisters the callback
        """
        self._pre_save.append(callback)

        def unregister() -> None:
            if callback in self._pre_save:
                self._pre_save.remove(callback)

        return unregister

    async def save(self, entity_id: str) -> bool:
        """Persist an active entity without unloading it"""
        session = self._sessions.get(entity_id)
        if session is None or session.state is not SessionState.ACTIVE:
            return False
        session.handle.data = session.tree.get()
        self._run_pre_save(entity_id, session.handle.data)
        await session.handle.save()
        return True

    async def unload(self, entity_id: str) -> None:
        """
        Stop serving ``entity_id`` and persist its data.

        Safe to call while the entity is still loading.
        """
        session = self._sessions.get(entity_id)
        if session is None:
            return
        if session.state is SessionState.LOADING:
            session.unload_requested = True
            await session.settled.wait()
            return
        if session.state is SessionState.UNLOADING:
            await session.released.wait()
            return
        await self._unload(session)

    async def _unload(self, session: EntitySession) -> None:
        entity_id = session.entity_id
        session.state = SessionState.UNLOADING
        handle = session.handle
        data = session.tree.get()
        self._teardown(session)

        handle.data = data
        try:
            self._run_pre_save(entity_id, data)
            await handle.save()
        finally:
            await handle.release()
            self._forget(session)
        logger.info(f"[{self.store_id}] Unloaded '{entity_id}'")

    def _run_pre_save(self, entity_id: str, data: Dict[str, Any]) -> None:
        for callback in list(self._pre_save):
            callback(entity_id, data)

    async def close(self) -> None:
        """Unload every entity this store manages"""
        await asyncio.gather(*(self.unload(entity_id) for entity_id in list(self._sessions)))

    # Session end

    def _session_ended(self, session: EntitySession, reason: str) -> None:
        if session.state is not SessionState.ACTIVE:
            return
        logger.warning(f"[{self.store_id}] Session for '{session.entity_id}' ended: {reason}")
        session.state = SessionState.UNLOADING
        self._teardown(session)
        self._forget(session)
        self._on_session_end(session.entity_id, reason)

    def _disconnect(self, entity_id: str, reason: str) -> None:
        logger.warning(f"[{self.store_id}] Disconnecting '{entity_id}': {reason}")
        self._channel.disconnect(self.store_id, entity_id, reason)

    def _teardown(self, session: EntitySession) -> None:
        for disconnect in session.cleanup:
            disconnect()
        session.cleanup.clear()
        if session.tree is not None:
            session.tree.destroy()

    def _forget(self, session: EntitySession) -> None:
        session.state = SessionState.UNLOADED
        if self._sessions.get(session.entity_id) is session:
            del self._sessions[session.entity_id]
        session.released.set()

    def __repr__(self):
        return f"AuthoritativeStore(store_id={self.store_id!r}, loaded={self.loaded_entities()})"
