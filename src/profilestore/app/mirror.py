"""
Mirror Store

Client-side, read-only copy of an authoritative store. Each entity's tree is
seeded from the schema's client template (private fields pruned), so reads
return defaults until the first replication message lands. Inbound messages
are applied with ``apply_update``: no validation, full hierarchical
notification.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.signals import Disconnect
from ..core.tree import ObservableTree, ReadOnlyTree, TreeListener
from ..schema.compiler import compile_schema
from .bus import ReplicationMessage
from .config import MirrorConfig

logger = logging.getLogger(__name__)


@dataclass
class MirroredEntity:
    tree: ObservableTree
    loaded: asyncio.Event = field(default_factory=asyncio.Event)
    last_sequence: int = -1


class MirrorStore:
    """Read-only mirror of one store, fed by a replication channel."""

    def __init__(self, config: MirrorConfig):
        self.config = config
        self.store_id = config.store_id
        self.schema = compile_schema(config.schema_)
        self._entities: Dict[str, MirroredEntity] = {}
        self._unsubscribe = config.channel.subscribe(
            self.store_id, self._on_message, on_disconnect=self._on_disconnect
        )

    def _entity(self, entity_id: str) -> MirroredEntity:
        entity = self._entities.get(entity_id)
        if entity is None:
            entity = MirroredEntity(ObservableTree(self.schema.client_template()))
            self._entities[entity_id] = entity
        return entity

    # Read-only access

    def observe(self, entity_id: str) -> ReadOnlyTree:
        """Return a read-only view of the entity's tree, creating it from defaults"""
        return ReadOnlyTree(self._entity(entity_id).tree)

    def get(self, entity_id: str, path: Optional[str] = None) -> Any:
        return self._entity(entity_id).tree.get(path)

    def listen(self, entity_id: str, path: Optional[str], callback: TreeListener) -> Disconnect:
        return self._entity(entity_id).tree.listen(path, callback)

    def bind(self, entity_id: str, path: Optional[str], callback: TreeListener) -> Disconnect:
        return self._entity(entity_id).tree.bind(path, callback)

    def is_loaded(self, entity_id: str) -> bool:
        entity = self._entities.get(entity_id)
        return entity is not None and entity.loaded.is_set()

    async def wait_until_loaded(self, entity_id: str, timeout: Optional[float] = None) -> bool:
        """
        Wait for the first replication message of ``entity_id``.

        Returns:
            True once loaded, False if ``timeout`` elapsed first
        """
        entity = self._entity(entity_id)
        try:
            await asyncio.wait_for(entity.loaded.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return True

    def entities(self) -> List[str]:
        return [entity_id for entity_id, entity in self._entities.items() if entity.loaded.is_set()]

    # Channel handlers

    def _on_message(self, message: ReplicationMessage) -> None:
        entity = self._entity(message.entity_id)
        if message.sequence != 0 and message.sequence <= entity.last_sequence:
            logger.debug(f"[{self.store_id}] Dropping stale message #{message.sequence} for '{message.entity_id}'")
            return
        entity.last_sequence = message.sequence
        entity.tree.apply_update(message.path, message.value)

        if not entity.loaded.is_set():
            entity.loaded.set()
            logger.info(f"[{self.store_id}] Mirror of '{message.entity_id}' loaded")

    def _on_disconnect(self, entity_id: str, reason: str) -> None:
        entity = self._entities.pop(entity_id, None)
        if entity is None:
            return
        entity.tree.destroy()
        logger.info(f"[{self.store_id}] Mirror of '{entity_id}' dropped: {reason}")

    def close(self) -> None:
        """Unsubscribe from the channel and destroy every mirrored tree"""
        self._unsubscribe()
        for entity in self._entities.values():
            entity.tree.destroy()
        self._entities.clear()

    def __repr__(self):
        return f"MirrorStore(store_id={self.store_id!r}, loaded={self.entities()})"
