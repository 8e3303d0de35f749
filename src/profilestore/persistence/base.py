"""
profilestore Persistence Layer - Base Classes

Interfaces for the durable profile backend the authoritative store loads from
and saves to. The store treats a backend as: "give me a handle for this entity
asynchronously; let me read and write its data; let me save it; tell me if the
session ends out of band".
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict

from ..core.signals import Disconnect, Signal

NEW_ENTITY_VERSION = -1


class ProfileHandle(ABC):
    """
    One claimed persistence session for one entity.

    ``data`` is the mutable tree the store wraps; ``version`` is the index of
    the last migration applied to it (``-1`` for data that was never saved).
    """

    def __init__(self, entity_id: str, data: Dict[str, Any], version: int = NEW_ENTITY_VERSION):
        self.entity_id = entity_id
        self.data = data
        self.version = version
        self._session_ended = Signal()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def on_session_end(self, callback: Callable[[str], Any]) -> Disconnect:
        """
        Register ``callback(reason)`` for sessions ended by the backend.

        Returns:
            Action that unregisters the callback
        """
        return self._session_ended.connect(callback)

    def end_session(self, reason: str) -> None:
        """Mark the session as ended out of band and notify listeners."""
        if not self._active:
            return
        self._active = False
        self._session_ended.fire(reason)
        self._session_ended.destroy()

    @abstractmethod
    async def save(self) -> None:
        """
        Persist ``data`` and ``version``.

        Raises:
            SessionError: the session is no longer active
        """
        pass

    @abstractmethod
    async def release(self) -> None:
        """Give up the session without notifying session-end listeners."""
        pass

    def __repr__(self):
        return f"{self.__class__.__name__}(entity_id={self.entity_id!r}, version={self.version}, active={self._active})"


class ProfileBackend(ABC):
    """Abstract base class for profile persistence backends."""

    @abstractmethod
    async def start_session(self, entity_id: str, template: Dict[str, Any]) -> ProfileHandle:
        """
        Claim the session for ``entity_id`` and load its data.

        Args:
            entity_id: Unique identifier for the entity
            template: Fresh default data, used when nothing was saved yet

        Returns:
            Handle whose ``data`` is the stored data or ``template``

        Raises:
            SessionError: the session is already claimed elsewhere
        """
        pass
