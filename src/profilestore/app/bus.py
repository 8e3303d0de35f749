"""
Replication Channel

Carries replication messages from the authoritative store to mirrors. One
message kind, ``(path, value)``, sent server to client only. Messages for one
entity must be delivered in publish order; there is no ordering requirement
across entities.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional

from ..core.signals import Disconnect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplicationMessage:
    """One replicated write. ``sequence`` restarts at 0 with each session's snapshot."""
    store_id: str
    entity_id: str
    path: str
    value: Any
    sequence: int = 0

    @property
    def is_snapshot(self) -> bool:
        return self.sequence == 0 and self.path == ""


MessageHandler = Callable[[ReplicationMessage], Any]
DisconnectHandler = Callable[[str, str], Any]


class ReplicationChannel(ABC):
    """Abstract base class for replication transports."""

    @abstractmethod
    def publish(self, message: ReplicationMessage) -> None:
        """Deliver a message to every subscriber of ``message.store_id``."""
        pass

    @abstractmethod
    def subscribe(self, store_id: str, handler: MessageHandler,
                  on_disconnect: Optional[DisconnectHandler] = None) -> Disconnect:
        """
        Subscribe to a store's messages.

        Args:
            store_id: Store identifier shared by authoritative and mirror stores
            handler: Called with each ReplicationMessage
            on_disconnect: Called as ``on_disconnect(entity_id, reason)`` when
                the authoritative side drops an entity

        Returns:
            Action that unsubscribes
        """
        pass

    @abstractmethod
    def disconnect(self, store_id: str, entity_id: str, reason: str) -> None:
        """Tell subscribers that ``entity_id`` is no longer served."""
        pass


class _Subscriber:
    __slots__ = ("handler", "on_disconnect")

    def __init__(self, handler: MessageHandler, on_disconnect: Optional[DisconnectHandler]):
        self.handler = handler
        self.on_disconnect = on_disconnect


class InProcessChannel(ReplicationChannel):
    """
    Synchronous in-process channel for single-process hosts and tests.

    Delivery happens inside ``publish``, so per-entity order is publish order.
    A failing handler is logged and does not block other subscribers.
    """

    def __init__(self, history_size: int = 0):
        self._subscribers: Dict[str, List[_Subscriber]] = defaultdict(list)
        self.published_count = 0
        self.history: Deque[ReplicationMessage] = deque(maxlen=history_size or None)
        self._keep_history = history_size > 0

    def publish(self, message: ReplicationMessage) -> None:
        self.published_count += 1
        if self._keep_history:
            self.history.append(message)

        for subscriber in list(self._subscribers.get(message.store_id, ())):
            try:
                subscriber.handler(message)
            except Exception:
                logger.exception(f"Replication handler failed for {message.store_id}:{message.entity_id} at '{message.path}'")

    def subscribe(self, store_id: str, handler: MessageHandler,
                  on_disconnect: Optional[DisconnectHandler] = None) -> Disconnect:
        subscriber = _Subscriber(handler, on_disconnect)
        self._subscribers[store_id].append(subscriber)

        def unsubscribe() -> None:
            subscribers = self._subscribers.get(store_id)
            if subscribers and subscriber in subscribers:
                subscribers.remove(subscriber)

        return unsubscribe

    def disconnect(self, store_id: str, entity_id: str, reason: str) -> None:
        for subscriber in list(self._subscribers.get(store_id, ())):
            if subscriber.on_disconnect is None:
                continue
            try:
                subscriber.on_disconnect(entity_id, reason)
            except Exception:
                logger.exception(f"Disconnect handler failed for {store_id}:{entity_id}")

    def subscriber_count(self, store_id: str) -> int:
        return len(self._subscribers.get(store_id, ()))

    def clear_subscribers(self) -> None:
        self._subscribers.clear()


_default_channel: Optional[InProcessChannel] = None


def get_default_channel() -> InProcessChannel:
    """Get the process-wide default in-process channel."""
    global _default_channel
    if _default_channel is None:
        _default_channel = InProcessChannel()
    return _default_channel
