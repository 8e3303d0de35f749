"""
Signal - single-event publish/subscribe primitive.

Connecting returns a zero-argument callable that disconnects the listener.
Once a signal is destroyed every outstanding disconnect callable is a no-op.
"""

import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]
Disconnect = Callable[[], None]


class _Connection:
    __slots__ = ("listener", "connected")

    def __init__(self, listener: Listener):
        self.listener = listener
        self.connected = True


class Signal:
    """A list of listeners fired synchronously, in connection order."""

    def __init__(self):
        self._connections: List[_Connection] = []
        self._destroyed = False

    def connect(self, listener: Listener) -> Disconnect:
        """Connect a listener and return the action that disconnects it"""
        if self._destroyed:
            return lambda: None

        connection = _Connection(listener)
        self._connections.append(connection)

        def disconnect() -> None:
            if not connection.connected:
                return
            connection.connected = False
            if connection in self._connections:
                self._connections.remove(connection)

        return disconnect

    def fire(self, *args: Any) -> None:
        """Call every connected listener with ``args``"""
        # Snapshot so listeners may disconnect during fan-out
        for connection in list(self._connections):
            if not connection.connected:
                continue
            try:
                connection.listener(*args)
            except Exception:
                logger.exception(f"Signal listener {connection.listener!r} raised")

    def destroy(self) -> None:
        for connection in self._connections:
            connection.connected = False
        self._connections.clear()
        self._destroyed = True

    @property
    def listener_count(self) -> int:
        return len(self._connections)

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed
