"""
Observable Tree - path-addressed, hierarchically observable data

Wraps a plain nested ``dict`` and lets callers read, write and listen by path
(``"Resources/Cash"``). A write at ``a/b/c`` notifies listeners registered at
``""``, ``a``, ``a/b`` and ``a/b/c``, root first. Each listener receives:

- the current value at its own path
- its own path
- the literal value written
- the path that was written

Writes through ``set`` may be vetoed by an injected validator. The tree knows
nothing about schemas: the validator is any callable of shape
``(path, value) -> (accepted, reason)``.
"""

from typing import Any, Callable, Dict, Optional, Tuple

from .errors import PathNotFound, StoreError, ValidationRejected
from .signals import Disconnect, Signal
from .utils import ROOT, ancestor_paths, normalize_path, split_path

TreeListener = Callable[[Any, str, Any, str], Any]
WriteValidator = Callable[[str, Any], Tuple[bool, Optional[str]]]


class ObservableTree:
    """
    Observable, path-addressed view over one entity's data.

    Values returned by ``get`` are live references into the tree; mutating
    them directly bypasses validation and notification.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None, validator: Optional[WriteValidator] = None):
        self._data: Any = data if data is not None else {}
        self._validator = validator
        self._signals: Dict[str, Signal] = {}
        self._destroyed = False

    # Reads

    def get(self, path: Optional[str] = None) -> Any:
        """Return the value stored at ``path`` (the whole tree by default)"""
        node = self._data
        for segment in split_path(path):
            if not isinstance(node, dict) or segment not in node:
                return None
            node = node[segment]
        return node

    # Writes

    def set(self, path: Optional[str], value: Any) -> None:
        """
        Write ``value`` at ``path`` after running the validator.

        Raises:
            PathNotFound: an intermediate node is missing
            ValidationRejected: the validator vetoed the write
        """
        path = normalize_path(path)
        if self._validator is not None:
            result = self._validator(path, value)
            accepted, reason = result if isinstance(result, tuple) else (result, None)
            if not accepted:
                raise ValidationRejected(path, reason)
        self._write(path, value, create_missing=False)

    def apply_update(self, path: Optional[str], value: Any) -> None:
        """
        Write ``value`` at ``path``, creating missing parents.

        Never validates; only for data that was validated at its source.
        """
        self._write(normalize_path(path), value, create_missing=True)

    def _write(self, path: str, value: Any, create_missing: bool) -> None:
        segments = split_path(path)
        if not segments:
            self._data = value
            self._notify(path, value)
            return

        parent = self._data
        if not isinstance(parent, dict):
            if not create_missing:
                raise PathNotFound(path, ROOT)
            parent = self._data = {}

        for index, segment in enumerate(segments[:-1]):
            child = parent.get(segment)
            if not isinstance(child, dict):
                if not create_missing:
                    raise PathNotFound(path, "/".join(segments[:index + 1]))
                child = parent[segment] = {}
            parent = child

        parent[segments[-1]] = value
        self._notify(path, value)

    # Observation

    def listen(self, path: Optional[str], callback: TreeListener) -> Disconnect:
        """Call ``callback`` on every write at or below ``path``"""
        if self._destroyed:
            raise StoreError("Cannot listen on a destroyed tree")
        path = normalize_path(path)
        signal = self._signals.get(path)
        if signal is None:
            signal = self._signals[path] = Signal()
        return signal.connect(callback)

    def bind(self, path: Optional[str], callback: TreeListener) -> Disconnect:
        """
        ``listen`` plus one immediate call with the current value.

        If that first call raises, the callback is disconnected again and the
        error propagates to the caller.
        """
        path = normalize_path(path)
        disconnect = self.listen(path, callback)
        value = self.get(path)
        try:
            callback(value, path, value, path)
        except Exception:
            disconnect()
            raise
        return disconnect

    def _notify(self, changed_path: str, changed_value: Any) -> None:
        if self._destroyed:
            return
        for path in ancestor_paths(changed_path):
            signal = self._signals.get(path)
            if signal is not None:
                signal.fire(self.get(path), path, changed_value, changed_path)

    # Lifecycle

    def destroy(self) -> None:
        """Release every signal; outstanding unsubscribe actions become no-ops"""
        for signal in self._signals.values():
            signal.destroy()
        self._signals.clear()
        self._destroyed = True

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def __repr__(self):
        return f"ObservableTree(listened_paths={sorted(self._signals)}, destroyed={self._destroyed})"


class ReadOnlyTree:
    """Read and observe an ``ObservableTree`` without being able to write to it."""

    __slots__ = ("_tree",)

    def __init__(self, tree: ObservableTree):
        self._tree = tree

    def get(self, path: Optional[str] = None) -> Any:
        return self._tree.get(path)

    def listen(self, path: Optional[str], callback: TreeListener) -> Disconnect:
        return self._tree.listen(path, callback)

    def bind(self, path: Optional[str], callback: TreeListener) -> Disconnect:
        return self._tree.bind(path, callback)

    @property
    def is_destroyed(self) -> bool:
        return self._tree.is_destroyed
