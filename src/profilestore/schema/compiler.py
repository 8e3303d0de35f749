"""
Schema Compiler

Turns a schema description (nested dict of defaults and markers) into a
``CompiledSchema``: the default-value template with every marker resolved,
the set of map paths and the set of private paths.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Set

from ..core.errors import SchemaError
from ..core.utils import ROOT, DELIMITER, is_within, join_path, split_path
from .kinds import kind_of
from .markers import MapMarker, PrivateMarker, is_marker


@dataclass(frozen=True)
class CompiledSchema:
    """Immutable result of compiling a schema description."""
    template: Dict[str, Any]
    map_paths: FrozenSet[str] = frozenset()
    private_paths: FrozenSet[str] = frozenset()
    map_value_kinds: Mapping[str, Optional[str]] = field(default_factory=dict)

    def fresh_template(self) -> Dict[str, Any]:
        """Deep copy of the template, safe to hand to a new entity"""
        return copy.deepcopy(self.template)

    def client_template(self) -> Dict[str, Any]:
        """Deep copy of the template with every private subtree removed"""
        return strip_private(self.template, self.private_paths)

    def is_private(self, path: Optional[str]) -> bool:
        return any(is_within(path, private) for private in self.private_paths)

    def map_root(self, path: Optional[str]) -> Optional[str]:
        """Return the map path at or above ``path``, if any"""
        for map_path in self.map_paths:
            if is_within(path, map_path):
                return map_path
        return None

    def is_map_path(self, path: Optional[str]) -> bool:
        return self.map_root(path) is not None


def compile_schema(description: Mapping[str, Any]) -> CompiledSchema:
    """
    Compile a schema description.

    Args:
        description: Nested mapping of field names to defaults or markers

    Returns:
        CompiledSchema with template, map paths and private paths

    Raises:
        SchemaError: the description is not a mapping, uses an invalid field
            name, or nests markers where they cannot be honoured
    """
    if not isinstance(description, Mapping):
        raise SchemaError(f"Schema description must be a mapping, got {type(description).__name__}")

    map_paths: Set[str] = set()
    private_paths: Set[str] = set()
    map_value_kinds: Dict[str, Optional[str]] = {}
    template = _compile_node(description, ROOT, map_paths, private_paths, map_value_kinds)

    return CompiledSchema(
        template=template,
        map_paths=frozenset(map_paths),
        private_paths=frozenset(private_paths),
        map_value_kinds=map_value_kinds,
    )


def build_client_template(schema: CompiledSchema) -> Dict[str, Any]:
    """Template as seen by mirrors: private subtrees pruned entirely."""
    return schema.client_template()


def _compile_node(node: Any, path: str, map_paths: Set[str], private_paths: Set[str],
                  map_value_kinds: Dict[str, Optional[str]]) -> Any:
    if isinstance(node, PrivateMarker):
        if not path:
            raise SchemaError("The schema root cannot be private")
        private_paths.add(path)
        return _compile_node(node.value, path, map_paths, private_paths, map_value_kinds)

    if isinstance(node, MapMarker):
        if not path:
            raise SchemaError("The schema root cannot be a map")
        if _contains_marker(node.default) or _contains_marker(node.value):
            raise SchemaError(f"Map field '{path}' cannot contain markers")
        map_paths.add(path)
        map_value_kinds[path] = _declared_value_kind(node)
        return copy.deepcopy(node.default)

    if isinstance(node, Mapping):
        compiled = {}
        for key, child in node.items():
            if not isinstance(key, str) or not key or DELIMITER in key:
                raise SchemaError(f"Invalid field name {key!r} under '{path}'")
            compiled[key] = _compile_node(child, join_path(path, key), map_paths, private_paths, map_value_kinds)
        return compiled

    if _contains_marker(node):
        raise SchemaError(f"Markers are not allowed inside sequences (at '{path}')")
    return copy.deepcopy(node)


def _declared_value_kind(marker: MapMarker) -> Optional[str]:
    if marker.value is not None:
        return kind_of(marker.value)
    if isinstance(marker.default, Mapping) and marker.default:
        return kind_of(next(iter(marker.default.values())))
    return None


def _contains_marker(node: Any) -> bool:
    if is_marker(node):
        return True
    if isinstance(node, Mapping):
        return any(_contains_marker(child) for child in node.values())
    if isinstance(node, (list, tuple)):
        return any(_contains_marker(child) for child in node)
    return False


def strip_private(value: Any, private_paths: Iterable[str], base_path: str = ROOT) -> Any:
    """
    Deep copy ``value`` (located at ``base_path``) without private subtrees.

    Only descendants are pruned; callers decide whether ``base_path`` itself
    is private.
    """
    private_paths = frozenset(private_paths)
    if not isinstance(value, Mapping):
        return copy.deepcopy(value)
    # Nothing below base_path is private
    depth = len(split_path(base_path))
    if not any(is_within(private, base_path) and len(split_path(private)) > depth for private in private_paths):
        return copy.deepcopy(value)
    stripped = {}
    for key, child in value.items():
        child_path = join_path(base_path, str(key))
        if child_path in private_paths:
            continue
        stripped[key] = strip_private(child, private_paths, child_path)
    return stripped
