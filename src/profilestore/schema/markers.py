"""
Schema markers.

A schema description is a nested ``dict`` of default values. Markers wrap a
field's default to classify it without changing the value consumers see:

- ``map_field`` - the field's keys are dynamic and not checked one by one
- ``private_field`` - the field and everything below it is never replicated

Markers compose: ``private_field(map_field({}))``.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MapMarker:
    """Field whose keys are dynamic; ``value`` is a sample of the map's values."""
    default: Any = field(default_factory=dict)
    value: Any = None


@dataclass(frozen=True)
class PrivateMarker:
    """Field excluded from replication."""
    value: Any


def map_field(default: Any = None, value: Any = None) -> MapMarker:
    """
    Declare a map field.

    Args:
        default: Starting content of the map (an empty dict when omitted)
        value: Sample value describing the kind of the map's entries

    Returns:
        MapMarker to place in a schema description
    """
    return MapMarker(default={} if default is None else default, value=value)


def private_field(value: Any) -> PrivateMarker:
    """Declare a field (raw default or ``map_field``) as private."""
    return PrivateMarker(value)


def is_marker(node: Any) -> bool:
    return isinstance(node, (MapMarker, PrivateMarker))
