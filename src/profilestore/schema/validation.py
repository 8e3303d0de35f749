"""
Validator - structural and write validation against a compiled schema

- ``validate_data`` checks a whole data tree against the template. It runs on
  every load, after migrations.
- ``validate_write`` checks a single ``(path, value)`` write. It runs on every
  ``ObservableTree.set`` of the authoritative store through
  ``make_write_validator``.

Keys present in the data but absent from the template are never an error, so
data written by a newer release or mid-migration still loads.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from ..core.errors import StructuralValidationFailed, TypeMismatch, UnknownPath
from ..core.utils import ROOT, is_within, join_path, normalize_path, split_path
from .compiler import CompiledSchema
from .kinds import kind_of

MISSING = "missing"


@dataclass(frozen=True)
class Mismatch:
    """First place where data diverges from the template."""
    path: str
    expected: str
    actual: str


def find_mismatch(data: Any, template: Any, map_paths: Iterable[str] = (),
                  base_path: str = ROOT) -> Optional[Mismatch]:
    """
    Return the first structural mismatch of ``data`` against ``template``.

    Args:
        data: Value to check, located at ``base_path``
        template: Template value at the same path
        map_paths: Paths whose contents are not checked key by key
        base_path: Path of ``data`` inside the full tree

    Returns:
        Mismatch, or None when the data is structurally valid
    """
    map_paths = frozenset(map_paths)
    expected, actual = kind_of(template), kind_of(data)
    if expected != actual:
        return Mismatch(base_path, expected, actual)
    if any(is_within(base_path, map_path) for map_path in map_paths):
        return None
    if isinstance(template, Mapping):
        return _find_in_mapping(data, template, map_paths, base_path)
    return None


def _find_in_mapping(data: Mapping, template: Mapping, map_paths: frozenset, path: str) -> Optional[Mismatch]:
    for key, template_value in template.items():
        child_path = join_path(path, key)
        if key not in data:
            return Mismatch(child_path, kind_of(template_value), MISSING)

        value = data[key]
        expected, actual = kind_of(template_value), kind_of(value)
        if expected != actual:
            return Mismatch(child_path, expected, actual)
        if child_path in map_paths:
            continue
        if isinstance(template_value, Mapping):
            mismatch = _find_in_mapping(value, template_value, map_paths, child_path)
            if mismatch is not None:
                return mismatch
    return None


def validate_data(data: Any, template: Any, map_paths: Iterable[str] = ()) -> None:
    """
    Structurally validate a full data tree.

    Raises:
        StructuralValidationFailed: reports the first mismatched path
    """
    mismatch = find_mismatch(data, template, map_paths)
    if mismatch is not None:
        raise StructuralValidationFailed(mismatch.path, mismatch.expected, mismatch.actual)


def validate_write(schema: CompiledSchema, path: Optional[str], value: Any) -> None:
    """
    Validate a single write against the schema.

    Raises:
        UnknownPath: the path is not declared by the schema
        TypeMismatch: the value's kind differs from the declared kind
    """
    path = normalize_path(path)
    segments = split_path(path)

    node: Any = schema.template
    current = ROOT
    for index, segment in enumerate(segments):
        if not isinstance(node, Mapping) or segment not in node:
            raise UnknownPath(path)
        node = node[segment]
        current = join_path(current, segment)

        if current in schema.map_paths:
            _check_map_write(schema, path, current, node, segments[index + 1:], value)
            return

    mismatch = find_mismatch(value, node, schema.map_paths, path)
    if mismatch is not None:
        raise TypeMismatch(mismatch.path, mismatch.expected, mismatch.actual)


def _check_map_write(schema: CompiledSchema, path: str, map_path: str, default: Any,
                     remaining: list, value: Any) -> None:
    actual = kind_of(value)
    if not remaining:
        expected = kind_of(default)
    elif len(remaining) == 1:
        expected = schema.map_value_kinds.get(map_path)
    else:
        # Deeper than one level below a map: anything goes
        return
    if expected is not None and expected != actual:
        raise TypeMismatch(path, expected, actual)


def make_write_validator(schema: CompiledSchema) -> Callable[[str, Any], Tuple[bool, Optional[str]]]:
    """
    Build the write validator handed to ``ObservableTree``.

    Rejections raise ``UnknownPath`` / ``TypeMismatch`` (both
    ``ValidationRejected``) so callers can catch the precise reason.
    """
    def validator(path: str, value: Any) -> Tuple[bool, Optional[str]]:
        validate_write(schema, path, value)
        return True, None

    return validator
