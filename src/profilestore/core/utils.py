"""Path helpers shared by the tree, the schema compiler and the stores."""

from typing import Iterator, List, Optional

DELIMITER = "/"
ROOT = ""


def split_path(path: Optional[str]) -> List[str]:
    """Split a path into its segments. The root path has no segments."""
    if not path:
        return []
    return [segment for segment in path.split(DELIMITER) if segment]


def join_path(*segments: str) -> str:
    """Join segments (or partial paths) into a normalized path."""
    parts: List[str] = []
    for segment in segments:
        parts.extend(split_path(segment))
    return DELIMITER.join(parts)


def normalize_path(path: Optional[str]) -> str:
    return join_path(path or ROOT)


def ancestor_paths(path: Optional[str]) -> Iterator[str]:
    """Yield every path from the root down to ``path`` itself, root first."""
    segments = split_path(path)
    yield ROOT
    for index in range(1, len(segments) + 1):
        yield DELIMITER.join(segments[:index])


def is_within(path: Optional[str], prefix: Optional[str]) -> bool:
    """True when ``path`` equals ``prefix`` or lies below it."""
    path_segments = split_path(path)
    prefix_segments = split_path(prefix)
    if len(prefix_segments) > len(path_segments):
        return False
    return path_segments[:len(prefix_segments)] == prefix_segments
