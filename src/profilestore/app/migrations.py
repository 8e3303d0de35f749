"""
Migration Runner

Brings saved data up to the current schema. Migrations are an ordered,
append-only list of functions ``migration(data)`` that transform the data in
place; the number of migrations applied so far is the data's version.

Entries must never be reordered or removed between releases: the runner
relies on positions alone and cannot detect either.
"""

import logging
from typing import Any, Callable, Dict, Sequence

from ..core.errors import MigrationFailed
from ..persistence.base import NEW_ENTITY_VERSION

logger = logging.getLogger(__name__)

Migration = Callable[[Dict[str, Any]], Any]


def run_migrations(migrations: Sequence[Migration], version: int, data: Dict[str, Any]) -> int:
    """
    Apply every migration newer than ``version`` to ``data``.

    Args:
        migrations: Ordered migration list
        version: Stored version; ``NEW_ENTITY_VERSION`` (-1) for new entities
        data: Mutable data tree, transformed in place

    Returns:
        The new version: ``len(migrations)`` unless the data is already newer

    Raises:
        MigrationFailed: a migration raised; ``data`` may be partially migrated
    """
    target = len(migrations)
    if version == NEW_ENTITY_VERSION:
        return target
    if version > target:
        logger.warning(f"Data version {version} is newer than the {target} known migrations")
        return version

    # Versions count applied migrations, so migrations[version] is the first pending one
    for index in range(max(version, 0), target):
        try:
            migrations[index](data)
        except Exception as e:
            raise MigrationFailed(index + 1, e) from e
        logger.debug(f"Applied migration {index + 1}/{target}")
    return target
