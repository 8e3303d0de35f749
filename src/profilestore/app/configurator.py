"""
Store factories

Consumer-facing entry points. Both accept either a ready config model or the
config fields as keyword arguments:

```python
from profilestore import create_authoritative_store, create_mirror_store, map_field, private_field

schema = {
    "Resources": {"Cash": 0},
    "Inventory": map_field({}, value=0),
    "Settings": private_field({"Volume": 0.5}),
}

server = create_authoritative_store(store_id="PlayerData", schema=schema)
client = create_mirror_store(store_id="PlayerData", schema=schema)

tree = await server.load("player-1")
tree.set("Resources/Cash", 100)
client.get("player-1", "Resources/Cash")  # 100
```
"""

import logging
from typing import Any, Dict, Optional

from ..persistence import get_memory_backend
from .authoritative import AuthoritativeStore
from .config import MirrorConfig, StoreConfig
from .mirror import MirrorStore

logger = logging.getLogger(__name__)


def create_authoritative_store(config: Optional[StoreConfig] = None, **fields: Any) -> AuthoritativeStore:
    """
    Create the server-side store.

    Args:
        config: Complete StoreConfig; when omitted one is built from ``fields``
        **fields: StoreConfig fields (store_id, schema, backend, channel,
            migrations, on_session_end)
    """
    if config is None:
        config = StoreConfig(**fields)
    elif fields:
        config = StoreConfig(**_merge(config, fields))
    store = AuthoritativeStore(config)
    logger.info(
        f"Created authoritative store '{store.store_id}' "
        f"({len(store.schema.map_paths)} map paths, {len(store.schema.private_paths)} private paths, "
        f"{len(config.migrations)} migrations)"
    )
    return store


def create_mirror_store(config: Optional[MirrorConfig] = None, **fields: Any) -> MirrorStore:
    """
    Create a client-side mirror store.

    Args:
        config: Complete MirrorConfig; when omitted one is built from ``fields``
        **fields: MirrorConfig fields (store_id, schema, channel)
    """
    if config is None:
        config = MirrorConfig(**fields)
    elif fields:
        config = MirrorConfig(**_merge(config, fields))
    store = MirrorStore(config)
    logger.info(f"Created mirror store '{store.store_id}'")
    return store


def _merge(config: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
    # Overrides may use the "schema" alias; the model's own field is schema_
    if "schema" in fields:
        fields["schema_"] = fields.pop("schema")
    base = dict(config)
    # A renamed store must not inherit the default backend of the old name
    if isinstance(config, StoreConfig) and "store_id" in fields and "backend" not in fields:
        if base.get("backend") is get_memory_backend(config.store_id):
            base.pop("backend")
    return {**base, **fields}
