"""Shared fixtures for profilestore tests."""

import pytest

from profilestore import (
    AuthoritativeStore,
    InProcessChannel,
    MemoryBackend,
    MirrorStore,
    MirrorConfig,
    StoreConfig,
    map_field,
    private_field,
)

STORE_ID = "PlayerData"


def player_schema():
    """Schema used across the suite: one plain table, one map, one private table."""
    return {
        "Resources": {"Cash": 0, "XP": 0},
        "Inventory": map_field({}, value=0),
        "Settings": private_field({"Volume": 0.5}),
    }


@pytest.fixture
def schema():
    return player_schema()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def channel():
    return InProcessChannel(history_size=1000)


@pytest.fixture
def session_ends():
    return []


@pytest.fixture
def store(schema, backend, channel, session_ends):
    config = StoreConfig(
        store_id=STORE_ID,
        schema=schema,
        backend=backend,
        channel=channel,
        on_session_end=lambda entity_id, reason: session_ends.append((entity_id, reason)),
    )
    return AuthoritativeStore(config)


@pytest.fixture
def mirror(schema, channel):
    mirror = MirrorStore(MirrorConfig(store_id=STORE_ID, schema=schema, channel=channel))
    yield mirror
    mirror.close()
