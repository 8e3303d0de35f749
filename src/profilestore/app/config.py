"""
Configuration for profilestore stores

``StoreConfig`` configures the authoritative (server) side, ``MirrorConfig``
the read-only (client) side. Both sides must use the same ``store_id`` and the
same schema description.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..persistence import ProfileBackend, get_memory_backend
from .bus import ReplicationChannel, get_default_channel

SessionEndHandler = Callable[[str, str], Any]


class StoreConfig(BaseModel):
    """Configuration of an authoritative store."""
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    store_id: str = Field(min_length=1)
    schema_: Dict[str, Any] = Field(alias="schema")
    backend: Optional[ProfileBackend] = None
    channel: ReplicationChannel = Field(default_factory=get_default_channel)
    migrations: List[Callable[..., Any]] = Field(default_factory=list)
    on_session_end: Optional[SessionEndHandler] = None

    @field_validator("migrations", mode="before")
    @classmethod
    def _check_migrations(cls, migrations: Any) -> List[Any]:
        migrations = list(migrations)
        for index, migration in enumerate(migrations):
            if not callable(migration):
                raise ValueError(f"Migration {index + 1} is not callable")
        return migrations

    @model_validator(mode="after")
    def _default_backend(self) -> "StoreConfig":
        # One default profile store per store name
        if self.backend is None:
            self.backend = get_memory_backend(self.store_id)
        return self


class MirrorConfig(BaseModel):
    """Configuration of a mirror store."""
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    store_id: str = Field(min_length=1)
    schema_: Dict[str, Any] = Field(alias="schema")
    channel: ReplicationChannel = Field(default_factory=get_default_channel)


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Attach a handler to the ``profilestore`` logger."""
    config = config or LoggingConfig()
    logger = logging.getLogger("profilestore")
    logger.setLevel(config.level.upper())

    handler: logging.Handler
    if config.file_path:
        handler = logging.FileHandler(config.file_path)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.format))
    logger.addHandler(handler)
    return logger
