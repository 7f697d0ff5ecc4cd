"""Entity store backends behind the ``Repository`` capability interface."""

from __future__ import annotations

from pathlib import Path

from accessindex.store.base import (
    ENTITY_TYPES,
    EntityStore,
    Repository,
    StoreError,
    update_existing,
    upsert,
)
from accessindex.store.memory import InMemoryEntityStore, InMemoryRepository
from accessindex.store.sqlite import SqliteEntityStore, SqliteRepository


def open_store(backend: str, db_path: Path | str) -> EntityStore:
    """Build the configured backend; ``db_path`` is ignored for ``memory``."""
    if backend == "sqlite":
        return SqliteEntityStore(db_path)
    if backend == "memory":
        return InMemoryEntityStore()
    raise StoreError(f"Unknown store backend: {backend!r}")


__all__ = [
    "ENTITY_TYPES",
    "EntityStore",
    "Repository",
    "StoreError",
    "upsert",
    "update_existing",
    "open_store",
    "InMemoryEntityStore",
    "InMemoryRepository",
    "SqliteEntityStore",
    "SqliteRepository",
]
