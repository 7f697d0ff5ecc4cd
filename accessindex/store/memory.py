"""Volatile dict-backed store, for tests and single-process replays."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from accessindex.models.entities import (
    AccessControlEvent,
    Contract,
    ContractOwnership,
    RoleMembership,
)
from accessindex.store.base import EntityStore, RepositoryBase, T

logger = logging.getLogger(__name__)

# Journal marker for a key that did not exist before the write.
_ABSENT = object()

UndoJournal = list[tuple["InMemoryRepository[Any]", str, Any]]


class InMemoryRepository(RepositoryBase[T]):
    """Repository over a plain dict. Entities are frozen, so no copies are needed."""

    def __init__(self, entity_type_name: str, store: InMemoryEntityStore | None = None) -> None:
        self.entity_type_name = entity_type_name
        self._rows: dict[str, T] = {}
        self._store = store

    def get(self, entity_id: str) -> T | None:
        return self._rows.get(entity_id)

    def put(self, entity_id: str, entity: T) -> None:
        self._record(entity_id)
        self._rows[entity_id] = entity
        logger.debug("put %s %s", self.entity_type_name, entity_id)

    def delete(self, entity_id: str) -> None:
        if entity_id not in self._rows:
            return
        self._record(entity_id)
        del self._rows[entity_id]
        logger.debug("delete %s %s", self.entity_type_name, entity_id)

    def __len__(self) -> int:
        return len(self._rows)

    def _iter_entities(self) -> Iterator[T]:
        return iter(list(self._rows.values()))

    def _record(self, entity_id: str) -> None:
        journal = self._store._journal if self._store is not None else None
        if journal is not None:
            journal.append((self, entity_id, self._rows.get(entity_id, _ABSENT)))

    def _restore(self, entity_id: str, previous: Any) -> None:
        if previous is _ABSENT:
            self._rows.pop(entity_id, None)
        else:
            self._rows[entity_id] = previous


class InMemoryEntityStore(EntityStore):
    """All four repositories in memory.

    ``transaction()`` journals the prior value of every key written inside
    the block and replays the journal backwards if the block raises. Nested
    scopes join the outer transaction.
    """

    def __init__(self) -> None:
        self._journal: UndoJournal | None = None
        self.events: InMemoryRepository[AccessControlEvent] = InMemoryRepository("AccessControlEvent", self)
        self.memberships: InMemoryRepository[RoleMembership] = InMemoryRepository("RoleMembership", self)
        self.ownerships: InMemoryRepository[ContractOwnership] = InMemoryRepository("ContractOwnership", self)
        self.contracts: InMemoryRepository[Contract] = InMemoryRepository("Contract", self)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._journal is not None:
            yield
            return
        journal: UndoJournal = []
        self._journal = journal
        try:
            yield
        except BaseException:
            for repo, entity_id, previous in reversed(journal):
                repo._restore(entity_id, previous)
            logger.debug("rolled back %d write(s)", len(journal))
            raise
        finally:
            self._journal = None
