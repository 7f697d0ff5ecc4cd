"""Store capability interface shared by every backend.

A ``Repository[T]`` owns one entity type: ``get``/``put``/``delete`` by id plus
a filtered, paginated ``find``. An ``EntityStore`` groups the four
repositories and adds the name-addressed ``remove`` used by handlers and a
``transaction()`` scope so one handler's writes land together or not at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel

from accessindex.models.entities import (
    AccessControlEvent,
    Contract,
    ContractOwnership,
    RoleMembership,
)
from accessindex.models.query import EntityQuery

T = TypeVar("T", bound=BaseModel)


class StoreError(RuntimeError):
    """Raised on misuse of a store (unknown entity type, closed backend, ...)."""


# Entity type name -> model class. The names match the GraphQL entity names
# the handlers pass to ``EntityStore.remove``.
ENTITY_TYPES: dict[str, type[BaseModel]] = {
    "AccessControlEvent": AccessControlEvent,
    "RoleMembership": RoleMembership,
    "ContractOwnership": ContractOwnership,
    "Contract": Contract,
}


class Repository(Protocol[T]):
    """Capability interface for one entity type."""

    def get(self, entity_id: str) -> T | None: ...

    def put(self, entity_id: str, entity: T) -> None: ...

    def delete(self, entity_id: str) -> None: ...

    def find(self, query: EntityQuery) -> list[T]: ...


def index_fields(entity: BaseModel) -> dict[str, Any]:
    """Columns a query can filter on, extracted uniformly for every type."""
    if isinstance(entity, AccessControlEvent):
        return {
            "network": entity.network,
            "contract": entity.contract,
            "account": entity.account,
            "role": entity.role,
            "event_type": entity.event_type.value,
            "sort_ts": entity.timestamp,
        }
    if isinstance(entity, RoleMembership):
        return {
            "network": entity.network,
            "contract": entity.contract,
            "account": entity.account,
            "role": entity.role,
            "event_type": None,
            "sort_ts": entity.granted_at,
        }
    if isinstance(entity, ContractOwnership):
        return {
            "network": entity.network,
            "contract": entity.contract,
            "account": entity.owner,
            "role": None,
            "event_type": None,
            "sort_ts": entity.transferred_at,
        }
    if isinstance(entity, Contract):
        return {
            "network": entity.network,
            "contract": entity.address,
            "account": None,
            "role": None,
            "event_type": None,
            "sort_ts": entity.last_activity_at,
        }
    raise StoreError(f"Unsupported entity type: {type(entity).__name__}")


def matches(fields: dict[str, Any], query: EntityQuery) -> bool:
    """Apply the equality and timestamp-range filters of *query*."""
    for name in ("network", "contract", "account", "role"):
        wanted = getattr(query, name)
        if wanted is not None and fields[name] != wanted:
            return False
    if query.event_type is not None and fields["event_type"] != query.event_type.value:
        return False
    ts: datetime = fields["sort_ts"]
    if query.since is not None and ts < query.since:
        return False
    if query.until is not None and ts > query.until:
        return False
    return True


class EntityStore(ABC):
    """The four repositories plus name-addressed removal."""

    events: Repository[AccessControlEvent]
    memberships: Repository[RoleMembership]
    ownerships: Repository[ContractOwnership]
    contracts: Repository[Contract]

    def repository(self, entity_type_name: str) -> Repository[Any]:
        repos: dict[str, Repository[Any]] = {
            "AccessControlEvent": self.events,
            "RoleMembership": self.memberships,
            "ContractOwnership": self.ownerships,
            "Contract": self.contracts,
        }
        try:
            return repos[entity_type_name]
        except KeyError:
            raise StoreError(f"Unknown entity type: {entity_type_name!r}") from None

    def remove(self, entity_type_name: str, entity_id: str) -> None:
        """Delete by entity type name; a missing id is not an error."""
        self.repository(entity_type_name).delete(entity_id)

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Scope in which all writes are committed together or rolled back."""

    def close(self) -> None:
        """Release backend resources. No-op by default."""


class RepositoryBase(Generic[T]):
    """Shared ``find`` ordering/pagination on top of an entity iterator."""

    def _iter_entities(self) -> Iterator[T]:
        raise NotImplementedError

    def find(self, query: EntityQuery) -> list[T]:
        hits = [
            (fields, entity)
            for entity in self._iter_entities()
            if matches(fields := index_fields(entity), query)
        ]
        hits.sort(key=lambda pair: (pair[0]["sort_ts"], pair[1].id), reverse=True)  # type: ignore[attr-defined]
        return [entity for _, entity in hits[query.offset : query.offset + query.first]]


# ---------------------------------------------------------------------------
# Get-or-create helpers shared by both handler sets
# ---------------------------------------------------------------------------


def upsert(
    repo: Repository[T],
    entity_id: str,
    create: Callable[[], T],
    update: Callable[[T], T],
) -> T:
    """Read, then either create or update, then write. Returns what was written."""
    existing = repo.get(entity_id)
    entity = create() if existing is None else update(existing)
    repo.put(entity_id, entity)
    return entity


def update_existing(
    repo: Repository[T],
    entity_id: str,
    update: Callable[[T], T | None],
) -> T | None:
    """Update a record only if it exists. *update* may return None to skip the write."""
    existing = repo.get(entity_id)
    if existing is None:
        return None
    entity = update(existing)
    if entity is None:
        return None
    repo.put(entity_id, entity)
    return entity
