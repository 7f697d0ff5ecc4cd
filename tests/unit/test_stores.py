"""Unit tests for the entity store backends.

Most tests run once per backend through the parametrized ``store`` fixture.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from accessindex.models.entities import (
    AccessControlEvent,
    Contract,
    ContractOwnership,
    ContractType,
    EventType,
    RoleMembership,
)
from accessindex.models.query import EntityQuery
from accessindex.store import (
    InMemoryEntityStore,
    SqliteEntityStore,
    StoreError,
    open_store,
    update_existing,
    upsert,
)

from tests.chain_data import ALICE, BOB, CONTRACT, EVM_NETWORK, MINTER_ROLE, TX_HASH

T0 = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _event(n: int, **overrides) -> AccessControlEvent:
    fields = {
        "id": f"{TX_HASH}-{n}",
        "network": EVM_NETWORK,
        "contract": CONTRACT,
        "event_type": EventType.ROLE_GRANTED,
        "block_number": 100 + n,
        "timestamp": T0 + timedelta(minutes=n),
        "tx_hash": TX_HASH,
        "role": MINTER_ROLE,
        "account": ALICE,
    }
    fields.update(overrides)
    return AccessControlEvent(**fields)


def _membership(account: str = ALICE) -> RoleMembership:
    return RoleMembership(
        id=f"{EVM_NETWORK}-{CONTRACT}-{MINTER_ROLE}-{account}",
        network=EVM_NETWORK,
        contract=CONTRACT,
        role=MINTER_ROLE,
        account=account,
        granted_at=T0,
        tx_hash=TX_HASH,
    )


def _ownership(owner: str = ALICE) -> ContractOwnership:
    return ContractOwnership(
        id=f"{EVM_NETWORK}-{CONTRACT}",
        network=EVM_NETWORK,
        contract=CONTRACT,
        owner=owner,
        transferred_at=T0,
        tx_hash=TX_HASH,
    )


class TestRepositoryBasics:
    def test_put_get_roundtrip_preserves_model(self, store):
        event = _event(1, sender=BOB)
        store.events.put(event.id, event)
        assert store.events.get(event.id) == event

    def test_get_missing(self, store):
        assert store.memberships.get("nope") is None

    def test_put_overwrites(self, store):
        store.ownerships.put("x", _ownership(ALICE))
        store.ownerships.put("x", _ownership(BOB))
        assert store.ownerships.get("x").owner == BOB

    def test_delete_and_missing_delete(self, store):
        membership = _membership()
        store.memberships.put(membership.id, membership)
        store.memberships.delete(membership.id)
        store.memberships.delete(membership.id)
        assert store.memberships.get(membership.id) is None

    def test_remove_by_type_name(self, store):
        membership = _membership()
        store.memberships.put(membership.id, membership)
        store.remove("RoleMembership", membership.id)
        assert store.memberships.get(membership.id) is None

    def test_remove_unknown_type(self, store):
        with pytest.raises(StoreError, match="Unknown entity type"):
            store.remove("Token", "x")

    def test_entity_types_are_separate_namespaces(self, store):
        contract = Contract(
            id="same", network=EVM_NETWORK, address=CONTRACT,
            type=ContractType.OWNABLE, first_seen_at=T0, last_activity_at=T0,
        )
        store.contracts.put("same", contract)
        store.ownerships.put("same", _ownership())
        assert store.contracts.get("same").type is ContractType.OWNABLE
        assert store.ownerships.get("same").owner == ALICE


class TestFind:
    def _seed(self, store):
        for n in range(5):
            event = _event(n)
            store.events.put(event.id, event)
        other = _event(10, account=BOB, event_type=EventType.ROLE_REVOKED)
        store.events.put(other.id, other)

    def test_newest_first(self, store):
        self._seed(store)
        ids = [e.id for e in store.events.find(EntityQuery())]
        assert ids[0] == f"{TX_HASH}-10"
        assert ids[1:] == [f"{TX_HASH}-{n}" for n in (4, 3, 2, 1, 0)]

    def test_filters(self, store):
        self._seed(store)
        assert len(store.events.find(EntityQuery(account=ALICE))) == 5
        assert len(store.events.find(EntityQuery(event_type=EventType.ROLE_REVOKED))) == 1
        assert store.events.find(EntityQuery(network="base-mainnet")) == []
        assert len(store.events.find(EntityQuery(contract=CONTRACT, role=MINTER_ROLE))) == 6

    def test_time_range_inclusive(self, store):
        self._seed(store)
        hits = store.events.find(
            EntityQuery(since=T0 + timedelta(minutes=1), until=T0 + timedelta(minutes=3))
        )
        assert [e.block_number for e in hits] == [103, 102, 101]

    def test_naive_bounds_treated_as_utc(self, store):
        self._seed(store)
        naive = (T0 + timedelta(minutes=4)).replace(tzinfo=None)
        assert len(store.events.find(EntityQuery(since=naive))) == 2

    def test_pagination(self, store):
        self._seed(store)
        page = store.events.find(EntityQuery(first=2, offset=2))
        assert [e.block_number for e in page] == [103, 102]
        assert store.events.find(EntityQuery(offset=50)) == []

    def test_same_timestamp_ordered_by_id(self, store):
        for n in (1, 2):
            event = _event(n, timestamp=T0)
            store.events.put(event.id, event)
        assert [e.id for e in store.events.find(EntityQuery())] == [f"{TX_HASH}-2", f"{TX_HASH}-1"]

    def test_ownership_filtered_by_owner(self, store):
        store.ownerships.put("o", _ownership(BOB))
        assert len(store.ownerships.find(EntityQuery(account=BOB))) == 1
        assert store.ownerships.find(EntityQuery(account=ALICE)) == []


class TestTransactions:
    def test_commit(self, store):
        with store.transaction():
            store.events.put("a", _event(1, id="a"))
        assert store.events.get("a") is not None

    def test_rollback_on_error(self, store):
        store.memberships.put("keep", _membership())
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.events.put("a", _event(1, id="a"))
                store.memberships.delete("keep")
                raise RuntimeError("boom")
        assert store.events.get("a") is None
        assert store.memberships.get("keep") is not None

    def test_nested_scope_joins_outer(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction():
                with store.transaction():
                    store.events.put("inner", _event(1, id="inner"))
                raise RuntimeError("outer fails")
        assert store.events.get("inner") is None

    def test_rollback_restores_overwrites_and_transient_keys(self, store):
        store.ownerships.put("o", _ownership(ALICE))
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.ownerships.put("o", _ownership(BOB))
                store.ownerships.put("o", _ownership(CONTRACT))
                store.events.put("tmp", _event(1, id="tmp"))
                store.events.delete("tmp")
                store.ownerships.delete("o")
                raise RuntimeError("boom")
        assert store.ownerships.get("o").owner == ALICE
        assert store.events.get("tmp") is None


class TestMemoryJournal:
    def test_journal_only_holds_touched_keys(self):
        store = InMemoryEntityStore()
        for n in range(50):
            store.events.put(f"e{n}", _event(n, id=f"e{n}"))
        with store.transaction():
            store.events.put("e1", _event(99, id="e1"))
            assert len(store._journal) == 1
        assert store._journal is None
        assert store.events.get("e1").block_number == 199

    def test_writes_outside_a_transaction_are_not_journaled(self):
        store = InMemoryEntityStore()
        store.events.put("a", _event(1, id="a"))
        assert store._journal is None
        assert len(store.events) == 1

    def test_rollback_after_many_writes(self):
        store = InMemoryEntityStore()
        store.events.put("keep", _event(0, id="keep"))
        with pytest.raises(RuntimeError):
            with store.transaction():
                for n in range(1, 200):
                    store.events.put(f"e{n}", _event(n, id=f"e{n}"))
                raise RuntimeError("boom")
        assert [e.id for e in store.events.find(EntityQuery())] == ["keep"]
        assert store._journal is None


class TestGetOrCreateHelpers:
    def test_upsert_creates_then_updates(self, store):
        created = upsert(store.ownerships, "o", lambda: _ownership(ALICE), lambda o: o)
        assert created.owner == ALICE
        updated = upsert(
            store.ownerships, "o", lambda: _ownership(ALICE),
            lambda o: o.model_copy(update={"owner": BOB}),
        )
        assert updated.owner == BOB
        assert store.ownerships.get("o").owner == BOB

    def test_update_existing_skips_missing(self, store):
        assert update_existing(store.ownerships, "o", lambda o: o) is None
        assert store.ownerships.get("o") is None

    def test_update_existing_can_decline_write(self, store):
        store.ownerships.put("o", _ownership(ALICE))
        assert update_existing(store.ownerships, "o", lambda o: None) is None
        assert store.ownerships.get("o").owner == ALICE


class TestSqliteBackend:
    def test_persists_across_reopen(self, tmp_path):
        path = tmp_path / "nested" / "index.db"
        with SqliteEntityStore(path) as first:
            first.events.put("a", _event(1, id="a"))
        with SqliteEntityStore(path) as second:
            assert second.events.get("a").block_number == 101
            assert len(second.events.find(EntityQuery())) == 1

    def test_closed_store_raises(self, tmp_path):
        store = SqliteEntityStore(tmp_path / "x.db")
        store.close()
        with pytest.raises(StoreError, match="closed"):
            store.events.get("a")

    def test_in_memory_database(self):
        store = SqliteEntityStore(":memory:")
        store.events.put("a", _event(1, id="a"))
        assert store.events.get("a") is not None
        store.close()


class TestOpenStore:
    def test_backends(self, tmp_path):
        assert isinstance(open_store("memory", tmp_path / "unused.db"), InMemoryEntityStore)
        sqlite = open_store("sqlite", tmp_path / "index.db")
        assert isinstance(sqlite, SqliteEntityStore)
        sqlite.close()

    def test_unknown_backend(self, tmp_path):
        with pytest.raises(StoreError, match="Unknown store backend"):
            open_store("postgres", tmp_path / "x.db")
