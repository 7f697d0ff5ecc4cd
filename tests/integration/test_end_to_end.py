"""End-to-end integration tests: raw chain payloads through the Indexer facade.

These tests exercise the network registry, context binding, dispatchers,
both handler sets, the classifier and the SQLite store working together.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
from stellar_sdk import scval

from accessindex.core.context import ContextBinding
from accessindex.core.identifiers import (
    generate_contract_id,
    generate_contract_ownership_id,
    generate_role_membership_id,
)
from accessindex.core.indexer import Indexer, IngestStats
from accessindex.core.normalizer import ZERO_ADDRESS
from accessindex.decoding.evm import EVENT_TOPICS
from accessindex.models.chain import EvmLog
from accessindex.models.entities import ContractType, EventType
from accessindex.models.query import EntityQuery
from accessindex.networks import UnknownNetworkError
from accessindex.store import InMemoryEntityStore, SqliteEntityStore

from tests.chain_data import (
    ALICE,
    BLOCK_TS,
    BOB,
    CAROL,
    MINTER_ROLE,
    address_topic,
    stellar_account,
    stellar_contract,
    symbol_map,
    uint_words,
)

MIXED_CONTRACT = "0xABCDEF0123456789ABCDEF0123456789ABCDEF01"
CONTRACT = MIXED_CONTRACT.lower()
DEAD_TX = "0x" + "de" * 32


def _raw_log(event_name: str, topics: list[str], log_index: int, data: str = "0x") -> dict:
    """A framework-shaped EVM log, camelCase keys, as read from JSON."""
    return {
        "address": MIXED_CONTRACT,
        "topics": [EVENT_TOPICS[event_name], *topics],
        "data": data,
        "blockNumber": 100 + log_index,
        "transactionHash": DEAD_TX,
        "logIndex": log_index,
        "block": {"timestamp": BLOCK_TS + 60 * log_index},
    }


@pytest.fixture
def sqlite_indexer(tmp_path: Path):
    store = SqliteEntityStore(tmp_path / "e2e.db")
    yield Indexer("base-mainnet", store)
    store.close()


class TestEvmEndToEnd:
    def test_role_granted_example(self, sqlite_indexer: Indexer):
        raw = _raw_log(
            "RoleGranted",
            [MINTER_ROLE.upper().replace("0X", "0x"), address_topic(ALICE), address_topic(BOB)],
            log_index=3,
        )
        event = sqlite_indexer.process(raw)

        assert event.id == f"{DEAD_TX}-3"
        assert event.event_type is EventType.ROLE_GRANTED
        assert event.role == MINTER_ROLE
        assert (event.account, event.sender) == (ALICE, BOB)
        assert event.contract == CONTRACT

        store = sqlite_indexer.store
        membership = store.memberships.get(
            generate_role_membership_id("base-mainnet", CONTRACT, MINTER_ROLE, ALICE)
        )
        assert membership.id == f"base-mainnet-{CONTRACT}-{MINTER_ROLE}-{ALICE}"
        assert membership.granted_by == BOB
        contract = store.contracts.get(generate_contract_id("base-mainnet", CONTRACT))
        assert contract.type is ContractType.ACCESS_CONTROL

    def test_contract_lifecycle(self, sqlite_indexer: Indexer):
        logs = [
            _raw_log("OwnershipTransferred", [address_topic(ZERO_ADDRESS), address_topic(ALICE)], 0),
            _raw_log("RoleGranted", [MINTER_ROLE, address_topic(BOB), address_topic(ALICE)], 1),
            _raw_log("RoleGranted", [MINTER_ROLE, address_topic(CAROL), address_topic(ALICE)], 2),
            _raw_log("OwnershipTransferStarted", [address_topic(ALICE), address_topic(BOB)], 3),
            _raw_log("DefaultAdminTransferScheduled", [address_topic(CAROL)], 4, uint_words(BLOCK_TS + 86_400)),
            _raw_log("RoleRevoked", [MINTER_ROLE, address_topic(BOB), address_topic(ALICE)], 5),
            _raw_log("OwnershipTransferred", [address_topic(ALICE), address_topic(BOB)], 6),
        ]
        stats = sqlite_indexer.process_many(logs)
        assert stats == IngestStats(received=7, indexed=7, skipped=0)

        store = sqlite_indexer.store
        members = store.memberships.find(EntityQuery(contract=CONTRACT))
        assert [m.account for m in members] == [CAROL]

        ownership = store.ownerships.get(generate_contract_ownership_id("base-mainnet", CONTRACT))
        assert ownership.owner == BOB
        assert ownership.previous_owner == ALICE
        assert ownership.pending_owner is None

        contract = store.contracts.get(generate_contract_id("base-mainnet", CONTRACT))
        assert contract.type is ContractType.ACCESS_CONTROL_OWNABLE

        events = store.events.find(EntityQuery(contract=CONTRACT))
        assert [e.block_number for e in events] == [106, 105, 104, 103, 102, 101, 100]
        assert events[0].event_type is EventType.OWNERSHIP_TRANSFERRED

    def test_renounce_then_query(self, sqlite_indexer: Indexer):
        sqlite_indexer.process_many([
            _raw_log("OwnershipTransferred", [address_topic(ZERO_ADDRESS), address_topic(ALICE)], 0),
            _raw_log("OwnershipTransferred", [address_topic(ALICE), address_topic(ZERO_ADDRESS)], 1),
        ])
        store = sqlite_indexer.store
        assert store.ownerships.get(generate_contract_ownership_id("base-mainnet", CONTRACT)) is None
        renounced = store.events.find(EntityQuery(event_type=EventType.OWNERSHIP_RENOUNCED))
        assert len(renounced) == 1

    def test_replay_is_idempotent(self, sqlite_indexer: Indexer):
        logs = [
            _raw_log("RoleGranted", [MINTER_ROLE, address_topic(ALICE), address_topic(BOB)], 0),
            _raw_log("OwnershipTransferStarted", [address_topic(ALICE), address_topic(BOB)], 1),
        ]
        sqlite_indexer.process_many(logs)
        sqlite_indexer.process_many(logs)
        store = sqlite_indexer.store
        assert len(store.events.find(EntityQuery())) == 2
        assert len(store.memberships.find(EntityQuery())) == 1

    def test_foreign_and_malformed_logs_counted_as_skipped(self, sqlite_indexer: Indexer):
        foreign = _raw_log("RoleGranted", [], 0)
        foreign["topics"] = ["0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"]
        broken = {"address": MIXED_CONTRACT}
        stats = sqlite_indexer.process_many([
            foreign,
            broken,
            _raw_log("RoleGranted", [MINTER_ROLE, address_topic(ALICE), address_topic(BOB)], 1),
        ])
        assert stats == IngestStats(received=3, indexed=1, skipped=2)

    def test_accepts_model_instances(self, sqlite_indexer: Indexer):
        log = EvmLog.model_validate(
            _raw_log("RoleAdminChanged", [MINTER_ROLE, "0x" + "00" * 32, "0x" + "11" * 32], 0)
        )
        assert sqlite_indexer.process(log).event_type is EventType.ROLE_ADMIN_CHANGED


class TestStellarEndToEnd:
    def test_admin_and_role_flow(self, tmp_path: Path):
        contract, admin, successor, minter = (
            stellar_contract(), stellar_account(), stellar_account(), stellar_account(),
        )
        closed = datetime(2025, 3, 1, tzinfo=timezone.utc)

        def raw(n: int, topics: list, value=None) -> dict:
            return {
                "id": f"00000214748405{n:02d}-0000000001",
                "topic": [t.to_xdr() for t in topics],
                "value": value.to_xdr() if value is not None else None,
                "ledger": {"sequence": 1_000 + n},
                "ledgerClosedAt": closed.replace(minute=n).isoformat(),
                "transaction": {"hash": f"{n:02x}" * 32},
                "contractId": contract,
            }

        store = SqliteEntityStore(tmp_path / "stellar.db")
        try:
            indexer = Indexer("stellar-testnet", store)
            stats = indexer.process_many([
                raw(1, [scval.to_symbol("role_granted"), scval.to_symbol("minter"), scval.to_address(minter)],
                    symbol_map(caller=scval.to_address(admin))),
                raw(2, [scval.to_symbol("admin_transfer_initiated"), scval.to_address(admin)],
                    symbol_map(new_admin=scval.to_address(successor), live_until_ledger=scval.to_uint32(2_000))),
                raw(3, [scval.to_symbol("admin_transfer_completed"), scval.to_address(successor)],
                    symbol_map(previous_admin=scval.to_address(admin))),
                raw(4, [scval.to_symbol("transfer"), scval.to_address(admin)]),
            ])
            assert stats == IngestStats(received=4, indexed=3, skipped=1)

            ownership = store.ownerships.get(
                generate_contract_ownership_id("stellar-testnet", contract)
            )
            assert ownership.owner == successor
            assert ownership.previous_owner == admin
            assert ownership.pending_until_ledger is None

            (member,) = store.memberships.find(EntityQuery(network="stellar-testnet"))
            assert (member.role, member.account, member.granted_by) == ("minter", minter, admin)

            contract_row = store.contracts.get(generate_contract_id("stellar-testnet", contract))
            assert contract_row.type is ContractType.ACCESS_CONTROL
        finally:
            store.close()


class TestIndexerSetup:
    def test_unknown_network_raises(self):
        with pytest.raises(UnknownNetworkError):
            Indexer("nope-mainnet", InMemoryEntityStore())

    def test_uses_supplied_binding(self):
        binding = ContextBinding()
        store = InMemoryEntityStore()
        indexer = Indexer("stellar-mainnet", store, binding=binding)
        assert binding.get_store() is store
        assert indexer.context is binding.get_context()
        assert indexer.network.ecosystem == "stellar"

    def test_cross_ecosystem_payload_skipped(self, make_stellar_event):
        indexer = Indexer("ethereum-mainnet", InMemoryEntityStore())
        assert indexer.process(make_stellar_event("role_granted")) is None
