"""Shared test fixtures for accessindex."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from stellar_sdk import scval, xdr

from accessindex.core.context import ContextBinding, HandlerContext
from accessindex.decoding.evm import EVENT_TOPICS
from accessindex.handlers.evm import EvmHandlerSet
from accessindex.handlers.stellar import StellarHandlerSet
from accessindex.models.chain import EvmLog, StellarEvent
from accessindex.store.base import EntityStore
from accessindex.store.memory import InMemoryEntityStore
from accessindex.store.sqlite import SqliteEntityStore

from tests.chain_data import (
    BLOCK_TS,
    CONTRACT,
    EVM_NETWORK,
    STELLAR_NETWORK,
    TX_HASH,
    stellar_contract,
)

# ---------------------------------------------------------------------------
# Stores and contexts
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> InMemoryEntityStore:
    """Provide a fresh in-memory store."""
    return InMemoryEntityStore()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> Iterator[SqliteEntityStore]:
    """Provide a fresh SQLite store in a temp directory."""
    store = SqliteEntityStore(tmp_path / "index.db")
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[EntityStore]:
    """Every backend; tests using this run once per store."""
    if request.param == "memory":
        yield InMemoryEntityStore()
        return
    backend = SqliteEntityStore(tmp_path / "param.db")
    yield backend
    backend.close()


@pytest.fixture
def evm_context(store: EntityStore) -> HandlerContext:
    return ContextBinding().initialize_handlers(EVM_NETWORK, store)


@pytest.fixture
def stellar_context(store: EntityStore) -> HandlerContext:
    return ContextBinding().initialize_handlers(STELLAR_NETWORK, store)


@pytest.fixture
def evm_handlers(evm_context: HandlerContext) -> EvmHandlerSet:
    return EvmHandlerSet(evm_context)


@pytest.fixture
def stellar_handlers(stellar_context: HandlerContext) -> StellarHandlerSet:
    return StellarHandlerSet(stellar_context)


# ---------------------------------------------------------------------------
# Chain payload factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_evm_log() -> Callable[..., EvmLog]:
    """Factory fixture: build an EvmLog for a named event.

    ``topics`` are the indexed params only; the signature topic is prepended.
    Pass ``raw_topics`` to bypass that and supply the full array (or None).
    """

    def _factory(
        event_name: str,
        topics: list[str | None] | None = None,
        *,
        raw_topics: Any = "unset",
        data: str = "0x",
        address: str = CONTRACT,
        block_number: int = 100,
        tx_hash: str = TX_HASH,
        log_index: int = 0,
        timestamp: int = BLOCK_TS,
    ) -> EvmLog:
        if raw_topics == "unset":
            full_topics: Any = [EVENT_TOPICS[event_name], *(topics or [])]
        else:
            full_topics = raw_topics
        return EvmLog(
            address=address,
            topics=full_topics,
            data=data,
            block_number=block_number,
            transaction_hash=tx_hash,
            log_index=log_index,
            block={"timestamp": timestamp},
        )

    return _factory


@pytest.fixture
def make_stellar_event() -> Callable[..., StellarEvent]:
    """Factory fixture: build a StellarEvent from a leading symbol plus SCVals."""

    def _factory(
        symbol: str,
        *topics: xdr.SCVal,
        value: xdr.SCVal | None = None,
        contract_id: str | None = None,
        ledger: int | None = 5_000,
        closed_at: datetime = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc),
        tx_hash: str | None = "cd" * 32,
        event_id: str = "0000021474840576-0000000001",
    ) -> StellarEvent:
        return StellarEvent(
            id=event_id,
            topic=[scval.to_symbol(symbol), *topics],
            value=value,
            ledger={"sequence": ledger} if ledger is not None else None,
            ledger_closed_at=closed_at,
            transaction={"hash": tx_hash} if tx_hash is not None else None,
            contract_id=contract_id or stellar_contract(),
        )

    return _factory
