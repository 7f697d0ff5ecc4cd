"""Indexer facade: one network, one store, raw events in.

Binds the handler context for a registry network, selects the EVM or
Stellar handler set by the network's ecosystem, and routes each incoming
event through the matching dispatcher.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from accessindex.core.context import ContextBinding, HandlerContext
from accessindex.handlers.dispatch import EvmDispatcher, StellarDispatcher
from accessindex.handlers.evm import EvmHandlerSet
from accessindex.handlers.stellar import StellarHandlerSet
from accessindex.models.chain import EvmLog, StellarEvent
from accessindex.models.entities import AccessControlEvent
from accessindex.networks import AnyNetworkConfig, get_network_by_id
from accessindex.store.base import EntityStore

logger = logging.getLogger(__name__)

RawEvent = Union[EvmLog, StellarEvent, Mapping[str, Any]]


class IngestStats(BaseModel):
    """Counts for one ``process_many`` call."""

    model_config = ConfigDict(frozen=True)

    received: int = 0
    indexed: int = 0
    skipped: int = 0


class Indexer:
    """Processes raw chain events for a single network deployment.

    Parameters
    ----------
    network_id:
        Registry id, e.g. ``"ethereum-mainnet"`` or ``"stellar-testnet"``.
        Unknown ids raise ``UnknownNetworkError``.
    store:
        Backend that receives every entity write.
    binding:
        Optional pre-existing ``ContextBinding`` to initialize; a private
        one is created otherwise.
    """

    def __init__(
        self,
        network_id: str,
        store: EntityStore,
        binding: ContextBinding | None = None,
    ) -> None:
        self._network = get_network_by_id(network_id)
        self._binding = binding or ContextBinding()
        self._context = self._binding.initialize_handlers(network_id, store)

        if self._network.ecosystem == "evm":
            self._model: type[BaseModel] = EvmLog
            self._dispatcher: EvmDispatcher | StellarDispatcher = EvmDispatcher(
                EvmHandlerSet(self._context)
            )
        else:
            self._model = StellarEvent
            self._dispatcher = StellarDispatcher(StellarHandlerSet(self._context))

        logger.info(
            "Indexer ready for %s (%s)", self._network.id, self._network.ecosystem
        )

    @property
    def network(self) -> AnyNetworkConfig:
        return self._network

    @property
    def context(self) -> HandlerContext:
        return self._context

    @property
    def store(self) -> EntityStore:
        return self._context.store

    def _parse(self, raw: RawEvent) -> Any:
        if isinstance(raw, (EvmLog, StellarEvent)):
            if not isinstance(raw, self._model):
                logger.warning(
                    "Skipping malformed event: %s payload on %s network %s",
                    type(raw).__name__,
                    self._network.ecosystem,
                    self._network.id,
                )
                return None
            return raw
        try:
            return self._model.model_validate(raw)
        except (ValidationError, ValueError) as exc:
            logger.warning(
                "Skipping malformed event: unparseable %s payload on %s: %s",
                self._model.__name__,
                self._network.id,
                exc,
            )
            return None

    def process(self, raw: RawEvent) -> AccessControlEvent | None:
        """Route one event. Returns the appended event, or None if skipped or unrouted."""
        event = self._parse(raw)
        if event is None:
            return None
        return self._dispatcher.dispatch(event)

    def process_many(self, events: Iterable[RawEvent]) -> IngestStats:
        received = indexed = 0
        for raw in events:
            received += 1
            if self.process(raw) is not None:
                indexed += 1
        stats = IngestStats(received=received, indexed=indexed, skipped=received - indexed)
        logger.info(
            "Ingested %d events on %s: %d indexed, %d skipped",
            stats.received,
            self._network.id,
            stats.indexed,
            stats.skipped,
        )
        return stats
