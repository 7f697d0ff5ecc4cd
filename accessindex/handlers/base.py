"""Shared plumbing for the EVM and Stellar handler sets.

Both sets follow the same lifecycle per event:

    validate -> decode -> (transaction: mutate state -> classify -> append event)

A handler returns the appended ``AccessControlEvent``, or ``None`` when the
event was skipped. Skips are logged at WARNING and never touch the store.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from accessindex.core.classifier import implied_contract_type, update_contract_metadata
from accessindex.core.context import HandlerContext
from accessindex.core.validation import EventContext
from accessindex.models.entities import AccessControlEvent, ContractType

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class BaseHandlerSet:
    """Common state and helpers for a per-network handler set.

    Parameters
    ----------
    context:
        The network identity and store this set writes through.
    """

    ecosystem: str = ""

    def __init__(self, context: HandlerContext) -> None:
        self._context = context

    @property
    def context(self) -> HandlerContext:
        return self._context

    @property
    def network_id(self) -> str:
        return self._context.network_id

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _skip(self, context: EventContext, reason: str) -> None:
        """Log a dropped event with its type, block, network and transaction."""
        logger.warning("Skipping malformed event: %s: %s", context.describe(), reason)

    def _classify(
        self,
        contract: str,
        event: AccessControlEvent,
        implied: ContractType | None = None,
    ) -> None:
        update_contract_metadata(
            self._context,
            contract,
            implied or implied_contract_type(event.event_type),
            event.timestamp,
        )

    def _append_event(self, event: AccessControlEvent) -> AccessControlEvent:
        self._context.store.events.put(event.id, event)
        logger.debug("Indexed %s %s", event.event_type.value, event.id)
        return event
