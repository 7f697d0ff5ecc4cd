"""Event routing: pick the handler for a raw chain event.

EVM logs are routed on ``topics[0]`` (the keccak256 event signature);
Soroban events on their leading symbol topic. Events that match no route
belong to some other contract interface and are dropped at DEBUG level.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from accessindex.decoding.evm import EVENT_TOPICS
from accessindex.decoding.soroban import decode_symbol
from accessindex.handlers.evm import EvmHandlerSet
from accessindex.handlers.stellar import StellarHandlerSet
from accessindex.models.chain import EvmLog, StellarEvent
from accessindex.models.entities import AccessControlEvent

logger = logging.getLogger(__name__)

# Solidity event name -> EvmHandlerSet method name.
EVM_ROUTES: dict[str, str] = {
    "RoleGranted": "handle_role_granted",
    "RoleRevoked": "handle_role_revoked",
    "RoleAdminChanged": "handle_role_admin_changed",
    "OwnershipTransferred": "handle_ownership_transferred",
    "OwnershipTransferStarted": "handle_ownership_transfer_started",
    "DefaultAdminTransferScheduled": "handle_default_admin_transfer_scheduled",
    "DefaultAdminTransferCanceled": "handle_default_admin_transfer_canceled",
    "DefaultAdminDelayChangeScheduled": "handle_default_admin_delay_change_scheduled",
    "DefaultAdminDelayChangeCanceled": "handle_default_admin_delay_change_canceled",
}

# Soroban topic[0] symbol -> StellarHandlerSet method name.
STELLAR_ROUTES: dict[str, str] = {
    "role_granted": "handle_role_granted",
    "role_revoked": "handle_role_revoked",
    "role_admin_changed": "handle_role_admin_changed",
    "admin_transfer_initiated": "handle_admin_transfer_initiated",
    "admin_transfer_completed": "handle_admin_transfer_completed",
    "admin_renounced": "handle_admin_renounced",
    "ownership_transfer": "handle_ownership_transfer_started",
    "ownership_transfer_completed": "handle_ownership_transfer_completed",
    "ownership_renounced": "handle_ownership_renounced",
}


class EvmDispatcher:
    """Routes ``EvmLog`` records to an ``EvmHandlerSet`` by signature topic."""

    def __init__(self, handlers: EvmHandlerSet) -> None:
        self._handlers = handlers
        self._routes: dict[str, Callable[[EvmLog], AccessControlEvent | None]] = {
            EVENT_TOPICS[name]: getattr(handlers, method)
            for name, method in EVM_ROUTES.items()
        }

    @property
    def topics(self) -> list[str]:
        """Signature topics this dispatcher handles."""
        return list(self._routes)

    def dispatch(self, log: EvmLog) -> AccessControlEvent | None:
        signature = log.topics[0] if log.topics else None
        handler = self._routes.get(signature.lower()) if signature else None
        if handler is None:
            logger.debug(
                "No handler for topic %s (tx %s)", signature, log.transaction_hash
            )
            return None
        return handler(log)


class StellarDispatcher:
    """Routes ``StellarEvent`` records to a ``StellarHandlerSet`` by leading symbol."""

    def __init__(self, handlers: StellarHandlerSet) -> None:
        self._handlers = handlers
        self._routes: dict[str, Callable[[StellarEvent], AccessControlEvent | None]] = {
            symbol: getattr(handlers, method) for symbol, method in STELLAR_ROUTES.items()
        }

    @property
    def symbols(self) -> list[str]:
        return list(self._routes)

    def dispatch(self, event: StellarEvent) -> AccessControlEvent | None:
        if not event.topic:
            logger.debug("No topics on event %s", event.id)
            return None
        symbol = decode_symbol(event.topic[0])
        handler = self._routes.get(symbol.value) if symbol.ok else None
        if handler is None:
            logger.debug(
                "No handler for event %s (%s)",
                event.id,
                symbol.value if symbol.ok else symbol.error,
            )
            return None
        return handler(event)
