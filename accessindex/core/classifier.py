"""Running classification of contracts by the event families they emit.

The type only ever moves up: ACCESS_CONTROL or OWNABLE, then
ACCESS_CONTROL_OWNABLE once both families have been seen. It never regresses.
"""

from __future__ import annotations

import logging
from datetime import datetime

from accessindex.core.context import HandlerContext
from accessindex.core.identifiers import generate_contract_id
from accessindex.models.entities import OWNERSHIP_EVENTS, Contract, ContractType, EventType
from accessindex.store.base import upsert

logger = logging.getLogger(__name__)


def implied_contract_type(event_type: EventType) -> ContractType:
    """Ownership events imply OWNABLE; role, admin and default-admin-rules events imply ACCESS_CONTROL."""
    if event_type in OWNERSHIP_EVENTS:
        return ContractType.OWNABLE
    return ContractType.ACCESS_CONTROL


def merge_contract_type(existing: ContractType, implied: ContractType) -> ContractType:
    """Combine the stored type with a newly implied one, never downgrading."""
    if existing == ContractType.ACCESS_CONTROL_OWNABLE or existing == implied:
        return existing
    if implied == ContractType.ACCESS_CONTROL_OWNABLE:
        return implied
    # The two distinct single values.
    return ContractType.ACCESS_CONTROL_OWNABLE


def update_contract_metadata(
    context: HandlerContext,
    contract_address: str,
    implied_type: ContractType,
    timestamp: datetime,
) -> Contract:
    """Create the contract record on first sight, otherwise upgrade its type and touch it."""
    contract_id = generate_contract_id(context.network_id, contract_address)

    def create() -> Contract:
        logger.debug("New contract %s classified %s", contract_id, implied_type.value)
        return Contract(
            id=contract_id,
            network=context.network_id,
            address=contract_address,
            type=implied_type,
            first_seen_at=timestamp,
            last_activity_at=timestamp,
        )

    def update(contract: Contract) -> Contract:
        new_type = merge_contract_type(contract.type, implied_type)
        if new_type != contract.type:
            logger.info(
                "Contract %s upgraded %s -> %s",
                contract_id,
                contract.type.value,
                new_type.value,
            )
        return contract.model_copy(update={"type": new_type, "last_activity_at": timestamp})

    return upsert(context.store.contracts, contract_id, create, update)
