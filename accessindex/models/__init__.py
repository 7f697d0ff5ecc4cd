"""accessindex data models: all Pydantic v2, all frozen (immutable)."""

from accessindex.models.chain import (
    EvmBlock,
    EvmLog,
    StellarEvent,
    StellarLedger,
    StellarTransaction,
)
from accessindex.models.entities import (
    ADMIN_EVENTS,
    DEFAULT_ADMIN_RULES_EVENTS,
    OWNERSHIP_EVENTS,
    ROLE_EVENTS,
    AccessControlEvent,
    Contract,
    ContractOwnership,
    ContractType,
    EventType,
    RoleMembership,
)
from accessindex.models.query import EntityQuery

__all__ = [
    # entities
    "EventType",
    "ContractType",
    "ROLE_EVENTS",
    "OWNERSHIP_EVENTS",
    "ADMIN_EVENTS",
    "DEFAULT_ADMIN_RULES_EVENTS",
    "AccessControlEvent",
    "RoleMembership",
    "ContractOwnership",
    "Contract",
    # chain payloads
    "EvmBlock",
    "EvmLog",
    "StellarLedger",
    "StellarTransaction",
    "StellarEvent",
    # query
    "EntityQuery",
]
