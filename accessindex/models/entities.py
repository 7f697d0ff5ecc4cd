"""Canonical entity models: the superset schema shared by EVM and Stellar.

Every entity is frozen. Handlers never mutate an entity in place; they
write a ``model_copy(update=...)`` replacement back through the store.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

UINT64_MAX = 2**64 - 1


class EventType(str, Enum):
    """Closed set of normalized access-control event kinds."""

    # Role events (EVM + Stellar)
    ROLE_GRANTED = "ROLE_GRANTED"
    ROLE_REVOKED = "ROLE_REVOKED"
    ROLE_ADMIN_CHANGED = "ROLE_ADMIN_CHANGED"

    # Ownership events (EVM + Stellar)
    OWNERSHIP_TRANSFERRED = "OWNERSHIP_TRANSFERRED"
    OWNERSHIP_TRANSFER_STARTED = "OWNERSHIP_TRANSFER_STARTED"
    OWNERSHIP_TRANSFER_COMPLETED = "OWNERSHIP_TRANSFER_COMPLETED"
    OWNERSHIP_RENOUNCED = "OWNERSHIP_RENOUNCED"

    # Admin events (Stellar only)
    ADMIN_TRANSFER_INITIATED = "ADMIN_TRANSFER_INITIATED"
    ADMIN_TRANSFER_COMPLETED = "ADMIN_TRANSFER_COMPLETED"
    ADMIN_RENOUNCED = "ADMIN_RENOUNCED"

    # AccessControlDefaultAdminRules (EVM only)
    DEFAULT_ADMIN_TRANSFER_SCHEDULED = "DEFAULT_ADMIN_TRANSFER_SCHEDULED"
    DEFAULT_ADMIN_TRANSFER_CANCELED = "DEFAULT_ADMIN_TRANSFER_CANCELED"
    DEFAULT_ADMIN_DELAY_CHANGE_SCHEDULED = "DEFAULT_ADMIN_DELAY_CHANGE_SCHEDULED"
    DEFAULT_ADMIN_DELAY_CHANGE_CANCELED = "DEFAULT_ADMIN_DELAY_CHANGE_CANCELED"


class ContractType(str, Enum):
    """Running classification of a contract address."""

    ACCESS_CONTROL = "ACCESS_CONTROL"
    OWNABLE = "OWNABLE"
    ACCESS_CONTROL_OWNABLE = "ACCESS_CONTROL_OWNABLE"


ROLE_EVENTS: frozenset[EventType] = frozenset({
    EventType.ROLE_GRANTED,
    EventType.ROLE_REVOKED,
    EventType.ROLE_ADMIN_CHANGED,
})

OWNERSHIP_EVENTS: frozenset[EventType] = frozenset({
    EventType.OWNERSHIP_TRANSFERRED,
    EventType.OWNERSHIP_TRANSFER_STARTED,
    EventType.OWNERSHIP_TRANSFER_COMPLETED,
    EventType.OWNERSHIP_RENOUNCED,
})

ADMIN_EVENTS: frozenset[EventType] = frozenset({
    EventType.ADMIN_TRANSFER_INITIATED,
    EventType.ADMIN_TRANSFER_COMPLETED,
    EventType.ADMIN_RENOUNCED,
})

DEFAULT_ADMIN_RULES_EVENTS: frozenset[EventType] = frozenset({
    EventType.DEFAULT_ADMIN_TRANSFER_SCHEDULED,
    EventType.DEFAULT_ADMIN_TRANSFER_CANCELED,
    EventType.DEFAULT_ADMIN_DELAY_CHANGE_SCHEDULED,
    EventType.DEFAULT_ADMIN_DELAY_CHANGE_CANCELED,
})


class AccessControlEvent(BaseModel):
    """One observed event, appended once and never updated.

    The optional fields form a union; which ones are populated depends on
    ``event_type``.
    """

    model_config = ConfigDict(frozen=True)

    id: str  # "{txHash}-{logIndex}" (EVM) or "{eventId}-{suffix}" (Stellar)
    network: str
    contract: str
    event_type: EventType
    block_number: int = Field(ge=0, le=UINT64_MAX)
    timestamp: datetime
    tx_hash: str

    role: str | None = None
    account: str | None = None
    sender: str | None = None
    previous_admin_role: str | None = None
    new_admin_role: str | None = None
    previous_owner: str | None = None
    new_owner: str | None = None
    previous_admin: str | None = None
    new_admin: str | None = None
    live_until_ledger: int | None = None  # Stellar only
    accept_schedule: int | None = None  # DefaultAdminRules, unix seconds
    new_delay: int | None = None
    effect_schedule: int | None = None


class RoleMembership(BaseModel):
    """An account currently holding a role on a contract.

    There is no revoked state: revocation deletes the record.
    """

    model_config = ConfigDict(frozen=True)

    id: str  # "{network}-{contract}-{role}-{account}"
    network: str
    contract: str
    role: str
    account: str
    granted_at: datetime
    granted_by: str | None = None
    tx_hash: str


class ContractOwnership(BaseModel):
    """Current and pending ownership of a contract."""

    model_config = ConfigDict(frozen=True)

    id: str  # "{network}-{contract}"
    network: str
    contract: str
    owner: str | None = None
    previous_owner: str | None = None
    pending_owner: str | None = None
    pending_until_ledger: int | None = None  # Stellar only
    transferred_at: datetime
    tx_hash: str


class Contract(BaseModel):
    """Per-contract classification, upgraded as new event families appear."""

    model_config = ConfigDict(frozen=True)

    id: str  # "{network}-{contract}"
    network: str
    address: str
    type: ContractType
    first_seen_at: datetime
    last_activity_at: datetime
