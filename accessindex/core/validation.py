"""Structural validation of raw chain events before any state mutation.

A failed validation is never fatal: the handler logs the failure and skips
the event. Malformed events from third-party or legacy contracts that happen
to share an event name must not halt indexing.

EVM events are checked against a static table of required topic indices.
Stellar events are checked inline by each handler (exact topic count, ledger
metadata, per-field validators defined here).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict
from stellar_sdk import StrKey

from accessindex.core.normalizer import is_valid_role_symbol
from accessindex.models.chain import StellarEvent
from accessindex.models.entities import UINT64_MAX

logger = logging.getLogger(__name__)

_EVM_ROLE_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")
_EVM_TX_HASH_RE = _EVM_ROLE_RE
_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_STELLAR_TX_HASH_RE = re.compile(r"^[a-fA-F0-9]{64}$")


class ValidationResult(BaseModel):
    """Outcome of a structural check."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    error: str | None = None


VALID = ValidationResult(valid=True)


class EventContext(BaseModel):
    """Where an event came from; embedded in every validation error."""

    model_config = ConfigDict(frozen=True)

    network: str
    block_number: int | None = None
    event_type: str
    transaction_hash: str | None = None

    def describe(self) -> str:
        text = f"{self.event_type} at block {self.block_number} on {self.network}"
        if self.transaction_hash:
            text += f" (tx: {self.transaction_hash})"
        return text


# ---------------------------------------------------------------------------
# EVM topic requirements
# ---------------------------------------------------------------------------

# Index 0 is always the event signature, so requirements start at 1.
EVM_EVENT_TOPIC_REQUIREMENTS: dict[str, list[int]] = {
    # OwnershipTransferred(address indexed previousOwner, address indexed newOwner)
    "OwnershipTransferred": [1, 2],
    # OwnershipTransferStarted(address indexed previousOwner, address indexed newOwner)
    "OwnershipTransferStarted": [1, 2],
    # RoleGranted(bytes32 indexed role, address indexed account, address indexed sender)
    "RoleGranted": [1, 2, 3],
    # RoleRevoked(bytes32 indexed role, address indexed account, address indexed sender)
    "RoleRevoked": [1, 2, 3],
    # RoleAdminChanged(bytes32 indexed role, bytes32 indexed previousAdminRole, bytes32 indexed newAdminRole)
    "RoleAdminChanged": [1, 2, 3],
    # DefaultAdminTransferScheduled(address indexed newAdmin, uint48 acceptSchedule)
    "DefaultAdminTransferScheduled": [1],
    "DefaultAdminTransferCanceled": [],
    # DefaultAdminDelayChangeScheduled(uint48 newDelay, uint48 effectSchedule)
    "DefaultAdminDelayChangeScheduled": [],
    "DefaultAdminDelayChangeCanceled": [],
}


# ---------------------------------------------------------------------------
# Generic validators
# ---------------------------------------------------------------------------


def validate_required_fields(
    data: Mapping[str, Any], required: Sequence[str], context: EventContext
) -> ValidationResult:
    """Fail on the first field that is missing or None.

    ``0`` and ``""`` count as present.
    """
    for name in required:
        if data.get(name) is None:
            return ValidationResult(
                valid=False,
                error=f'Missing required field "{name}" for {context.describe()}',
            )
    return VALID


def validate_array_elements(
    array: Sequence[Any] | None,
    required_indices: Sequence[int],
    array_name: str,
    context: EventContext,
) -> ValidationResult:
    """Fail if *array* is absent or any required index is missing or None."""
    if array is None:
        return ValidationResult(
            valid=False, error=f"Missing {array_name} for {context.describe()}"
        )
    for index in required_indices:
        if index >= len(array) or array[index] is None:
            return ValidationResult(
                valid=False,
                error=f"Missing {array_name}[{index}] for {context.describe()}",
            )
    return VALID


def is_valid_event(result: ValidationResult) -> bool:
    """Return whether to proceed; logs the reason when the event is skipped."""
    if result.valid:
        return True
    logger.warning("Skipping malformed event: %s", result.error)
    return False


# ---------------------------------------------------------------------------
# EVM
# ---------------------------------------------------------------------------


def validate_evm_topics(
    topics: Sequence[str | None] | None, event_type: str, context: EventContext
) -> ValidationResult:
    required = EVM_EVENT_TOPIC_REQUIREMENTS.get(event_type, [])
    return validate_array_elements(topics, required, "topics", context)


def validate_evm_event(
    topics: Sequence[str | None] | None,
    event_type: str,
    network: str,
    block_number: int,
    transaction_hash: str | None = None,
) -> ValidationResult:
    """Build the event context and validate the topics array."""
    context = EventContext(
        network=network,
        block_number=block_number,
        transaction_hash=transaction_hash,
        event_type=event_type,
    )
    return validate_evm_topics(topics, event_type, context)


def is_valid_evm_address(address: object) -> bool:
    """Strict shape check: ``0x`` + 40 hex chars, any case."""
    return isinstance(address, str) and bool(_EVM_ADDRESS_RE.fullmatch(address))


def is_valid_evm_role(role: object) -> bool:
    return isinstance(role, str) and bool(_EVM_ROLE_RE.fullmatch(role))


def is_valid_evm_tx_hash(tx_hash: object) -> bool:
    return isinstance(tx_hash, str) and bool(_EVM_TX_HASH_RE.fullmatch(tx_hash))


def is_valid_block_number(block_number: object) -> bool:
    """An integer that fits the uint64 block and ledger columns."""
    if isinstance(block_number, bool) or not isinstance(block_number, int):
        return False
    return 0 <= block_number <= UINT64_MAX


def is_valid_timestamp(timestamp: object) -> bool:
    return isinstance(timestamp, datetime)


def is_valid_unix_timestamp(seconds: object) -> bool:
    """Non-negative unix seconds that the platform can turn into a datetime."""
    if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds < 0:
        return False
    try:
        datetime.fromtimestamp(seconds, timezone.utc)
    except (OverflowError, ValueError, OSError):
        return False
    return True


# ---------------------------------------------------------------------------
# Stellar
# ---------------------------------------------------------------------------


def is_valid_stellar_address(value: object) -> bool:
    """A checksummed account (G...) or contract (C...) strkey."""
    if not isinstance(value, str):
        return False
    if value.startswith("G"):
        return StrKey.is_valid_ed25519_public_key(value)
    if value.startswith("C"):
        return StrKey.is_valid_contract(value)
    return False


def is_valid_stellar_role(value: object) -> bool:
    return is_valid_role_symbol(value)


def is_valid_stellar_tx_hash(tx_hash: object) -> bool:
    """64 hex chars, no ``0x`` prefix."""
    return isinstance(tx_hash, str) and bool(_STELLAR_TX_HASH_RE.fullmatch(tx_hash))


def is_valid_ledger_number(ledger: object) -> bool:
    return is_valid_block_number(ledger)


def has_valid_ledger_info(event: StellarEvent) -> bool:
    """The event carries ledger metadata with an in-range integral sequence."""
    return event.ledger is not None and is_valid_ledger_number(event.ledger.sequence)


def get_contract_address(event: StellarEvent) -> str | None:
    """The emitting contract's strkey, or None if absent or invalid."""
    address = event.contract_id
    if address and is_valid_stellar_address(address):
        return address
    return None


def stellar_event_context(event: StellarEvent, network: str, event_type: str) -> EventContext:
    return EventContext(
        network=network,
        block_number=event.ledger.sequence if event.ledger else None,
        event_type=event_type,
        transaction_hash=event.transaction.hash if event.transaction else None,
    )
