"""Composite identifiers used as exact-match store keys.

Field order and the ``-`` separator are fixed and shared by both ecosystems.
Callers must normalize addresses and roles first (``core.normalizer``); an id
built from a non-canonical field will never be found again on read.
"""

from __future__ import annotations


def generate_event_id(tx_or_event_id: str, log_index_or_suffix: int | str) -> str:
    """``{txHash}-{logIndex}`` for EVM, ``{eventId}-{suffix}`` for Stellar."""
    return f"{tx_or_event_id}-{log_index_or_suffix}"


def generate_role_membership_id(
    network: str, contract: str, role: str, account: str
) -> str:
    return f"{network}-{contract}-{role}-{account}"


def generate_contract_ownership_id(network: str, contract: str) -> str:
    return f"{network}-{contract}"


def generate_contract_id(network: str, contract: str) -> str:
    return f"{network}-{contract}"
