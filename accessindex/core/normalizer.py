"""Address and role normalization into canonical storage form.

Canonical forms are used verbatim inside composite ids, so every address and
role must pass through here before an id is derived from it:

- EVM address: ``0x`` + 40 lowercase hex chars
- EVM role: ``0x`` + lowercase hex (bytes32 from the log topic)
- Stellar address: strkey, case preserved, ``^[GC][A-Z2-7]{55}$``
- Stellar role: Soroban symbol, case preserved, ``^[a-zA-Z0-9_]{1,32}$``
"""

from __future__ import annotations

import re

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# bytes32 zero: OpenZeppelin AccessControl DEFAULT_ADMIN_ROLE
DEFAULT_ADMIN_ROLE = "0x" + "0" * 64

_EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_STELLAR_ADDRESS_RE = re.compile(r"^[GC][A-Z2-7]{55}$")
_ROLE_SYMBOL_RE = re.compile(r"^[a-zA-Z0-9_]+$")


class InvalidFormatError(ValueError):
    """Raised when an identifier cannot be brought into canonical form."""


def normalize_evm_address(raw: str) -> str:
    """Return the canonical lowercase ``0x`` form of an EVM address."""
    if not raw:
        raise InvalidFormatError("Address is required")

    trimmed = raw.strip()
    with_prefix = trimmed if trimmed.startswith("0x") else f"0x{trimmed}"

    if len(with_prefix) != 42:
        raise InvalidFormatError(f"Invalid EVM address length: {len(with_prefix)}")
    if not _EVM_ADDRESS_RE.fullmatch(with_prefix):
        raise InvalidFormatError(f"Invalid EVM address format: {with_prefix}")

    return with_prefix.lower()


def normalize_stellar_address(raw: str) -> str:
    """Validate a Stellar account (G...) or contract (C...) strkey.

    Stellar addresses are case-sensitive and returned unchanged.
    """
    if not raw:
        raise InvalidFormatError("Address is required")

    trimmed = raw.strip()
    if not _STELLAR_ADDRESS_RE.fullmatch(trimmed):
        raise InvalidFormatError(f"Invalid Stellar address format: {trimmed}")
    return trimmed


def is_zero_address(address: str) -> bool:
    """True iff *address* normalizes to the all-zero EVM address."""
    try:
        return normalize_evm_address(address) == ZERO_ADDRESS
    except InvalidFormatError:
        return False


def is_ownership_renounce(new_owner: str) -> bool:
    """An ownership transfer to the zero address is a renunciation."""
    return is_zero_address(new_owner)


def format_role(raw: str) -> str:
    """Canonical form of an EVM bytes32 role: ``0x`` prefix, lowercase.

    The length is trusted; it comes straight from a 32-byte log topic.
    """
    with_prefix = raw if raw.startswith("0x") else f"0x{raw}"
    return with_prefix.lower()


def is_default_admin_role(role: str) -> bool:
    return format_role(role) == DEFAULT_ADMIN_ROLE


def is_valid_role_symbol(value: object) -> bool:
    """A Soroban role symbol: 1-32 chars of ``[a-zA-Z0-9_]``."""
    if not isinstance(value, str) or not 0 < len(value) <= 32:
        return False
    return bool(_ROLE_SYMBOL_RE.fullmatch(value))


def topic_to_address(topic: str) -> str:
    """Extract the address packed into the low 20 bytes of a 32-byte topic."""
    body = topic[2:] if topic.startswith("0x") else topic
    if len(body) != 64:
        raise InvalidFormatError(f"Invalid topic length for address: {len(body)}")
    return normalize_evm_address(f"0x{body[24:]}")
