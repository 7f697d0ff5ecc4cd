"""EVM log decoding: signature topics, indexed params and ABI data words."""

from __future__ import annotations

from collections.abc import Sequence

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, keccak

from accessindex.core.normalizer import InvalidFormatError, format_role, topic_to_address
from accessindex.decoding.result import Decoded

# Canonical Solidity signatures of the indexed events, by handler event name.
EVENT_SIGNATURES: dict[str, str] = {
    "RoleGranted": "RoleGranted(bytes32,address,address)",
    "RoleRevoked": "RoleRevoked(bytes32,address,address)",
    "RoleAdminChanged": "RoleAdminChanged(bytes32,bytes32,bytes32)",
    "OwnershipTransferred": "OwnershipTransferred(address,address)",
    "OwnershipTransferStarted": "OwnershipTransferStarted(address,address)",
    "DefaultAdminTransferScheduled": "DefaultAdminTransferScheduled(address,uint48)",
    "DefaultAdminTransferCanceled": "DefaultAdminTransferCanceled()",
    "DefaultAdminDelayChangeScheduled": "DefaultAdminDelayChangeScheduled(uint48,uint48)",
    "DefaultAdminDelayChangeCanceled": "DefaultAdminDelayChangeCanceled()",
}


def event_topic(signature: str) -> str:
    """keccak256 of an event signature, as the lowercase ``0x`` topic0 string."""
    return "0x" + keccak(text=signature).hex()


EVENT_TOPICS: dict[str, str] = {
    name: event_topic(signature) for name, signature in EVENT_SIGNATURES.items()
}


def decode_address_topic(topics: Sequence[str | None], index: int) -> Decoded[str]:
    """The address held in the low 20 bytes of ``topics[index]``."""
    try:
        topic = topics[index]
    except IndexError:
        return Decoded.failure(f"topics[{index}] missing")
    if topic is None:
        return Decoded.failure(f"topics[{index}] missing")
    try:
        return Decoded.success(topic_to_address(topic))
    except InvalidFormatError as exc:
        return Decoded.failure(f"topics[{index}]: {exc}")


def decode_role_topic(topics: Sequence[str | None], index: int) -> Decoded[str]:
    """A bytes32 role from ``topics[index]``, in canonical form."""
    try:
        topic = topics[index]
    except IndexError:
        return Decoded.failure(f"topics[{index}] missing")
    if topic is None:
        return Decoded.failure(f"topics[{index}] missing")
    return Decoded.success(format_role(topic))


def decode_data_words(data: str, types: Sequence[str]) -> Decoded[tuple[int, ...]]:
    """Decode the non-indexed params packed in ``log.data`` as 32-byte big-endian words."""
    try:
        values = decode(list(types), decode_hex(data))
    except (DecodingError, ValueError) as exc:
        return Decoded.failure(f"data: {exc}")
    return Decoded.success(tuple(int(v) for v in values))
