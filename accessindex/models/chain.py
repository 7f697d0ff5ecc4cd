"""Inbound chain payloads, as delivered by the chain-sync framework.

Both models accept the framework's camelCase field names (``blockNumber``,
``ledgerClosedAt``, ...) as well as the snake_case attribute names.
Neither model validates the *content* of the payload; that is the job of
``accessindex.core.validation`` so that a malformed event is skipped by its
handler rather than rejected at the boundary.
"""

from __future__ import annotations

import struct
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from stellar_sdk import xdr


class EvmBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: int  # unix seconds


class EvmLog(BaseModel):
    """A decoded EVM log record (``EthereumLog`` shape)."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    address: str
    topics: list[str | None] | None = None
    data: str = "0x"
    block_number: int
    transaction_hash: str
    log_index: int
    block: EvmBlock


class StellarLedger(BaseModel):
    model_config = ConfigDict(frozen=True)

    sequence: int | None = None


class StellarTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    hash: str


def _to_scval(raw: Any) -> Any:
    """Accept base64 XDR strings for SCVal fields; pass SCVal objects through."""
    if isinstance(raw, str):
        try:
            return xdr.SCVal.from_xdr(raw)
        except (ValueError, TypeError, EOFError, struct.error) as exc:
            raise ValueError(f"invalid SCVal XDR: {exc}") from exc
    return raw


class StellarEvent(BaseModel):
    """A Soroban contract event (``SorobanEvent`` shape).

    ``topic`` and ``value`` hold ``stellar_sdk.xdr.SCVal`` instances. When the
    event is loaded from JSON they may be given as base64-encoded XDR.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: str
    topic: list[Any] = []
    value: Any = None
    ledger: StellarLedger | None = None
    ledger_closed_at: datetime
    transaction: StellarTransaction | None = None
    contract_id: str | None = None

    @field_validator("topic", mode="before")
    @classmethod
    def _decode_topic(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [_to_scval(item) for item in v]
        return v

    @field_validator("value", mode="before")
    @classmethod
    def _decode_value(cls, v: Any) -> Any:
        return _to_scval(v)
