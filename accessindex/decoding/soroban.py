"""Soroban ``SCVal`` to native Python conversion.

Only the value shapes that OpenZeppelin Stellar access-control contracts
emit are supported: symbols, strings, addresses, booleans, integers up to 64
bits, vectors and maps (struct-like maps with symbol keys decode to
``dict[str, Any]``). Anything else, or a structurally broken value, yields a
failed ``Decoded`` instead of raising.
"""

from __future__ import annotations

from typing import Any

from stellar_sdk import scval, xdr

from accessindex.decoding.result import Decoded

_MAX_DEPTH = 8


def scval_to_native(value: Any) -> Decoded[Any]:
    """Convert an ``xdr.SCVal`` to str/int/bool/list/dict/None."""
    if not isinstance(value, xdr.SCVal):
        return Decoded.failure(f"expected SCVal, got {type(value).__name__}")
    try:
        return Decoded.success(_convert(value, 0))
    except (ValueError, TypeError, AttributeError, UnicodeDecodeError) as exc:
        return Decoded.failure(f"cannot decode {value.type}: {exc}")


def _convert(value: xdr.SCVal, depth: int) -> Any:
    if depth > _MAX_DEPTH:
        raise ValueError("SCVal nesting too deep")

    kind = value.type
    if kind == xdr.SCValType.SCV_VOID:
        return None
    if kind == xdr.SCValType.SCV_BOOL:
        return scval.from_bool(value)
    if kind == xdr.SCValType.SCV_SYMBOL:
        return _text(scval.from_symbol(value))
    if kind == xdr.SCValType.SCV_STRING:
        return _text(scval.from_string(value))
    if kind == xdr.SCValType.SCV_ADDRESS:
        return scval.from_address(value).address
    if kind == xdr.SCValType.SCV_U32:
        return scval.from_uint32(value)
    if kind == xdr.SCValType.SCV_I32:
        return scval.from_int32(value)
    if kind == xdr.SCValType.SCV_U64:
        return scval.from_uint64(value)
    if kind == xdr.SCValType.SCV_I64:
        return scval.from_int64(value)
    if kind == xdr.SCValType.SCV_VEC:
        return [_convert(item, depth + 1) for item in scval.from_vec(value)]
    if kind == xdr.SCValType.SCV_MAP:
        return {
            _map_key(key, depth): _convert(item, depth + 1)
            for key, item in scval.from_map(value).items()
        }
    raise ValueError(f"unsupported SCVal type {kind}")


def _map_key(key: xdr.SCVal, depth: int) -> Any:
    native = _convert(key, depth + 1)
    if isinstance(native, (list, dict)):
        raise TypeError("unhashable SCVal map key")
    return native


def _text(raw: str | bytes) -> str:
    return raw.decode("utf-8") if isinstance(raw, bytes) else raw


def decode_symbol(value: Any) -> Decoded[str]:
    """A topic expected to be a symbol or string."""
    decoded = scval_to_native(value)
    if not decoded.ok:
        return decoded
    if not isinstance(decoded.value, str):
        return Decoded.failure(f"expected symbol, got {type(decoded.value).__name__}")
    return decoded


def decode_struct(value: Any, required: tuple[str, ...] = ()) -> Decoded[dict[str, Any]]:
    """An event ``value`` expected to be a map carrying *required* keys."""
    if value is None:
        return Decoded.failure("missing event value")
    decoded = scval_to_native(value)
    if not decoded.ok:
        return decoded
    data = decoded.value
    if not isinstance(data, dict):
        return Decoded.failure(f"expected map, got {type(data).__name__}")
    missing = [key for key in required if key not in data]
    if missing:
        return Decoded.failure(f"missing field(s) {', '.join(missing)}")
    return decoded
