"""
Encoding of contract arguments and decoding of contract return values.

Arguments are range-checked against the contract's i128 type here; the
RPC adapter does the XDR encoding. Return values arrive from the adapter
as native Python values (int, dict, None); the decoders here check their
shape explicitly and raise DecodeFailedError otherwise.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..constants import (
    FIELD_RESERVE_A,
    FIELD_RESERVE_B,
    FIELD_TOTAL_SWAPS,
    INT128_MAX,
    INT128_MIN,
)
from ..pool.models import ReserveSnapshot
from .errors import DecodeFailedError


def to_int128(value: int) -> int:
    """Validate that value fits the contract's i128 argument type."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"int128 arguments must be int, got {type(value).__name__}")
    if not INT128_MIN <= value <= INT128_MAX:
        raise OverflowError(f"{value} is outside the int128 range")
    return value


def decode_integer(value: Any, *, entry_point: str | None = None) -> int:
    """Decode a scalar integer return value (i128/u64 on the contract side)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeFailedError(
            f"Expected an integer return value, got {type(value).__name__}",
            entry_point=entry_point,
            details={"value": repr(value)},
        )
    return value


def decode_pool_state(value: Any, *, entry_point: str | None = None) -> ReserveSnapshot:
    """Decode the LiquidityPool struct returned by view_pool."""
    if not isinstance(value, Mapping):
        raise DecodeFailedError(
            f"Expected a struct from {entry_point or 'pool query'}, got {type(value).__name__}",
            entry_point=entry_point,
            details={"value": repr(value)},
        )

    missing = [name for name in (FIELD_RESERVE_A, FIELD_RESERVE_B, FIELD_TOTAL_SWAPS) if name not in value]
    if missing:
        raise DecodeFailedError(
            f"Pool struct is missing fields: {', '.join(missing)}",
            entry_point=entry_point,
            details={"fields": sorted(str(key) for key in value)},
        )

    reserve_a = decode_integer(value[FIELD_RESERVE_A], entry_point=entry_point)
    reserve_b = decode_integer(value[FIELD_RESERVE_B], entry_point=entry_point)
    total_swaps = decode_integer(value[FIELD_TOTAL_SWAPS], entry_point=entry_point)

    try:
        return ReserveSnapshot(reserve_a=reserve_a, reserve_b=reserve_b, total_swaps=total_swaps)
    except ValueError as exc:
        raise DecodeFailedError(str(exc), entry_point=entry_point) from exc
