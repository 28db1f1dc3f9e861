"""Typed models for pool state, quotes and swap requests."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..constants import SWAP_A_FOR_B, SWAP_B_FOR_A


class SwapDirection(str, Enum):
    """Which reserve the trader pays into."""
    A_TO_B = "AtoB"
    B_TO_A = "BtoA"

    @property
    def entry_point(self) -> str:
        return SWAP_A_FOR_B if self is SwapDirection.A_TO_B else SWAP_B_FOR_A


@dataclass(frozen=True)
class ReserveSnapshot:
    """Pool state at one observation instant. Replaced, never mutated."""
    reserve_a: int
    reserve_b: int
    total_swaps: int

    def __post_init__(self):
        for name in ("reserve_a", "reserve_b", "total_swaps"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

    @classmethod
    def empty(cls) -> "ReserveSnapshot":
        return cls(reserve_a=0, reserve_b=0, total_swaps=0)

    @property
    def is_initialized(self) -> bool:
        return self.total_swaps > 0 or self.reserve_a > 0 or self.reserve_b > 0

    def reserves_for(self, direction: SwapDirection) -> Tuple[int, int]:
        """Return (reserve_in, reserve_out) for a swap in the given direction."""
        if direction is SwapDirection.A_TO_B:
            return self.reserve_a, self.reserve_b
        return self.reserve_b, self.reserve_a


def is_pool_uninitialized(snapshot: ReserveSnapshot) -> bool:
    """True when the pool has never been seeded; initialization is the only valid action."""
    return not snapshot.is_initialized


@dataclass(frozen=True)
class SwapQuote:
    """Client-side quote derived from a single snapshot and input amount."""
    direction: SwapDirection
    amount_in: float
    amount_out: float
    price_impact_percent: float
    exchange_rate: float


@dataclass(frozen=True)
class SwapRequest:
    """A swap the user confirmed. `min_amount_out` is the slippage floor."""
    direction: SwapDirection
    amount_in: float
    min_amount_out: float = 0

    def __post_init__(self):
        if not self.amount_in > 0:
            raise ValueError(f"amount_in must be positive, got {self.amount_in}")
        if self.min_amount_out < 0:
            raise ValueError(f"min_amount_out must be non-negative, got {self.min_amount_out}")

    @classmethod
    def from_quote(cls, quote: SwapQuote, slippage_percent: float) -> "SwapRequest":
        """
        Build a request whose floor is the quote minus the slippage tolerance.

        The floor is truncated to whole base units: the contract pays an
        integer, so a fractional floor above it could never be met. Slippage
        is validated here; the math helper does not clamp.
        """
        from ..amm.math import min_output_with_slippage

        if not 0 <= slippage_percent <= 100:
            raise ValueError(f"slippage_percent must be within [0, 100], got {slippage_percent}")

        return cls(
            direction=quote.direction,
            amount_in=quote.amount_in,
            min_amount_out=math.floor(min_output_with_slippage(quote.amount_out, slippage_percent)),
        )


@dataclass(frozen=True)
class SwapExecution:
    """Outcome of a swap that executed on-chain and passed the slippage check."""
    direction: SwapDirection
    amount_in: int
    amount_out: float
    min_amount_out: float
    tx_hash: str
    decoded: bool = True                        # False when the floor was used as a fallback
    snapshot_after: Optional[ReserveSnapshot] = None


@dataclass(frozen=True)
class PoolStatus:
    """Whether the contract answers queries and whether it holds liquidity."""
    exists: bool
    initialized: bool
    snapshot: Optional[ReserveSnapshot] = None
