"""
Constant-product (x * y = k) pricing for a single two-reserve pool.

All functions are pure and total: degenerate inputs return 0 (or False)
instead of raising, so a half-loaded UI never sees an exception or a NaN.
Fees are not modelled; the deployed contract charges none.
"""

from __future__ import annotations

from typing import Union

from ..pool.models import ReserveSnapshot, SwapDirection, SwapQuote

Number = Union[int, float]


def output_amount(amount_in: Number, reserve_in: Number, reserve_out: Number) -> float:
    """
    Output of a swap: amount_in * reserve_out / (reserve_in + amount_in).

    Example: reserves 1000/1000, 100 in -> 90.909... out.
    The result approaches but never reaches reserve_out.
    """
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0

    return amount_in * reserve_out / (reserve_in + amount_in)


def price_impact_percent(amount_in: Number, reserve_in: Number, reserve_out: Number) -> float:
    """
    How far the swap moves the marginal price, as a percentage of the current price.

    current = reserve_out / reserve_in
    new     = (reserve_out - out) / (reserve_in + amount_in)
    impact  = 100 * (current - new) / current
    """
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0

    current_price = reserve_out / reserve_in
    amount_out = output_amount(amount_in, reserve_in, reserve_out)
    new_price = (reserve_out - amount_out) / (reserve_in + amount_in)

    return (current_price - new_price) / current_price * 100


def min_output_with_slippage(expected_output: Number, slippage_percent: Number) -> float:
    """
    Slippage floor: expected_output * (1 - slippage_percent / 100).

    Not clamped. Callers validate slippage_percent before calling.
    """
    return expected_output * (1 - slippage_percent / 100)


def exchange_rate(reserve_a: Number, reserve_b: Number) -> float:
    """Units of token B per unit of token A; 0 for an empty A reserve."""
    if reserve_a <= 0:
        return 0
    return reserve_b / reserve_a


def is_valid_swap(amount_in: Number, reserve_in: Number, reserve_out: Number) -> bool:
    """A swap is valid when it yields something without draining the output reserve."""
    if amount_in <= 0:
        return False

    amount_out = output_amount(amount_in, reserve_in, reserve_out)
    if amount_out <= 0:
        return False

    return amount_out < reserve_out


def quote_swap(snapshot: ReserveSnapshot, direction: SwapDirection, amount_in: Number) -> SwapQuote:
    """Price a swap against one snapshot."""
    reserve_in, reserve_out = snapshot.reserves_for(direction)
    return SwapQuote(
        direction=direction,
        amount_in=amount_in,
        amount_out=output_amount(amount_in, reserve_in, reserve_out),
        price_impact_percent=price_impact_percent(amount_in, reserve_in, reserve_out),
        exchange_rate=exchange_rate(reserve_in, reserve_out),
    )
