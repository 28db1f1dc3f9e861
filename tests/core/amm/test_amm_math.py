"""
Tests for constant-product pricing.
"""

import pytest

from poolswap.core.amm.math import (
    exchange_rate,
    is_valid_swap,
    min_output_with_slippage,
    output_amount,
    price_impact_percent,
    quote_swap,
)
from poolswap.core.pool.models import ReserveSnapshot, SwapDirection


RESERVE_PAIRS = [(1, 1), (1000, 1000), (1000, 2000), (5_000_000, 3), (10**18, 10**12)]
AMOUNTS = [1e-6, 0.5, 1, 100, 10_000, 10**9]


# =============================================================================
# output_amount
# =============================================================================

class TestOutputAmount:

    def test_reference_scenario(self):
        """1000/1000 pool, 100 in -> 100000 / 1100."""
        assert output_amount(100, 1000, 1000) == pytest.approx(90.909090909, rel=1e-9)

    @pytest.mark.parametrize("reserve_in,reserve_out", RESERVE_PAIRS)
    @pytest.mark.parametrize("amount_in", AMOUNTS)
    def test_never_drains_pool(self, amount_in, reserve_in, reserve_out):
        assert output_amount(amount_in, reserve_in, reserve_out) < reserve_out

    @pytest.mark.parametrize("reserve_in,reserve_out", RESERVE_PAIRS)
    def test_monotonic_in_amount(self, reserve_in, reserve_out):
        outputs = [output_amount(a, reserve_in, reserve_out) for a in sorted(AMOUNTS)]
        assert outputs == sorted(outputs)

    @pytest.mark.parametrize(
        "args",
        [(0, 1000, 1000), (100, 0, 1000), (100, 1000, 0), (-5, 1000, 1000), (100, -1, 1000)],
    )
    def test_degenerate_inputs_return_zero(self, args):
        assert output_amount(*args) == 0


# =============================================================================
# price_impact_percent
# =============================================================================

class TestPriceImpact:

    def test_reference_scenario_derived_from_formula(self):
        amount_in, reserve_in, reserve_out = 100, 1000, 1000
        out = output_amount(amount_in, reserve_in, reserve_out)
        current = reserve_out / reserve_in
        new = (reserve_out - out) / (reserve_in + amount_in)
        expected = 100 * (current - new) / current

        assert price_impact_percent(amount_in, reserve_in, reserve_out) == pytest.approx(expected)
        # roughly 17.36%: 1 - (909.09 / 1100)
        assert 17 < expected < 18

    @pytest.mark.parametrize("reserve_in,reserve_out", RESERVE_PAIRS)
    @pytest.mark.parametrize("amount_in", AMOUNTS)
    def test_never_negative(self, amount_in, reserve_in, reserve_out):
        assert price_impact_percent(amount_in, reserve_in, reserve_out) >= 0

    def test_grows_with_size(self):
        small = price_impact_percent(1, 1000, 1000)
        large = price_impact_percent(500, 1000, 1000)
        assert small < large

    @pytest.mark.parametrize("args", [(0, 1000, 1000), (100, 0, 1000), (100, 1000, 0)])
    def test_degenerate_inputs_return_zero(self, args):
        assert price_impact_percent(*args) == 0


# =============================================================================
# Slippage, exchange rate, validity
# =============================================================================

def test_min_output_with_slippage_exact_values():
    assert min_output_with_slippage(100, 1) == 99
    assert min_output_with_slippage(100, 0) == 100


def test_min_output_with_slippage_is_not_clamped():
    assert min_output_with_slippage(100, 150) == pytest.approx(-50)
    assert min_output_with_slippage(100, -10) == pytest.approx(110)


def test_exchange_rate():
    assert exchange_rate(1000, 2000) == 2
    assert exchange_rate(0, 2000) == 0
    assert exchange_rate(-1, 2000) == 0


class TestIsValidSwap:

    def test_rejects_non_positive_input(self):
        assert is_valid_swap(0, 1000, 1000) is False
        assert is_valid_swap(-1, 1000, 1000) is False

    def test_accepts_ordinary_swap(self):
        assert is_valid_swap(100, 1000, 1000) is True

    def test_rejects_empty_pool(self):
        assert is_valid_swap(100, 0, 0) is False
        assert is_valid_swap(100, 1000, 0) is False

    def test_uses_real_input_reserve(self):
        """
        Validity depends on the actual input-side reserve, not a fixed stand-in.

        With a tiny input reserve and a huge input the float result rounds up
        to the whole output reserve; a stand-in reserve of 1000 would call it valid.
        """
        assert is_valid_swap(1e17, 1e-3, 1) is False
        assert is_valid_swap(1e17, 1000, 1) is True


def test_quote_swap_uses_direction_reserves():
    snapshot = ReserveSnapshot(reserve_a=1000, reserve_b=2000, total_swaps=3)

    a_to_b = quote_swap(snapshot, SwapDirection.A_TO_B, 100)
    b_to_a = quote_swap(snapshot, SwapDirection.B_TO_A, 100)

    assert a_to_b.amount_out == pytest.approx(output_amount(100, 1000, 2000))
    assert a_to_b.exchange_rate == 2
    assert b_to_a.amount_out == pytest.approx(output_amount(100, 2000, 1000))
    assert b_to_a.exchange_rate == 0.5
    assert a_to_b.price_impact_percent == pytest.approx(price_impact_percent(100, 1000, 2000))
