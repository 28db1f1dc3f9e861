from .math import (
    exchange_rate,
    is_valid_swap,
    min_output_with_slippage,
    output_amount,
    price_impact_percent,
    quote_swap,
)

__all__ = [
    "exchange_rate",
    "is_valid_swap",
    "min_output_with_slippage",
    "output_amount",
    "price_impact_percent",
    "quote_swap",
]
