"""
Pool state and swap value types.

The reader and the service live in `poolswap.core.pool.reader` and
`poolswap.core.pool.service`; import them from there.
"""

from .models import (
    PoolStatus,
    ReserveSnapshot,
    SwapDirection,
    SwapExecution,
    SwapQuote,
    SwapRequest,
    is_pool_uninitialized,
)

__all__ = [
    "PoolStatus",
    "ReserveSnapshot",
    "SwapDirection",
    "SwapExecution",
    "SwapQuote",
    "SwapRequest",
    "is_pool_uninitialized",
]
