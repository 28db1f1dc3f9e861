"""Network and contract constants for the pool client."""

from __future__ import annotations

from typing import Dict

NETWORK_PASSPHRASES: Dict[str, str] = {
    "public": "Public Global Stellar Network ; September 2015",
    "testnet": "Test SDF Network ; September 2015",
    "futurenet": "Test SDF Future Network ; October 2022",
    "standalone": "Standalone Network ; February 2017",
}

# Contract entry points. Names must match the deployed contract exactly.
VIEW_POOL = "view_pool"
SWAP_A_FOR_B = "swap_a_for_b"
SWAP_B_FOR_A = "swap_b_for_a"
INITIALIZE_POOL = "initialize_pool"

# Field names of the LiquidityPool struct returned by view_pool
FIELD_RESERVE_A = "token_a_reserve"
FIELD_RESERVE_B = "token_b_reserve"
FIELD_TOTAL_SWAPS = "total_swaps"

# Fees in stroops
BASE_FEE = 100
CONTRACT_CALL_FEE = 100_000

# Built operations expire after this many seconds (about six ledger closes)
TX_TIMEOUT_SECONDS = 30

DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_MAX_POLL_ATTEMPTS = 30

INT128_MIN = -(2**127)
INT128_MAX = 2**127 - 1
