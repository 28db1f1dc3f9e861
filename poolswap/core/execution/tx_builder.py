"""
Transaction builder for pool contract invocations.
"""

import math
import secrets
import time
from typing import Callable, Optional, Sequence

from ..constants import (
    BASE_FEE,
    CONTRACT_CALL_FEE,
    INITIALIZE_POOL,
    TX_TIMEOUT_SECONDS,
    VIEW_POOL,
)
from ..pool.models import SwapRequest
from .models import AccountState, TransactionType, UnsignedOperation
from .scval import to_int128


class TransactionBuilder:
    """
    Builds unsigned pool operations.

    Handles:
    - Swaps in either direction
    - Pool initialization
    - The read-only pool query

    Every operation carries a validity window so a stale unsigned
    operation cannot be submitted later.
    """

    def __init__(
        self,
        contract_id: str,
        network_passphrase: str,
        *,
        base_fee: int = BASE_FEE,
        contract_call_fee: int = CONTRACT_CALL_FEE,
        timeout_seconds: int = TX_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.contract_id = contract_id
        self.network_passphrase = network_passphrase
        self.base_fee = base_fee
        self.contract_call_fee = contract_call_fee
        self.timeout_seconds = timeout_seconds
        self._clock = clock

    @staticmethod
    def generate_tx_id() -> str:
        """Generate a unique transaction ID."""
        return f"tx_{secrets.token_hex(16)}"

    @staticmethod
    def to_base_units(amount: float) -> int:
        """
        Truncate an amount to whole base units.

        Lossy on purpose: the ledger amount type is integral and fractional
        input is floored, never rounded up.
        """
        if isinstance(amount, float) and not math.isfinite(amount):
            raise ValueError(f"Amount must be finite, got {amount}")
        return int(math.floor(amount))

    def _build(
        self,
        tx_type: TransactionType,
        account: AccountState,
        function_name: str,
        args: Sequence[int] = (),
        fee: Optional[int] = None,
    ) -> UnsignedOperation:
        return UnsignedOperation(
            tx_id=self.generate_tx_id(),
            tx_type=tx_type,
            source_account=account.account_id,
            sequence=account.sequence,
            contract_id=self.contract_id,
            function_name=function_name,
            args=tuple(to_int128(arg) for arg in args),
            network_passphrase=self.network_passphrase,
            base_fee=fee if fee is not None else self.contract_call_fee,
            valid_until=int(self._clock()) + self.timeout_seconds,
        )

    def build_swap(self, request: SwapRequest, account: AccountState) -> UnsignedOperation:
        """
        Build a swap_a_for_b / swap_b_for_a invocation.

        Args:
            request: The confirmed swap request
            account: Source account state (sequence number)

        Returns:
            UnsignedOperation ready to simulate

        Raises:
            ValueError: amount_in floors to less than one base unit
            OverflowError: amount_in does not fit int128
        """
        amount_in = self.to_base_units(request.amount_in)
        if amount_in < 1:
            raise ValueError(f"amount_in must be at least 1 base unit, got {request.amount_in}")

        return self._build(
            TransactionType.SWAP,
            account,
            request.direction.entry_point,
            [amount_in],
        )

    def build_initialize(
        self,
        reserve_a: int,
        reserve_b: int,
        account: AccountState,
    ) -> UnsignedOperation:
        """Build the one-time initialize_pool invocation seeding both reserves."""
        for name, amount in (("reserve_a", reserve_a), ("reserve_b", reserve_b)):
            if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
                raise ValueError(f"{name} must be a positive integer, got {amount!r}")

        return self._build(
            TransactionType.INITIALIZE,
            account,
            INITIALIZE_POOL,
            [reserve_a, reserve_b],
        )

    def build_view_pool(self, account: AccountState) -> UnsignedOperation:
        """Build the read-only view_pool query. Only ever simulated."""
        return self._build(TransactionType.QUERY, account, VIEW_POOL, fee=self.base_fee)
