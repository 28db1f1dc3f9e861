"""
Pool service: the entry point callers use to quote, swap and initialize.

Owns explicitly constructed collaborators (RPC, signer, builder, reader,
lifecycle manager); nothing here is a module-level singleton.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from ...providers.base import ChainRpc, ChainRpcError, Signer
from ..amm.math import quote_swap
from ..constants import INITIALIZE_POOL
from ..execution.account_lock import AccountLocks
from ..execution.errors import (
    DecodeFailedError,
    PoolAlreadyInitializedError,
    PoolSwapError,
    QueryFailedError,
)
from ..execution.lifecycle import Sleep, TransactionLifecycleManager
from ..execution.models import TransactionResult
from ..execution.tx_builder import TransactionBuilder
from .models import (
    PoolStatus,
    ReserveSnapshot,
    SwapDirection,
    SwapExecution,
    SwapQuote,
    SwapRequest,
)
from .reader import PoolStateReader

if TYPE_CHECKING:
    from ...config import Settings

logger = logging.getLogger(__name__)


class PoolService:
    """
    Quote and execute swaps against one pool contract.

    Usage:
        service = PoolService.from_settings(settings)
        quote = await service.quote(100, SwapDirection.A_TO_B)
        execution = await service.swap(SwapRequest.from_quote(quote, slippage_percent=1))
    """

    def __init__(
        self,
        rpc: ChainRpc,
        reader: PoolStateReader,
        manager: TransactionLifecycleManager,
    ) -> None:
        self.rpc = rpc
        self.reader = reader
        self.manager = manager

    @classmethod
    def create(
        cls,
        rpc: ChainRpc,
        signer: Optional[Signer],
        builder: TransactionBuilder,
        *,
        source_account: Optional[str] = None,
        poll_interval_seconds: float = 1.0,
        max_poll_attempts: int = 30,
        sleep: Sleep = asyncio.sleep,
    ) -> "PoolService":
        """Wire a reader and a lifecycle manager around shared collaborators."""
        source = source_account or (signer.public_key if signer else None)
        manager = TransactionLifecycleManager(
            rpc,
            signer,
            builder=builder,
            source_account=source,
            poll_interval_seconds=poll_interval_seconds,
            max_poll_attempts=max_poll_attempts,
            sleep=sleep,
            account_locks=AccountLocks(),
        )
        return cls(rpc, PoolStateReader(rpc, builder, source), manager)

    @classmethod
    def from_settings(
        cls,
        settings: Optional["Settings"] = None,
        *,
        rpc: Optional[ChainRpc] = None,
        signer: Optional[Signer] = None,
    ) -> "PoolService":
        """
        Build a service from configuration.

        The Soroban RPC adapter and the local keypair signer are used unless
        replacements are passed in. Without a secret key the service can
        still quote; executing raises SigningFailedError.
        """
        if settings is None:
            from ...config import settings

        if rpc is None:
            from ...providers.soroban import SorobanRpcProvider

            rpc = SorobanRpcProvider(
                settings.stellar_rpc_url,
                timeout_s=settings.rpc_timeout_seconds,
                max_retries=settings.rpc_max_retries,
            )

        if signer is None and settings.has_signing_key:
            from ...providers.signer import LocalKeypairSigner

            signer = LocalKeypairSigner(settings.test_secret_key)

        builder = TransactionBuilder(
            settings.contract_id,
            settings.network_passphrase,
            base_fee=settings.base_fee,
            contract_call_fee=settings.contract_call_fee,
            timeout_seconds=settings.tx_timeout_seconds,
        )

        return cls.create(
            rpc,
            signer,
            builder,
            source_account=settings.resolve_source_account(signer.public_key if signer else None),
            poll_interval_seconds=settings.poll_interval_seconds,
            max_poll_attempts=settings.max_poll_attempts,
        )

    @property
    def source_account(self) -> Optional[str]:
        return self.manager.source_account

    async def fetch_reserves(self) -> ReserveSnapshot:
        return await self.reader.fetch_reserves()

    async def quote(self, amount_in: float, direction: SwapDirection) -> SwapQuote:
        """
        Quote a swap against freshly fetched reserves.

        The input is floored to whole base units first, exactly as build_swap
        will send it, so the quote and any floor derived from it describe the
        amount the contract actually receives.

        Raises:
            ValueError: amount_in floors to less than one base unit
        """
        base_units = TransactionBuilder.to_base_units(amount_in)
        if base_units < 1:
            raise ValueError(f"amount_in must be at least 1 base unit, got {amount_in}")

        snapshot = await self.reader.fetch_reserves()
        return quote_swap(snapshot, direction, base_units)

    async def status(self) -> PoolStatus:
        """Report whether the contract answers and whether it has been seeded."""
        try:
            snapshot = await self.reader.fetch_reserves()
        except (QueryFailedError, DecodeFailedError) as e:
            logger.warning(f"Contract status check failed: {e}")
            return PoolStatus(exists=False, initialized=False)

        return PoolStatus(exists=True, initialized=snapshot.is_initialized, snapshot=snapshot)

    async def swap(self, request: SwapRequest) -> SwapExecution:
        """
        Execute a swap, then re-read the reserves.

        A failed refresh is logged and leaves snapshot_after empty; the swap
        itself already succeeded.
        """
        execution = await self.manager.execute_swap(request)

        try:
            snapshot = await self.reader.fetch_reserves()
        except PoolSwapError as e:
            logger.warning(f"Failed to refresh reserves after swap {execution.tx_hash}: {e}")
            return execution

        return replace(execution, snapshot_after=snapshot)

    async def initialize(self, reserve_a: int, reserve_b: int) -> TransactionResult:
        """
        Seed an uninitialized pool.

        Raises:
            PoolAlreadyInitializedError: the pool already holds state
        """
        snapshot = await self.reader.fetch_reserves()
        if snapshot.is_initialized:
            raise PoolAlreadyInitializedError(
                "Pool already initialized",
                entry_point=INITIALIZE_POOL,
                details={
                    "reserve_a": snapshot.reserve_a,
                    "reserve_b": snapshot.reserve_b,
                    "total_swaps": snapshot.total_swaps,
                },
            )

        return await self.manager.execute_initialize(reserve_a, reserve_b)

    async def native_balance(self) -> int:
        """Native balance of the source account, in stroops."""
        if not self.source_account:
            raise QueryFailedError("No source account configured")

        try:
            account = await self.rpc.get_account(self.source_account)
        except ChainRpcError as e:
            raise QueryFailedError(f"Failed to load account {self.source_account}: {e}") from e

        return account.balances.get("native", 0)

    async def close(self) -> None:
        await self.rpc.close()
