"""Reads the pool's reserves through a simulated view_pool call."""

from __future__ import annotations

import logging
from typing import Optional

from ...providers.base import ChainRpc, ChainRpcError
from ..constants import VIEW_POOL
from ..execution.errors import DecodeFailedError, QueryFailedError
from ..execution.scval import decode_pool_state
from ..execution.tx_builder import TransactionBuilder
from .models import ReserveSnapshot

logger = logging.getLogger(__name__)


class PoolStateReader:
    """
    Fetch ReserveSnapshots from the pool contract.

    The query is only ever simulated, never submitted, so it is free,
    has no side effects and may run concurrently with anything else.
    """

    def __init__(
        self,
        rpc: ChainRpc,
        builder: TransactionBuilder,
        source_account: Optional[str],
    ) -> None:
        self.rpc = rpc
        self.builder = builder
        self.source_account = source_account

    async def fetch_reserves(self) -> ReserveSnapshot:
        """
        Return the current reserves.

        An uninitialized pool is a valid all-zero snapshot, not an error.

        Raises:
            QueryFailedError: the account lookup or the simulation failed
            DecodeFailedError: the contract returned something other than the pool struct
        """
        if not self.source_account:
            raise QueryFailedError("No source account configured for pool queries", entry_point=VIEW_POOL)

        try:
            account = await self.rpc.get_account(self.source_account)
            operation = self.builder.build_view_pool(account)
            simulation = await self.rpc.simulate(operation)
        except ChainRpcError as exc:
            logger.error(f"Error fetching pool reserves: {exc}")
            raise QueryFailedError(f"Failed to fetch pool data: {exc}", entry_point=VIEW_POOL) from exc

        if not simulation.success:
            logger.error(f"Pool query simulation failed: {simulation.error}")
            raise QueryFailedError(
                f"Contract simulation failed: {simulation.error or 'unknown error'}",
                entry_point=VIEW_POOL,
                details={"simulation_error": simulation.error},
            )

        if simulation.return_value is None:
            raise DecodeFailedError("No result returned from contract", entry_point=VIEW_POOL)

        snapshot = decode_pool_state(simulation.return_value, entry_point=VIEW_POOL)
        logger.debug(
            f"Pool reserves: A={snapshot.reserve_a} B={snapshot.reserve_b} swaps={snapshot.total_swaps}"
        )
        return snapshot
