"""
Transaction lifecycle manager.

Drives one operation through the full submission lifecycle:
- Simulation (dry run, resource estimate)
- Assembly with the simulation's resource data
- Signing
- Submission
- Polling until the transaction is found or the status checks run out

Each step waits for the previous network call; nothing is retried
automatically. A caller that wants to retry starts a new attempt.
"""

import asyncio
import logging
from contextlib import nullcontext
from typing import Any, Awaitable, Callable, Optional

import structlog

from ...providers.base import ChainRpc, ChainRpcError, Signer
from ..constants import DEFAULT_MAX_POLL_ATTEMPTS, DEFAULT_POLL_INTERVAL_SECONDS
from ..pool.models import SwapExecution, SwapRequest
from .account_lock import AccountLocks
from .errors import (
    ConfirmationTimeoutError,
    DecodeFailedError,
    OnChainExecutionFailedError,
    PoolSwapError,
    QueryFailedError,
    SigningFailedError,
    SimulationFailedError,
    SlippageExceededError,
    SubmissionRejectedError,
)
from .models import (
    AccountState,
    AttemptStatus,
    ChainTxStatus,
    SubmitStatus,
    TransactionAttempt,
    TransactionResult,
    TransactionStatusResponse,
    UnsignedOperation,
)
from .scval import decode_integer
from .tx_builder import TransactionBuilder


logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

_IN_FLIGHT = {ChainTxStatus.NOT_FOUND, ChainTxStatus.PENDING}
_ACCEPTED = {SubmitStatus.PENDING, SubmitStatus.DUPLICATE}


class TransactionLifecycleManager:
    """
    Executes pool operations on a Soroban network.

    Responsibilities:
    - Simulate, assemble, sign and submit an operation
    - Poll for the final status at a fixed interval
    - Decode swap output and enforce the slippage floor
    - Serialize attempts per source account

    Usage:
        manager = TransactionLifecycleManager(rpc, signer, builder=builder)
        execution = await manager.execute_swap(request)
    """

    def __init__(
        self,
        rpc: ChainRpc,
        signer: Optional[Signer],
        *,
        builder: TransactionBuilder,
        source_account: Optional[str] = None,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_poll_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS,
        sleep: Sleep = asyncio.sleep,
        account_locks: Optional[AccountLocks] = None,
    ):
        if max_poll_attempts < 1:
            raise ValueError("max_poll_attempts must be at least 1")

        self.rpc = rpc
        self.signer = signer
        self.builder = builder
        self.source_account = source_account or (signer.public_key if signer else None)
        self.poll_interval_seconds = poll_interval_seconds
        self.max_poll_attempts = max_poll_attempts
        self.account_locks = account_locks if account_locks is not None else AccountLocks()
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Pool operations
    # ------------------------------------------------------------------

    async def execute_swap(
        self,
        request: SwapRequest,
        account: Optional[AccountState] = None,
    ) -> SwapExecution:
        """
        Execute a swap and check the realized output against the request's floor.

        Args:
            request: The confirmed swap request
            account: Source account state; looked up when omitted

        Returns:
            SwapExecution with the realized output

        Raises:
            SlippageExceededError: executed on-chain below min_amount_out
            PoolSwapError: any other terminal lifecycle failure
        """
        async with self._hold(account):
            account = account or await self._load_account()
            operation = self.builder.build_swap(request, account)
            result = await self.execute(operation)

        entry_point = operation.function_name

        if result.return_value is None:
            logger.warning(
                f"Could not decode output of {entry_point} ({result.tx_hash}); "
                f"reporting requested minimum {request.min_amount_out}"
            )
            amount_out = request.min_amount_out
            decoded = False
        else:
            try:
                amount_out = decode_integer(result.return_value, entry_point=entry_point)
            except DecodeFailedError as e:
                e.context.tx_hash = result.tx_hash
                e.context.last_status = ChainTxStatus.SUCCESS.value
                raise
            decoded = True

        if amount_out < request.min_amount_out:
            logger.warning(
                f"Swap {result.tx_hash} executed below minimum: "
                f"got {amount_out}, expected at least {request.min_amount_out}"
            )
            raise SlippageExceededError(
                amount_out,
                request.min_amount_out,
                entry_point=entry_point,
                tx_hash=result.tx_hash,
                last_status=ChainTxStatus.SUCCESS.value,
            )

        logger.info(f"Swap successful: {operation.args[0]} in, {amount_out} out ({result.tx_hash})")

        return SwapExecution(
            direction=request.direction,
            amount_in=operation.args[0],
            amount_out=amount_out,
            min_amount_out=request.min_amount_out,
            tx_hash=result.tx_hash,
            decoded=decoded,
        )

    async def execute_initialize(
        self,
        reserve_a: int,
        reserve_b: int,
        account: Optional[AccountState] = None,
    ) -> TransactionResult:
        """Seed the pool's reserves. The contract rejects a second initialization."""
        async with self._hold(account):
            account = account or await self._load_account()
            operation = self.builder.build_initialize(reserve_a, reserve_b, account)
            result = await self.execute(operation)

        logger.info(f"Pool initialized with reserves {reserve_a}/{reserve_b} ({result.tx_hash})")
        return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def execute(self, operation: UnsignedOperation) -> TransactionResult:
        """
        Run one attempt: simulate -> assemble -> sign -> submit -> poll.

        Returns:
            TransactionResult once the chain reports SUCCESS

        Raises:
            SimulationFailedError, SigningFailedError, SubmissionRejectedError,
            OnChainExecutionFailedError, ConfirmationTimeoutError
        """
        attempt = TransactionAttempt(operation=operation)

        with structlog.contextvars.bound_contextvars(
            tx_id=operation.tx_id,
            entry_point=operation.function_name,
        ):
            await self._simulate(attempt)
            self._assemble(attempt)
            await self._sign(attempt)
            await self._submit(attempt)
            return await self._poll(attempt)

    async def _simulate(self, attempt: TransactionAttempt) -> None:
        operation = attempt.operation
        logger.info(f"Simulating {operation.function_name} ({operation.tx_id})")

        try:
            simulation = await self.rpc.simulate(operation)
        except ChainRpcError as e:
            raise self._fail(
                attempt,
                SimulationFailedError(
                    f"Simulation request failed: {e}",
                    entry_point=operation.function_name,
                ),
            ) from e

        if not simulation.success:
            raise self._fail(
                attempt,
                SimulationFailedError(
                    f"Transaction simulation failed: {simulation.error or 'unknown error'}",
                    entry_point=operation.function_name,
                    details={"simulation_error": simulation.error},
                ),
            )

        attempt.simulation = simulation
        attempt.transition_to(AttemptStatus.SIMULATED)

    def _assemble(self, attempt: TransactionAttempt) -> None:
        attempt.operation = attempt.operation.assemble(attempt.simulation)
        attempt.transition_to(AttemptStatus.ASSEMBLED)

    async def _sign(self, attempt: TransactionAttempt) -> None:
        operation = attempt.operation

        if self.signer is None:
            raise self._fail(
                attempt,
                SigningFailedError(
                    "No signing credential available",
                    entry_point=operation.function_name,
                ),
            )

        try:
            attempt.signed = await self.signer.sign(operation)
        except Exception as e:
            raise self._fail(
                attempt,
                SigningFailedError(
                    f"Signing failed: {e}",
                    entry_point=operation.function_name,
                ),
            ) from e

        attempt.transition_to(AttemptStatus.SIGNED)

    async def _submit(self, attempt: TransactionAttempt) -> None:
        operation = attempt.operation
        logger.info(f"Submitting {operation.function_name} ({operation.tx_id})")

        try:
            response = await self.rpc.submit(attempt.signed)
        except ChainRpcError as e:
            raise self._fail(
                attempt,
                SubmissionRejectedError(
                    f"Transaction submission failed: {e}",
                    entry_point=operation.function_name,
                    tx_hash=attempt.signed.tx_hash,
                ),
            ) from e

        if response.status not in _ACCEPTED:
            raise self._fail(
                attempt,
                SubmissionRejectedError(
                    f"Transaction submission failed: {response.error_result or response.status.value}",
                    entry_point=operation.function_name,
                    tx_hash=response.tx_hash or None,
                    last_status=response.status.value,
                    details={"error_result": response.error_result},
                ),
            )

        attempt.submission_hash = response.tx_hash
        attempt.last_chain_status = response.status.value
        attempt.transition_to(AttemptStatus.SUBMITTED)
        logger.info(f"Transaction submitted, hash: {response.tx_hash}")

    async def _poll(self, attempt: TransactionAttempt) -> TransactionResult:
        operation = attempt.operation
        tx_hash = attempt.submission_hash
        attempt.transition_to(AttemptStatus.PENDING)

        response: Optional[TransactionStatusResponse] = None

        while attempt.poll_count < self.max_poll_attempts:
            if attempt.poll_count > 0:
                await self._sleep(self.poll_interval_seconds)
            attempt.poll_count += 1

            try:
                response = await self.rpc.get_transaction(tx_hash)
            except ChainRpcError as e:
                logger.warning(f"Error checking transaction status: {e}")
                continue

            attempt.last_chain_status = response.status.value
            if response.status not in _IN_FLIGHT:
                break

            logger.debug(f"Polling attempt {attempt.poll_count}/{self.max_poll_attempts}...")

        if response is not None and response.status == ChainTxStatus.SUCCESS:
            attempt.transition_to(AttemptStatus.SUCCESS)
            logger.info(f"Transaction confirmed: {tx_hash} (ledger {response.ledger})")
            return TransactionResult(
                tx_id=operation.tx_id,
                tx_hash=tx_hash,
                return_value=response.return_value,
                ledger=response.ledger,
                poll_count=attempt.poll_count,
            )

        if response is not None and response.status == ChainTxStatus.FAILED:
            raise self._fail(
                attempt,
                OnChainExecutionFailedError(
                    f"Transaction failed on chain: {response.error or 'no result details'}",
                    entry_point=operation.function_name,
                    tx_hash=tx_hash,
                    last_status=response.status.value,
                    details={"ledger": response.ledger},
                ),
            )

        raise self._fail(
            attempt,
            ConfirmationTimeoutError(
                f"Transaction {tx_hash} not confirmed after {attempt.poll_count} status checks; "
                "it may still land, re-query by hash",
                entry_point=operation.function_name,
                tx_hash=tx_hash,
            ),
            status=AttemptStatus.TIMED_OUT,
        )

    def _fail(
        self,
        attempt: TransactionAttempt,
        error: PoolSwapError,
        status: AttemptStatus = AttemptStatus.FAILED,
    ) -> PoolSwapError:
        """Move the attempt to a terminal status and hand back the error to raise."""
        if error.context.tx_hash is None:
            error.context.tx_hash = attempt.submission_hash
        if error.context.last_status is None:
            error.context.last_status = attempt.last_chain_status or attempt.status.value
        error.context.details.setdefault("attempt_status", attempt.status.value)
        error.context.details.setdefault("poll_count", attempt.poll_count)

        attempt.error = error.message
        attempt.transition_to(status)
        logger.error(f"{attempt.operation.function_name} attempt {attempt.operation.tx_id} failed: {error.message}")
        return error

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _hold(self, account: Optional[AccountState]):
        account_id = account.account_id if account else self.source_account
        if account_id is None:
            return nullcontext()
        return self.account_locks.hold(account_id)

    async def _load_account(self) -> AccountState:
        if not self.source_account:
            raise SigningFailedError("No source account or signing credential configured")
        try:
            return await self.rpc.get_account(self.source_account)
        except ChainRpcError as e:
            raise QueryFailedError(f"Failed to load account {self.source_account}: {e}") from e
