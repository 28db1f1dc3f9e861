"""
Transaction Execution Layer

Provides the infrastructure for executing pool contract calls:
- TransactionBuilder: Builds unsigned swap, initialize and query operations
- TransactionLifecycleManager: simulate -> assemble -> sign -> submit -> poll
- AccountLocks: Serializes attempts per source account

Usage:
    from poolswap.core.execution import (
        TransactionBuilder,
        TransactionLifecycleManager,
    )

    builder = TransactionBuilder(contract_id, network_passphrase)
    manager = TransactionLifecycleManager(rpc, signer, builder=builder)

    execution = await manager.execute_swap(request)
"""

from .models import (
    AccountState,
    AttemptStatus,
    ChainTxStatus,
    SignedOperation,
    SimulationResult,
    SubmitResult,
    SubmitStatus,
    TransactionAttempt,
    TransactionResult,
    TransactionStatusResponse,
    TransactionType,
    UnsignedOperation,
)

from .errors import (
    ConfirmationTimeoutError,
    DecodeFailedError,
    ErrorCategory,
    ErrorContext,
    InvalidTransitionError,
    OnChainExecutionFailedError,
    PoolAlreadyInitializedError,
    PoolSwapError,
    QueryFailedError,
    SigningFailedError,
    SimulationFailedError,
    SlippageExceededError,
    SubmissionRejectedError,
)

from .account_lock import AccountLocks

from .tx_builder import TransactionBuilder

from .lifecycle import TransactionLifecycleManager

__all__ = [
    # Models
    "AccountState",
    "AttemptStatus",
    "ChainTxStatus",
    "SignedOperation",
    "SimulationResult",
    "SubmitResult",
    "SubmitStatus",
    "TransactionAttempt",
    "TransactionResult",
    "TransactionStatusResponse",
    "TransactionType",
    "UnsignedOperation",
    # Errors
    "ConfirmationTimeoutError",
    "DecodeFailedError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidTransitionError",
    "OnChainExecutionFailedError",
    "PoolAlreadyInitializedError",
    "PoolSwapError",
    "QueryFailedError",
    "SigningFailedError",
    "SimulationFailedError",
    "SlippageExceededError",
    "SubmissionRejectedError",
    # Builder / lifecycle
    "AccountLocks",
    "TransactionBuilder",
    "TransactionLifecycleManager",
]
