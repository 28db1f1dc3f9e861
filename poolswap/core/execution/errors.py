"""
Error taxonomy for pool queries and transaction attempts.

Every error is terminal for the attempt that raised it; nothing here is
retried automatically. Each carries an ErrorContext with the entry point,
the transaction hash once one exists, and the last status observed, so the
caller can choose between re-querying and re-submitting.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Where in the pipeline the failure happened."""

    QUERY = "query"
    SIMULATION = "simulation"
    SIGNING = "signing"
    SUBMISSION = "submission"
    ON_CHAIN = "on_chain"
    TIMEOUT = "timeout"
    SLIPPAGE = "slippage"
    DECODE = "decode"
    VALIDATION = "validation"


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory
    entry_point: Optional[str] = None
    tx_hash: Optional[str] = None
    last_status: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class PoolSwapError(Exception):
    """Base class for all pool client errors."""

    category: ErrorCategory = ErrorCategory.VALIDATION

    # Whether the chain outcome is known. False only for confirmation timeouts.
    outcome_known: bool = True

    # Whether funds moved on-chain. None when that is unknown.
    funds_moved: Optional[bool] = False

    def __init__(
        self,
        message: str,
        *,
        entry_point: Optional[str] = None,
        tx_hash: Optional[str] = None,
        last_status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = ErrorContext(
            category=self.category,
            entry_point=entry_point,
            tx_hash=tx_hash,
            last_status=last_status,
            details=details or {},
        )

    @property
    def tx_hash(self) -> Optional[str]:
        return self.context.tx_hash

    @property
    def entry_point(self) -> Optional[str]:
        return self.context.entry_point

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "entry_point": self.context.entry_point,
            "tx_hash": self.context.tx_hash,
            "last_status": self.context.last_status,
            "outcome_known": self.outcome_known,
            "funds_moved": self.funds_moved,
            "details": self.context.details,
        }


class QueryFailedError(PoolSwapError):
    """The read-only pool query could not be simulated."""

    category = ErrorCategory.QUERY


class SimulationFailedError(PoolSwapError):
    """The backend reported that simulating the operation did not succeed."""

    category = ErrorCategory.SIMULATION


class SigningFailedError(PoolSwapError):
    """No signing credential is available, or signing raised."""

    category = ErrorCategory.SIGNING


class SubmissionRejectedError(PoolSwapError):
    """The network refused the signed operation outright."""

    category = ErrorCategory.SUBMISSION


class OnChainExecutionFailedError(PoolSwapError):
    """The transaction was included but failed during execution."""

    category = ErrorCategory.ON_CHAIN


class ConfirmationTimeoutError(PoolSwapError):
    """
    The transaction was not seen within the allowed status checks.

    The outcome is unknown: it may still confirm. Re-query by hash
    rather than assuming nothing moved.
    """

    category = ErrorCategory.TIMEOUT
    outcome_known = False
    funds_moved = None


class SlippageExceededError(PoolSwapError):
    """
    The swap succeeded on-chain but paid out less than the requested minimum.

    Funds have moved. Surface this as "executed below your minimum",
    not as a failed transaction.
    """

    category = ErrorCategory.SLIPPAGE
    funds_moved = True

    def __init__(self, amount_out: float, min_amount_out: float, **kwargs: Any):
        super().__init__(
            f"Slippage exceeded: expected at least {min_amount_out}, got {amount_out}",
            **kwargs,
        )
        self.amount_out = amount_out
        self.min_amount_out = min_amount_out
        self.context.details.setdefault("amount_out", amount_out)
        self.context.details.setdefault("min_amount_out", min_amount_out)


class DecodeFailedError(PoolSwapError):
    """A contract return value did not have the expected shape."""

    category = ErrorCategory.DECODE


class PoolAlreadyInitializedError(PoolSwapError):
    """Initialization was requested for a pool that already holds state."""

    category = ErrorCategory.VALIDATION


class InvalidTransitionError(Exception):
    """Attempted an attempt-status transition the lifecycle does not allow."""

    def __init__(self, from_status: Any, to_status: Any):
        super().__init__(f"Invalid transition from {from_status.value} to {to_status.value}")
        self.from_status = from_status
        self.to_status = to_status
