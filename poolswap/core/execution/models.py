"""
Transaction execution models and types.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from .errors import InvalidTransitionError


class TransactionType(str, Enum):
    """Types of contract invocations."""
    QUERY = "query"
    SWAP = "swap"
    INITIALIZE = "initialize"


class AttemptStatus(str, Enum):
    """Lifecycle of one submission attempt."""
    BUILT = "built"              # Unsigned operation constructed
    SIMULATED = "simulated"      # Dry run succeeded
    ASSEMBLED = "assembled"      # Resource data merged in
    SIGNED = "signed"
    SUBMITTED = "submitted"      # Accepted by the RPC
    PENDING = "pending"          # Polling for inclusion
    SUCCESS = "success"
    FAILED = "failed"
    TIMED_OUT = "timed_out"      # Outcome unknown


class ChainTxStatus(str, Enum):
    """Status reported by the RPC for a submitted transaction hash."""
    NOT_FOUND = "NOT_FOUND"
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class SubmitStatus(str, Enum):
    """Immediate answer to a submission."""
    PENDING = "PENDING"
    DUPLICATE = "DUPLICATE"
    TRY_AGAIN_LATER = "TRY_AGAIN_LATER"
    ERROR = "ERROR"


@dataclass
class AccountState:
    """Source account as seen by the chain."""
    account_id: str
    sequence: int
    balances: Dict[str, int] = field(default_factory=dict)   # asset -> stroops


@dataclass(frozen=True)
class UnsignedOperation:
    """A single contract invocation, ready to simulate."""
    tx_id: str                                  # Internal tracking ID
    tx_type: TransactionType
    source_account: str
    sequence: int                               # Current account sequence; the envelope uses +1
    contract_id: str
    function_name: str
    args: tuple = ()                            # int128 arguments, in order
    network_passphrase: str = ""
    base_fee: int = 100
    valid_until: int = 0                        # Unix time upper bound; 0 means unbounded

    # Filled in by assemble()
    soroban_data: Optional[str] = None          # SorobanTransactionData XDR (base64)
    resource_fee: int = 0
    auth: tuple = ()                            # SorobanAuthorizationEntry XDR (base64)

    @property
    def is_assembled(self) -> bool:
        return self.soroban_data is not None

    def assemble(self, simulation: "SimulationResult") -> "UnsignedOperation":
        """Return a copy carrying the simulation's resource footprint and fee."""
        return replace(
            self,
            soroban_data=simulation.transaction_data,
            resource_fee=simulation.min_resource_fee,
            auth=tuple(simulation.auth),
        )


@dataclass(frozen=True)
class SignedOperation:
    """A signed transaction envelope."""
    tx_id: str
    envelope_xdr: str
    tx_hash: Optional[str] = None


@dataclass
class SimulationResult:
    """Answer to a simulation request."""
    success: bool
    return_value: Any = None                    # Native Python value of the SCVal
    transaction_data: Optional[str] = None
    min_resource_fee: int = 0
    auth: List[str] = field(default_factory=list)
    error: Optional[str] = None
    latest_ledger: Optional[int] = None


@dataclass
class SubmitResult:
    """Answer to a submission."""
    tx_hash: str
    status: SubmitStatus
    error_result: Optional[str] = None


@dataclass
class TransactionStatusResponse:
    """Answer to a status lookup by hash."""
    status: ChainTxStatus
    return_value: Any = None
    ledger: Optional[int] = None
    error: Optional[str] = None


@dataclass
class TransactionResult:
    """A transaction that reached SUCCESS."""
    tx_id: str
    tx_hash: str
    status: AttemptStatus = AttemptStatus.SUCCESS
    return_value: Any = None
    ledger: Optional[int] = None
    poll_count: int = 0


@dataclass
class TransactionAttempt:
    """
    Mutable state of one submission, owned by a single lifecycle run.

    Discarded when the run ends; never shared between attempts.
    """
    operation: UnsignedOperation
    status: AttemptStatus = AttemptStatus.BUILT
    simulation: Optional[SimulationResult] = None
    signed: Optional[SignedOperation] = None
    submission_hash: Optional[str] = None
    last_chain_status: Optional[str] = None
    poll_count: int = 0
    error: Optional[str] = None
    history: List[AttemptStatus] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    TRANSITIONS = {
        AttemptStatus.BUILT: {AttemptStatus.SIMULATED, AttemptStatus.FAILED},
        AttemptStatus.SIMULATED: {AttemptStatus.ASSEMBLED, AttemptStatus.FAILED},
        AttemptStatus.ASSEMBLED: {AttemptStatus.SIGNED, AttemptStatus.FAILED},
        AttemptStatus.SIGNED: {AttemptStatus.SUBMITTED, AttemptStatus.FAILED},
        AttemptStatus.SUBMITTED: {AttemptStatus.PENDING, AttemptStatus.FAILED},
        AttemptStatus.PENDING: {
            AttemptStatus.SUCCESS,
            AttemptStatus.FAILED,
            AttemptStatus.TIMED_OUT,
        },
        AttemptStatus.SUCCESS: set(),
        AttemptStatus.FAILED: set(),
        AttemptStatus.TIMED_OUT: set(),
    }

    @property
    def is_terminal(self) -> bool:
        return not self.TRANSITIONS[self.status]

    def allowed_transitions(self) -> Set[AttemptStatus]:
        return self.TRANSITIONS[self.status]

    def transition_to(self, status: AttemptStatus) -> None:
        if status not in self.TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.status, status)
        self.history.append(self.status)
        self.status = status
