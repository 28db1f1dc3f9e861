from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.execution.models import (
        AccountState,
        SignedOperation,
        SimulationResult,
        SubmitResult,
        TransactionStatusResponse,
        UnsignedOperation,
    )


class ChainRpcError(Exception):
    """The RPC could not be reached or answered with an error."""
    pass


class ChainRpc(ABC):
    """Chain RPC consumed by the pool client"""

    name: str

    @abstractmethod
    async def get_account(self, public_key: str) -> AccountState:
        """Look up an account's sequence number and balances"""
        pass

    @abstractmethod
    async def simulate(self, operation: UnsignedOperation) -> SimulationResult:
        """Dry-run an operation against current state"""
        pass

    @abstractmethod
    async def submit(self, signed: SignedOperation) -> SubmitResult:
        """Send a signed operation to the network"""
        pass

    @abstractmethod
    async def get_transaction(self, tx_hash: str) -> TransactionStatusResponse:
        """Look up a submitted transaction by hash"""
        pass

    async def close(self) -> None:
        """Release transport resources"""
        return None


class Signer(ABC):
    """Applies a signing credential to an assembled operation"""

    @property
    @abstractmethod
    def public_key(self) -> str:
        pass

    @abstractmethod
    async def sign(self, operation: UnsignedOperation) -> SignedOperation:
        pass
