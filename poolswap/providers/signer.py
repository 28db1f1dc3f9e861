"""Local keypair signer. For non-production testing flows only."""

from __future__ import annotations

from stellar_sdk import Keypair

from ..core.execution.models import SignedOperation, UnsignedOperation
from .base import Signer
from .soroban import to_transaction_envelope


class LocalKeypairSigner(Signer):
    """Signs with a secret seed held in process memory."""

    def __init__(self, secret_key: str) -> None:
        if not secret_key:
            raise ValueError(
                "No test secret key configured. "
                "Create a testnet account at https://laboratory.stellar.org/#account-creator?network=test"
            )
        self._keypair = Keypair.from_secret(secret_key)

    @property
    def public_key(self) -> str:
        return self._keypair.public_key

    async def sign(self, operation: UnsignedOperation) -> SignedOperation:
        envelope = to_transaction_envelope(operation)
        envelope.sign(self._keypair)
        return SignedOperation(
            tx_id=operation.tx_id,
            envelope_xdr=envelope.to_xdr(),
            tx_hash=envelope.hash_hex(),
        )
