"""
Soroban JSON-RPC provider.

Talks to a Soroban RPC node over JSON-RPC 2.0 and converts between the
pool client's operation models and Stellar XDR.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx
from stellar_sdk import Account, Keypair, TransactionEnvelope, scval
from stellar_sdk import TransactionBuilder as StellarTransactionBuilder
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.exceptions import Ed25519PublicKeyInvalidError

from ..core.execution.models import (
    AccountState,
    ChainTxStatus,
    SignedOperation,
    SimulationResult,
    SubmitResult,
    SubmitStatus,
    TransactionStatusResponse,
    UnsignedOperation,
)
from .base import ChainRpc, ChainRpcError

logger = logging.getLogger(__name__)


class SorobanRpcError(ChainRpcError):
    """Error talking to the Soroban RPC node."""
    pass


# ----------------------------------------------------------------------
# XDR conversion
# ----------------------------------------------------------------------

def to_transaction_envelope(operation: UnsignedOperation) -> TransactionEnvelope:
    """Build the Stellar envelope for an operation (unsigned)."""
    builder = StellarTransactionBuilder(
        source_account=Account(operation.source_account, operation.sequence),
        network_passphrase=operation.network_passphrase,
        base_fee=operation.base_fee,
    )
    builder.append_invoke_contract_function_op(
        contract_id=operation.contract_id,
        function_name=operation.function_name,
        parameters=[scval.to_int128(arg) for arg in operation.args],
        auth=[stellar_xdr.SorobanAuthorizationEntry.from_xdr(entry) for entry in operation.auth] or None,
    )
    builder.add_time_bounds(0, operation.valid_until)
    if operation.soroban_data:
        builder.set_soroban_data(operation.soroban_data)

    envelope = builder.build()
    envelope.transaction.fee = operation.base_fee + operation.resource_fee
    return envelope


def _return_value_from_meta(meta_xdr: Optional[str]) -> Any:
    if not meta_xdr:
        return None

    meta = stellar_xdr.TransactionMeta.from_xdr(meta_xdr)
    for version in ("v4", "v3"):
        body = getattr(meta, version, None)
        soroban_meta = getattr(body, "soroban_meta", None) if body is not None else None
        if soroban_meta is not None and soroban_meta.return_value is not None:
            return scval.to_native(soroban_meta.return_value)
    return None


# ----------------------------------------------------------------------
# Provider
# ----------------------------------------------------------------------

class SorobanRpcProvider(ChainRpc):
    """
    ChainRpc backed by a Soroban RPC node.

    Usage:
        rpc = SorobanRpcProvider("https://soroban-testnet.stellar.org")
        account = await rpc.get_account(public_key)
        simulation = await rpc.simulate(operation)
    """

    name = "soroban"

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_s: float = 30.0,
        max_retries: int = 3,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _rpc_call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make a JSON-RPC call and return its `result` object."""
        client = await self._get_client()

        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
        }
        if params is not None:
            payload["params"] = params

        for attempt in range(self.max_retries):
            try:
                response = await client.post(
                    self.rpc_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                data = response.json()

                if "error" in data:
                    error = data["error"]
                    message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
                    raise SorobanRpcError(f"RPC error in {method}: {message}")

                return data.get("result") or {}

            except httpx.HTTPStatusError as e:
                if attempt == self.max_retries - 1:
                    raise SorobanRpcError(f"HTTP error in {method}: {e.response.status_code}") from e
            except httpx.RequestError as e:
                if attempt == self.max_retries - 1:
                    raise SorobanRpcError(f"Request error in {method}: {e}") from e
            except ValueError as e:
                raise SorobanRpcError(f"Malformed response to {method}: {e}") from e

            await asyncio.sleep(0.5 * (attempt + 1))

        raise SorobanRpcError("Max retries exceeded")

    async def get_account(self, public_key: str) -> AccountState:
        """Read the account ledger entry for its sequence number and native balance."""
        try:
            account_id = Keypair.from_public_key(public_key).xdr_account_id()
        except Ed25519PublicKeyInvalidError as e:
            raise SorobanRpcError(f"Invalid account public key: {public_key!r}") from e

        key = stellar_xdr.LedgerKey(
            stellar_xdr.LedgerEntryType.ACCOUNT,
            account=stellar_xdr.LedgerKeyAccount(account_id=account_id),
        )
        result = await self._rpc_call("getLedgerEntries", {"keys": [key.to_xdr()]})

        entries = result.get("entries") or []
        if not entries:
            raise SorobanRpcError(f"Account not found: {public_key}")

        data = stellar_xdr.LedgerEntryData.from_xdr(entries[0]["xdr"])
        if data.account is None:
            raise SorobanRpcError(f"Ledger entry for {public_key} is not an account")

        return AccountState(
            account_id=public_key,
            sequence=data.account.seq_num.sequence_number.int64,
            balances={"native": data.account.balance.int64},
        )

    async def get_latest_ledger(self) -> int:
        """Sequence number of the most recent ledger the node has seen."""
        result = await self._rpc_call("getLatestLedger")
        try:
            return int(result["sequence"])
        except (KeyError, TypeError, ValueError) as e:
            raise SorobanRpcError(f"Malformed getLatestLedger result: {result!r}") from e

    async def simulate(self, operation: UnsignedOperation) -> SimulationResult:
        envelope = to_transaction_envelope(operation)
        result = await self._rpc_call("simulateTransaction", {"transaction": envelope.to_xdr()})
        return self.parse_simulation(result)

    @staticmethod
    def parse_simulation(result: Dict[str, Any]) -> SimulationResult:
        latest_ledger = result.get("latestLedger")

        if result.get("error"):
            return SimulationResult(success=False, error=str(result["error"]), latest_ledger=latest_ledger)

        results: List[Dict[str, Any]] = result.get("results") or []
        first = results[0] if results else {}
        retval_xdr = first.get("xdr")

        return SimulationResult(
            success=True,
            return_value=scval.to_native(stellar_xdr.SCVal.from_xdr(retval_xdr)) if retval_xdr else None,
            transaction_data=result.get("transactionData"),
            min_resource_fee=int(result.get("minResourceFee") or 0),
            auth=list(first.get("auth") or []),
            latest_ledger=latest_ledger,
        )

    async def submit(self, signed: SignedOperation) -> SubmitResult:
        result = await self._rpc_call("sendTransaction", {"transaction": signed.envelope_xdr})

        raw_status = result.get("status", SubmitStatus.ERROR.value)
        try:
            status = SubmitStatus(raw_status)
        except ValueError:
            logger.warning(f"Unknown sendTransaction status {raw_status!r}")
            status = SubmitStatus.ERROR

        return SubmitResult(
            tx_hash=result.get("hash") or signed.tx_hash or "",
            status=status,
            error_result=result.get("errorResultXdr"),
        )

    async def get_transaction(self, tx_hash: str) -> TransactionStatusResponse:
        result = await self._rpc_call("getTransaction", {"hash": tx_hash})

        raw_status = result.get("status", ChainTxStatus.NOT_FOUND.value)
        try:
            status = ChainTxStatus(raw_status)
        except ValueError as e:
            raise SorobanRpcError(f"Unknown getTransaction status {raw_status!r}") from e

        return_value = None
        if status == ChainTxStatus.SUCCESS:
            return_value = _return_value_from_meta(result.get("resultMetaXdr"))

        return TransactionStatusResponse(
            status=status,
            return_value=return_value,
            ledger=result.get("ledger"),
            error=result.get("resultXdr") if status == ChainTxStatus.FAILED else None,
        )
