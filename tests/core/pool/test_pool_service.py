"""
Tests for the pool service facade.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from poolswap.config import Settings
from poolswap.core.constants import NETWORK_PASSPHRASES
from poolswap.core.execution.errors import (
    DecodeFailedError,
    PoolAlreadyInitializedError,
    QueryFailedError,
)
from poolswap.core.execution.models import (
    AccountState,
    ChainTxStatus,
    SignedOperation,
    SimulationResult,
    SubmitResult,
    SubmitStatus,
    TransactionResult,
    TransactionStatusResponse,
)
from poolswap.core.execution.tx_builder import TransactionBuilder
from poolswap.core.pool.models import (
    ReserveSnapshot,
    SwapDirection,
    SwapExecution,
    SwapRequest,
)
from poolswap.core.pool.service import PoolService
from poolswap.providers.base import ChainRpcError
from poolswap.providers.soroban import SorobanRpcProvider

SOURCE = "GSERVICE"


def _service(snapshot=None):
    rpc = AsyncMock()
    rpc.get_account.return_value = AccountState(SOURCE, 1, balances={"native": 25_000_000})
    reader = MagicMock()
    reader.fetch_reserves = AsyncMock(return_value=snapshot or ReserveSnapshot(1000, 1000, 0))
    manager = MagicMock()
    manager.source_account = SOURCE
    manager.execute_swap = AsyncMock(
        return_value=SwapExecution(
            direction=SwapDirection.A_TO_B,
            amount_in=100,
            amount_out=90,
            min_amount_out=89,
            tx_hash="hash",
        )
    )
    manager.execute_initialize = AsyncMock(return_value=TransactionResult(tx_id="tx_1", tx_hash="init"))
    return PoolService(rpc, reader, manager)


@pytest.mark.asyncio
async def test_quote_uses_fresh_reserves():
    service = _service(ReserveSnapshot(1000, 1000, 0))

    quote = await service.quote(100, SwapDirection.A_TO_B)

    assert quote.amount_out == pytest.approx(90.909090909)
    service.reader.fetch_reserves.assert_awaited_once()


@pytest.mark.asyncio
async def test_status_reports_initialized_pool():
    service = _service(ReserveSnapshot(1000, 1000, 3))

    status = await service.status()

    assert status.exists is True
    assert status.initialized is True
    assert status.snapshot.total_swaps == 3


@pytest.mark.asyncio
async def test_status_reports_uninitialized_pool():
    service = _service(ReserveSnapshot.empty())

    status = await service.status()

    assert status.exists is True
    assert status.initialized is False


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [QueryFailedError("down"), DecodeFailedError("garbage")])
async def test_status_unreachable_contract(error):
    service = _service()
    service.reader.fetch_reserves.side_effect = error

    status = await service.status()

    assert status.exists is False
    assert status.initialized is False
    assert status.snapshot is None


@pytest.mark.asyncio
async def test_swap_refreshes_reserves():
    service = _service()
    after = ReserveSnapshot(1100, 910, 1)
    service.reader.fetch_reserves.return_value = after

    execution = await service.swap(SwapRequest(SwapDirection.A_TO_B, 100, 89))

    assert execution.amount_out == 90
    assert execution.snapshot_after == after


@pytest.mark.asyncio
async def test_swap_survives_failed_refresh():
    service = _service()
    service.reader.fetch_reserves.side_effect = QueryFailedError("rpc down")

    execution = await service.swap(SwapRequest(SwapDirection.A_TO_B, 100, 89))

    assert execution.tx_hash == "hash"
    assert execution.snapshot_after is None


@pytest.mark.asyncio
async def test_initialize_rejects_seeded_pool():
    service = _service(ReserveSnapshot(1000, 1000, 0))

    with pytest.raises(PoolAlreadyInitializedError):
        await service.initialize(500, 500)

    service.manager.execute_initialize.assert_not_awaited()


@pytest.mark.asyncio
async def test_initialize_empty_pool():
    service = _service(ReserveSnapshot.empty())

    result = await service.initialize(1000, 1000)

    assert result.tx_hash == "init"
    service.manager.execute_initialize.assert_awaited_once_with(1000, 1000)


@pytest.mark.asyncio
async def test_native_balance():
    service = _service()

    assert await service.native_balance() == 25_000_000


@pytest.mark.asyncio
async def test_native_balance_lookup_failure():
    service = _service()
    service.rpc.get_account.side_effect = ChainRpcError("not found")

    with pytest.raises(QueryFailedError):
        await service.native_balance()


def test_from_settings_without_key_has_no_signer():
    settings = Settings(
        _env_file=None,
        stellar_network="testnet",
        test_secret_key="",
        source_public_key=SOURCE,
    )
    rpc = AsyncMock()

    service = PoolService.from_settings(settings, rpc=rpc)

    assert service.manager.signer is None
    assert service.source_account == SOURCE
    assert service.reader.source_account == SOURCE
    assert service.manager.builder.contract_id == settings.contract_id
    assert service.manager.max_poll_attempts == 30


@pytest.mark.asyncio
async def test_status_with_malformed_source_key_reports_unreachable():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {}})

    settings = Settings(
        _env_file=None,
        stellar_network="testnet",
        test_secret_key="",
        source_public_key="GNOTAREALKEY",
    )
    rpc = SorobanRpcProvider(
        settings.stellar_rpc_url,
        max_retries=1,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    service = PoolService.from_settings(settings, rpc=rpc)

    status = await service.status()

    assert status.exists is False
    assert calls == []
    await service.close()


@pytest.mark.asyncio
async def test_fractional_quote_is_floored_before_pricing():
    service = _service(ReserveSnapshot(1000, 1000, 0))

    quote = await service.quote(100.9, SwapDirection.A_TO_B)

    assert quote.amount_in == 100
    assert quote.amount_out == pytest.approx(100 * 1000 / 1100)


@pytest.mark.asyncio
async def test_quote_below_one_unit_rejected():
    service = _service()

    with pytest.raises(ValueError):
        await service.quote(0.4, SwapDirection.A_TO_B)

    service.reader.fetch_reserves.assert_not_awaited()


@pytest.mark.asyncio
async def test_fractional_swap_accepts_truncated_contract_output():
    """100.9 in against 1000/1000: the contract receives 100 and pays (100 * 1000) // 1100."""
    contract_output = (100 * 1000) // 1100

    rpc = AsyncMock()
    rpc.get_account.return_value = AccountState(SOURCE, 1)
    rpc.simulate.side_effect = [
        SimulationResult(
            success=True,
            return_value={"token_a_reserve": 1000, "token_b_reserve": 1000, "total_swaps": 0},
        ),
        SimulationResult(success=True, transaction_data="DATA"),
        SimulationResult(
            success=True,
            return_value={"token_a_reserve": 1100, "token_b_reserve": 910, "total_swaps": 1},
        ),
    ]
    rpc.submit.return_value = SubmitResult(tx_hash="hash", status=SubmitStatus.PENDING)
    rpc.get_transaction.return_value = TransactionStatusResponse(
        ChainTxStatus.SUCCESS, return_value=contract_output
    )
    signer = MagicMock()
    signer.public_key = SOURCE
    signer.sign = AsyncMock(return_value=SignedOperation(tx_id="tx", envelope_xdr="ENV", tx_hash="hash"))
    builder = TransactionBuilder("CPOOL", NETWORK_PASSPHRASES["testnet"])
    service = PoolService.create(rpc, signer, builder, sleep=AsyncMock())

    quote = await service.quote(100.9, SwapDirection.A_TO_B)
    request = SwapRequest.from_quote(quote, slippage_percent=1)
    execution = await service.swap(request)

    assert request.min_amount_out <= contract_output
    assert execution.amount_in == 100
    assert execution.amount_out == contract_output
    assert execution.snapshot_after == ReserveSnapshot(1100, 910, 1)
