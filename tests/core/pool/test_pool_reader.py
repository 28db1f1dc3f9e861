"""
Tests for reading pool reserves through a simulated view_pool call.
"""

import pytest
from unittest.mock import AsyncMock

from poolswap.core.constants import NETWORK_PASSPHRASES
from poolswap.core.execution.errors import DecodeFailedError, QueryFailedError
from poolswap.core.execution.models import AccountState, SimulationResult
from poolswap.core.execution.tx_builder import TransactionBuilder
from poolswap.core.pool.models import ReserveSnapshot
from poolswap.core.pool.reader import PoolStateReader
from poolswap.providers.base import ChainRpcError

SOURCE = "GREADER"


def _reader(return_value=None, success=True, error=None, source=SOURCE):
    rpc = AsyncMock()
    rpc.get_account.return_value = AccountState(account_id=SOURCE, sequence=3)
    rpc.simulate.return_value = SimulationResult(success=success, return_value=return_value, error=error)
    builder = TransactionBuilder("CPOOL", NETWORK_PASSPHRASES["testnet"])
    return PoolStateReader(rpc, builder, source), rpc


@pytest.mark.asyncio
async def test_fetch_reserves_decodes_struct():
    reader, rpc = _reader({"token_a_reserve": 1000, "token_b_reserve": 1000, "total_swaps": 0})

    snapshot = await reader.fetch_reserves()

    assert snapshot == ReserveSnapshot(1000, 1000, 0)
    operation = rpc.simulate.await_args.args[0]
    assert operation.function_name == "view_pool"
    rpc.submit.assert_not_called()


@pytest.mark.asyncio
async def test_uninitialized_pool_is_zero_snapshot_not_error():
    reader, _ = _reader({"token_a_reserve": 0, "token_b_reserve": 0, "total_swaps": 0})

    snapshot = await reader.fetch_reserves()

    assert snapshot.is_initialized is False


@pytest.mark.asyncio
async def test_simulation_failure_is_query_failure():
    reader, _ = _reader(success=False, error="contract not found")

    with pytest.raises(QueryFailedError, match="contract not found") as exc_info:
        await reader.fetch_reserves()

    assert exc_info.value.entry_point == "view_pool"


@pytest.mark.asyncio
async def test_transport_error_is_query_failure():
    reader, rpc = _reader()
    rpc.simulate.side_effect = ChainRpcError("503 Service Unavailable")

    with pytest.raises(QueryFailedError):
        await reader.fetch_reserves()


@pytest.mark.asyncio
async def test_missing_account_is_query_failure():
    reader, rpc = _reader()
    rpc.get_account.side_effect = ChainRpcError("Account not found")

    with pytest.raises(QueryFailedError):
        await reader.fetch_reserves()


@pytest.mark.asyncio
async def test_no_source_account():
    reader, rpc = _reader(source=None)

    with pytest.raises(QueryFailedError):
        await reader.fetch_reserves()

    rpc.get_account.assert_not_called()


@pytest.mark.asyncio
async def test_empty_result_is_decode_failure():
    reader, _ = _reader(return_value=None)

    with pytest.raises(DecodeFailedError, match="No result"):
        await reader.fetch_reserves()


@pytest.mark.asyncio
async def test_wrong_shape_is_decode_failure():
    reader, _ = _reader(return_value=[1000, 1000, 0])

    with pytest.raises(DecodeFailedError):
        await reader.fetch_reserves()
