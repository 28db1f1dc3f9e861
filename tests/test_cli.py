import pytest
from unittest.mock import AsyncMock, MagicMock

import cli
from poolswap.core.execution.errors import (
    ConfirmationTimeoutError,
    QueryFailedError,
    SlippageExceededError,
)
from poolswap.core.pool.models import (
    PoolStatus,
    ReserveSnapshot,
    SwapDirection,
    SwapExecution,
    SwapQuote,
)


@pytest.fixture
def service(monkeypatch):
    service = MagicMock()
    service.close = AsyncMock()
    service.fetch_reserves = AsyncMock(return_value=ReserveSnapshot(1000, 1000, 2))
    service.quote = AsyncMock(
        return_value=SwapQuote(SwapDirection.A_TO_B, 100, 90.909090909, 17.36, 1.0)
    )
    service.swap = AsyncMock(
        return_value=SwapExecution(SwapDirection.A_TO_B, 100, 90, 90.0, "hash")
    )
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)
    monkeypatch.setattr(cli.PoolService, "from_settings", classmethod(lambda cls, settings=None: service))
    return service


@pytest.mark.asyncio
async def test_no_command_prints_help(capsys):
    assert await cli.main([]) == 1
    assert "usage" in capsys.readouterr().out.lower()


@pytest.mark.asyncio
async def test_pool_command(service, capsys):
    assert await cli.main(["pool"]) == 0

    out = capsys.readouterr().out
    assert "1,000" in out
    service.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_status_unreachable(service, capsys):
    service.status = AsyncMock(return_value=PoolStatus(exists=False, initialized=False))

    assert await cli.main(["status"]) == 0
    assert "Reachable:   no" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_swap_success(service, capsys):
    assert await cli.main(["swap", "AtoB", "100"]) == 0

    request = service.swap.await_args.args[0]
    assert request.direction is SwapDirection.A_TO_B
    assert request.min_amount_out == 89
    assert "hash" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_swap_below_minimum_exit_code(service, capsys):
    service.swap.side_effect = SlippageExceededError(85, 90, tx_hash="hash")

    assert await cli.main(["swap", "AtoB", "100"]) == 2
    assert "below your minimum" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_swap_timeout_exit_code(service):
    service.swap.side_effect = ConfirmationTimeoutError("not seen", tx_hash="hash")

    assert await cli.main(["swap", "BtoA", "10"]) == 3


@pytest.mark.asyncio
async def test_query_failure_exit_code(service, capsys):
    service.fetch_reserves.side_effect = QueryFailedError("rpc down")

    assert await cli.main(["pool"]) == 1
    assert "QueryFailedError" in capsys.readouterr().out
    service.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_quote_prices_floored_amount(service, capsys):
    assert await cli.main(["quote", "AtoB", "100.9"]) == 0

    out = capsys.readouterr().out
    assert "AtoB: 100 in" in out
    assert "Expected output: 90.909091" in out
    assert "Minimum output:  90.000000" in out
