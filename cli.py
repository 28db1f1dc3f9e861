#!/usr/bin/env python3
"""Simple CLI for quoting and executing swaps against the pool contract"""

import argparse
import asyncio
import sys
from typing import List, Optional

from poolswap.config import settings
from poolswap.core.amm.math import is_valid_swap, quote_swap
from poolswap.core.execution.errors import (
    ConfirmationTimeoutError,
    PoolSwapError,
    SlippageExceededError,
)
from poolswap.core.execution.tx_builder import TransactionBuilder
from poolswap.core.pool.models import ReserveSnapshot, SwapDirection, SwapRequest
from poolswap.core.pool.service import PoolService
from poolswap.logging_config import setup_logging

STROOPS_PER_XLM = 10_000_000


def print_snapshot(snapshot: ReserveSnapshot) -> None:
    """Pretty print pool reserves"""
    print("\n💧 Pool Reserves")
    print("=" * 40)
    print(f"Token A reserve: {snapshot.reserve_a:,}")
    print(f"Token B reserve: {snapshot.reserve_b:,}")
    print(f"Total swaps:     {snapshot.total_swaps:,}")
    if not snapshot.is_initialized:
        print("\n⚠️  Pool is not initialized. Run `init` to seed reserves.")


async def cli_pool(service: PoolService) -> None:
    snapshot = await service.fetch_reserves()
    print_snapshot(snapshot)


async def cli_status(service: PoolService) -> None:
    status = await service.status()
    print(f"Contract: {settings.contract_id}")
    print(f"Network:  {settings.stellar_network}")
    print(f"Reachable:   {'yes' if status.exists else 'no'}")
    print(f"Initialized: {'yes' if status.initialized else 'no'}")
    if status.snapshot:
        print_snapshot(status.snapshot)


async def cli_quote(service: PoolService, direction: SwapDirection, amount: float, slippage: float) -> None:
    # Quote what build_swap will actually send
    amount_in = TransactionBuilder.to_base_units(amount)
    snapshot = await service.fetch_reserves()
    quote = quote_swap(snapshot, direction, amount_in)
    reserve_in, reserve_out = snapshot.reserves_for(direction)
    request = SwapRequest.from_quote(quote, slippage)

    print(f"\n🔍 Quote {direction.value}: {amount_in:,} in")
    print("-" * 40)
    print(f"Expected output: {quote.amount_out:,.6f}")
    print(f"Minimum output:  {request.min_amount_out:,.6f} ({slippage}% slippage)")
    print(f"Price impact:    {quote.price_impact_percent:.2f}%")
    print(f"Rate:            1 in = {quote.exchange_rate:.6f} out")
    if not is_valid_swap(amount_in, reserve_in, reserve_out):
        print("\n❌ This swap is not possible against the current reserves.")


async def cli_swap(service: PoolService, direction: SwapDirection, amount: float, slippage: float) -> int:
    quote = await service.quote(amount, direction)
    request = SwapRequest.from_quote(quote, slippage)
    print(f"Swapping {quote.amount_in:,} ({direction.value}), minimum out {request.min_amount_out:,.6f}...")

    try:
        execution = await service.swap(request)
    except SlippageExceededError as e:
        print(f"⚠️  Swap executed on-chain ({e.tx_hash}) but paid {e.amount_out}, below your minimum {e.min_amount_out}")
        return 2
    except ConfirmationTimeoutError as e:
        print(f"⏳ Not confirmed yet; check the explorer for {e.tx_hash} before retrying")
        return 3

    note = "" if execution.decoded else " (output not decoded, showing minimum)"
    print(f"✅ Swap successful! Output: {execution.amount_out:,}{note}")
    print(f"   Hash: {execution.tx_hash}")
    if execution.snapshot_after:
        print_snapshot(execution.snapshot_after)
    return 0


async def cli_init(service: PoolService, reserve_a: int, reserve_b: int) -> None:
    result = await service.initialize(reserve_a, reserve_b)
    print(f"✅ Pool initialized ({result.tx_hash})")
    print_snapshot(await service.fetch_reserves())


async def cli_balance(service: PoolService) -> None:
    stroops = await service.native_balance()
    print(f"{service.source_account}: {stroops / STROOPS_PER_XLM:,.7f} XLM")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pool swap CLI")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("pool", help="Show current pool reserves")
    subparsers.add_parser("status", help="Check whether the contract is reachable and initialized")
    subparsers.add_parser("balance", help="Show the source account's native balance")

    for name, help_text in (("quote", "Quote a swap"), ("swap", "Execute a swap")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("direction", choices=[d.value for d in SwapDirection], help="AtoB or BtoA")
        sub.add_argument("amount", type=float, help="Input amount in base units")
        sub.add_argument("--slippage", type=float, default=1.0, help="Slippage tolerance in percent (default: 1)")

    init_parser = subparsers.add_parser("init", help="Initialize the pool with starting reserves")
    init_parser.add_argument("reserve_a", type=int, help="Initial token A reserve")
    init_parser.add_argument("reserve_b", type=int, help="Initial token B reserve")

    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level)
    service = PoolService.from_settings(settings)

    try:
        if args.command == "pool":
            await cli_pool(service)
        elif args.command == "status":
            await cli_status(service)
        elif args.command == "balance":
            await cli_balance(service)
        elif args.command == "quote":
            await cli_quote(service, SwapDirection(args.direction), args.amount, args.slippage)
        elif args.command == "swap":
            return await cli_swap(service, SwapDirection(args.direction), args.amount, args.slippage)
        elif args.command == "init":
            await cli_init(service, args.reserve_a, args.reserve_b)
    except PoolSwapError as e:
        print(f"❌ {type(e).__name__}: {e}")
        return 1
    except ValueError as e:
        print(f"❌ Invalid input: {e}")
        return 1
    finally:
        await service.close()

    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
