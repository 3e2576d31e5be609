#!/usr/bin/env python3
"""Operator CLI for contract transactions: fee quotes and status checks"""

import argparse
import asyncio
import json
import sys
from typing import Any, List, Optional

from payeasy.core.contracts import (
    ContractTransactionError,
    InvocationRequest,
    TrackedStatus,
    get_contract_orchestrator,
)
from payeasy.db.history_client import HistoryStoreError
from payeasy.logging_config import setup_logging


def parse_contract_args(raw: List[str]) -> List[Any]:
    """Arguments are JSON where they parse as JSON (1000, true, [1,2]) and strings otherwise."""
    parsed = []
    for value in raw:
        try:
            parsed.append(json.loads(value))
        except ValueError:
            parsed.append(value)
    return parsed


def print_status(history_id: str, status: TrackedStatus) -> None:
    icon = {"success": "✅", "failed": "❌"}.get(status.onchain_status.value, "⏳")
    print(f"\n{icon} Transaction {history_id}")
    print("=" * 50)
    print(f"Lifecycle: {status.lifecycle_status.value}")
    print(f"On-chain:  {status.onchain_status.value}")
    print(f"Tx hash:   {status.transaction_id or '-'}")
    if status.ledger_sequence is not None:
        print(f"Ledger:    {status.ledger_sequence}")


async def cli_quote(source: str, contract_id: str, method: str, raw_args: List[str], network: Optional[str]):
    """CLI command to quote the fee of an invocation"""
    request = InvocationRequest(
        source_account=source,
        contract_id=contract_id,
        method=method,
        args=tuple(parse_contract_args(raw_args)),
        network=network,
    )
    print(f"🔍 Estimating {method} on {contract_id}...")

    quote = await get_contract_orchestrator().quote(request)
    print(json.dumps(quote.to_dict(), indent=2))


async def cli_status(history_id: str, wait: bool, timeout: Optional[float]):
    """CLI command to check (or wait for) a history record's status"""
    orchestrator = get_contract_orchestrator()
    if wait:
        print(f"⏳ Waiting for {history_id} to reach a terminal state...")
        status = await orchestrator.wait_for_terminal(history_id, timeout_seconds=timeout)
    else:
        status = await orchestrator.track(history_id)
    print_status(history_id, status)


async def cli_network_status(tx_hash: str, network: Optional[str]):
    """CLI command to look a transaction up on the ledger"""
    result = await get_contract_orchestrator().network_status(tx_hash, network)
    print(f"{tx_hash}: {result.status.value}")
    if result.ledger_sequence is not None:
        print(f"Ledger: {result.ledger_sequence}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Contract transaction CLI")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--log-format", choices=["auto", "json", "console"], help="Override LOG_FORMAT")
    subparsers = parser.add_subparsers(dest="command")

    quote_parser = subparsers.add_parser("quote", help="Build an invocation and print its fee breakdown")
    quote_parser.add_argument("source", help="Source account (G...)")
    quote_parser.add_argument("contract_id", help="Contract id (C...)")
    quote_parser.add_argument("method", help="Contract method")
    quote_parser.add_argument("args", nargs="*", help="Method arguments (JSON or plain strings)")
    quote_parser.add_argument("--network", help="testnet, futurenet or mainnet")

    status_parser = subparsers.add_parser("status", help="Check a history record's status")
    status_parser.add_argument("history_id", help="History record id")
    status_parser.add_argument("--wait", action="store_true", help="Poll until terminal or timeout")
    status_parser.add_argument("--timeout", type=float, help="Polling deadline in seconds")

    network_parser = subparsers.add_parser("network-status", help="Look a transaction hash up on Horizon")
    network_parser.add_argument("tx_hash", help="Transaction hash")
    network_parser.add_argument("--network", help="testnet, futurenet or mainnet")

    return parser


async def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level, args.log_format)

    try:
        if args.command == "quote":
            await cli_quote(args.source, args.contract_id, args.method, args.args, args.network)
        elif args.command == "status":
            await cli_status(args.history_id, args.wait, args.timeout)
        elif args.command == "network-status":
            await cli_network_status(args.tx_hash, args.network)
    except (ContractTransactionError, HistoryStoreError) as e:
        print(f"❌ {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
