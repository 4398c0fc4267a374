"""
Command line interface for the Airdrop Research Agent.

Usage::

    python src/main.py --wallet <WALLET_ADDRESS> [--days 30] [--json]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

# Ensure ``src/`` is on the import path
sys.path.insert(0, os.path.dirname(__file__))

from airdrop_agent.models import ResearchRequest
from airdrop_agent.services import build_services

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)


async def _run(wallet: str, days: int, as_json: bool) -> None:
    """Async entry point."""
    services = build_services()
    try:
        result = await services.orchestrator.research(
            ResearchRequest(wallet_address=wallet, timeframe_days=days)
        )
    finally:
        await services.close()

    if as_json:
        print(result.model_dump_json(indent=2))
        return

    print("=" * 60)
    print("  Airdrop Research Agent – Results")
    print("=" * 60)
    print(f"  Wallet       : {result.wallet_address}")
    print(f"  Execution    : {result.execution_id}")
    print(f"  Total value  : ${result.total_estimated_value:,.2f}")
    print("-" * 60)
    if result.found_airdrops:
        for i, f in enumerate(result.found_airdrops, 1):
            mark = "✔" if f.eligible else "✘"
            print(f"    {i:>2}. {mark} {f.protocol:24s} ${f.estimated_value:>9,.2f}  until {f.deadline}")
    else:
        print("  No airdrops found.")
    print("-" * 60)
    print(f"  {result.research_summary}")
    print("=" * 60)


def main() -> None:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Research airdrop opportunities for a wallet"
    )
    parser.add_argument(
        "--wallet",
        required=True,
        help="Wallet address to research",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Look-back window in days (default: 30)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="as_json",
        help="Output result as raw JSON",
    )
    args = parser.parse_args()
    asyncio.run(_run(args.wallet, args.days, args.as_json))


if __name__ == "__main__":
    main()
