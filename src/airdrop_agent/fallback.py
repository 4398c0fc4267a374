"""
Demo data served when the research agent is unreachable.

The findings and summary never change between calls; only the
``execution_id`` follows the injected clock, so a fixed clock makes the
whole result reproducible.
"""

from __future__ import annotations

import time
from typing import Callable

from .models import AirdropFinding, ResearchResult
from .normalizer import make_execution_id

_DEMO_FINDINGS: tuple[dict, ...] = (
    {
        "protocol": "Uniswap V4",
        "eligible": True,
        "estimated_value": 1250.00,
        "deadline": "2024-12-31",
        "requirements": ("10+ swaps", "LP provider", "> $1000 volume", "Governance participation"),
    },
    {
        "protocol": "Arbitrum Odyssey",
        "eligible": True,
        "estimated_value": 750.00,
        "deadline": "2024-11-15",
        "requirements": ("Bridge > 0.1 ETH", "5+ transactions", "Use 3 dApps", "NFT holder"),
    },
    {
        "protocol": "zkSync Era",
        "eligible": False,
        "estimated_value": 520.00,
        "deadline": "2024-10-30",
        "requirements": ("Mainnet activity", "Early user", "Specific NFTs", "Bridge activity"),
    },
)

DEMO_SUMMARY = (
    "AI analysis complete. Your wallet shows strong DeFi activity with significant "
    "liquidity provision and trading volume. You're eligible for major protocol "
    "airdrops. Focus on maintaining consistent activity across emerging Layer 2 "
    "solutions."
)


class ResponseFallbackGenerator:
    """Builds the canned research answer used in fallback mode."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def generate_demo(self, wallet_address: str) -> ResearchResult:
        return ResearchResult(
            wallet_address=wallet_address,
            found_airdrops=[AirdropFinding(**f) for f in _DEMO_FINDINGS],
            research_summary=DEMO_SUMMARY,
            execution_id=make_execution_id(self._clock, prefix="demo"),
        )
