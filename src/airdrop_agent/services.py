"""
Service wiring for the Airdrop Research Agent.

``build_services`` creates the research agent client, its circuit breaker,
the research cache and the components that use them, all from ``config``.
The API builds one ``Services`` at startup and closes it at shutdown; tests
build their own with stub transports, seeded RNGs and fixed clocks.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from config import (
    AGENT_PROFILE,
    CACHE_FRESHNESS_SECONDS,
    CACHE_MAX_ENTRIES,
    CB_FAILURE_THRESHOLD,
    CB_RECOVERY_TIMEOUT,
    CLAIM_LEDGER_MAX_PER_WALLET,
    CLAIM_LEDGER_MAX_WALLETS,
    ELIGIBILITY_MAX_STEPS,
    HEALTH_TIMEOUT_SECONDS,
    RANDOM_SEED,
    RESEARCH_MAX_STEPS,
    RESEARCH_TIMEOUT_SECONDS,
    SENTIENT_API_URL,
)
from .cache import ResearchCache
from .circuit_breaker import CircuitBreaker
from .claims import ClaimSimulator
from .data_sources.research_agent import ResearchAgentClient
from .fallback import ResponseFallbackGenerator
from .normalizer import ResultNormalizer
from .orchestrator import EligibilityChecker, ResearchOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class Services:
    agent_client: ResearchAgentClient
    cache: ResearchCache
    orchestrator: ResearchOrchestrator
    eligibility: EligibilityChecker
    claims: ClaimSimulator

    async def close(self) -> None:
        await self.agent_client.close()


def build_services(
    *,
    base_url: str = SENTIENT_API_URL,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng: Optional[random.Random] = None,
    clock: Callable[[], float] = time.time,
) -> Services:
    """Assemble the component graph from configuration."""
    if rng is None:
        rng = random.Random(RANDOM_SEED)

    breaker = CircuitBreaker(
        "sentient_api",
        failure_threshold=CB_FAILURE_THRESHOLD,
        recovery_timeout=CB_RECOVERY_TIMEOUT,
    )
    client = ResearchAgentClient(
        base_url,
        profile=AGENT_PROFILE,
        timeout=RESEARCH_TIMEOUT_SECONDS,
        health_timeout=HEALTH_TIMEOUT_SECONDS,
        circuit_breaker=breaker,
        transport=transport,
    )
    cache = ResearchCache(max_entries=CACHE_MAX_ENTRIES, clock=clock)
    orchestrator = ResearchOrchestrator(
        client,
        cache,
        normalizer=ResultNormalizer(rng=rng, clock=clock),
        fallback=ResponseFallbackGenerator(clock=clock),
        freshness_seconds=CACHE_FRESHNESS_SECONDS,
        max_steps=RESEARCH_MAX_STEPS,
    )
    logger.info("Research agent at %s (profile=%s)", base_url, AGENT_PROFILE)
    return Services(
        agent_client=client,
        cache=cache,
        orchestrator=orchestrator,
        eligibility=EligibilityChecker(client, rng=rng, max_steps=ELIGIBILITY_MAX_STEPS),
        claims=ClaimSimulator(
            rng=rng,
            clock=clock,
            max_per_wallet=CLAIM_LEDGER_MAX_PER_WALLET,
            max_wallets=CLAIM_LEDGER_MAX_WALLETS,
        ),
    )
