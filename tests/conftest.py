"""Shared test fixtures for the Airdrop Research Agent test suite."""

from __future__ import annotations

import sys
import os

# Ensure src/ is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import json
import random

import httpx
import pytest

from airdrop_agent.cache import ResearchCache
from airdrop_agent.circuit_breaker import CircuitBreaker
from airdrop_agent.data_sources.research_agent import ResearchAgentClient
from airdrop_agent.fallback import ResponseFallbackGenerator
from airdrop_agent.normalizer import ResultNormalizer
from airdrop_agent.orchestrator import ResearchOrchestrator

WALLET = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"

# 2025-06-01T00:00:00Z
FIXED_NOW = 1748736000.0


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubAgent:
    """Stand-in for the research agent behind an ``httpx.MockTransport``.

    ``research_calls`` / ``health_calls`` count requests; set ``fail`` to
    make every request raise a connection error, or ``status`` for a non-2xx.
    """

    def __init__(self, result: str = "", execution_id: str | None = "exec_stub") -> None:
        self.result = result
        self.execution_id = execution_id
        self.fail = False
        self.status = 200
        self.research_calls = 0
        self.health_calls = 0
        self.bodies: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail:
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.path == "/health":
            self.health_calls += 1
            return httpx.Response(self.status, json={"status": "ok"})
        if request.url.path == "/research":
            self.research_calls += 1
            self.bodies.append(json.loads(request.content))
            payload: dict = {"result": self.result}
            if self.execution_id is not None:
                payload["execution_id"] = self.execution_id
            return httpx.Response(self.status, json=payload)
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def agent_json(**overrides) -> str:
    """A well-formed research answer wrapped in prose."""
    data = {
        "wallet_address": WALLET,
        "found_airdrops": [
            {
                "protocol": "LayerZero",
                "eligible": True,
                "estimated_value": 800,
                "deadline": "2025-09-30",
                "requirements": ["Bridge activity", "Multi-chain"],
            },
            {
                "protocol": "Scroll",
                "eligible": False,
                "estimated_value": 300,
                "deadline": "2025-08-01",
                "requirements": ["Early user"],
            },
        ],
        "research_summary": "Two protocols analysed.",
        "total_estimated_value": 800,
        "execution_id": "agent-123",
    }
    data.update(overrides)
    return "Here is the research you asked for:\n" + json.dumps(data) + "\nGood luck!"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def stub_agent():
    return StubAgent(result=agent_json())


@pytest.fixture
async def agent_client(stub_agent):
    c = ResearchAgentClient(
        "http://agent.test",
        timeout=5,
        circuit_breaker=CircuitBreaker("sentient_api", failure_threshold=3, recovery_timeout=30),
        transport=stub_agent.transport,
    )
    yield c
    await c.close()


@pytest.fixture
def research_cache(clock):
    return ResearchCache(max_entries=100, clock=clock)


@pytest.fixture
def orchestrator(agent_client, research_cache, rng, clock):
    return ResearchOrchestrator(
        agent_client,
        research_cache,
        normalizer=ResultNormalizer(rng=rng, clock=clock),
        fallback=ResponseFallbackGenerator(clock=clock),
        freshness_seconds=300,
        max_steps=25,
    )
