"""Tests for ResearchOrchestrator: cache, agent call, parsing and fallback.

The research agent is an ``httpx.MockTransport`` stub that counts calls.
"""

from __future__ import annotations

import pytest

from airdrop_agent.exceptions import ClientInputError
from airdrop_agent.fallback import DEMO_SUMMARY
from airdrop_agent.models import ResearchRequest
from airdrop_agent.normalizer import REFERENCE_PROTOCOLS
from airdrop_agent.orchestrator import build_eligibility_goal, build_research_goal

from conftest import WALLET, agent_json


def _req(wallet: str | None = WALLET, days: int = 30) -> ResearchRequest:
    return ResearchRequest(wallet_address=wallet, timeframe_days=days)


def _total_ok(result) -> bool:
    return result.total_estimated_value == sum(
        f.estimated_value for f in result.found_airdrops if f.eligible
    )


# ---------------------------------------------------------------------------
# Goal prompts
# ---------------------------------------------------------------------------

class TestBuildGoals:
    def test_research_goal_mentions_wallet_timeframe_and_protocols(self):
        goal = build_research_goal(WALLET, 14)
        assert WALLET in goal
        assert "last 14 days" in goal
        for name in ("Uniswap V4", "Polygon zkEVM", "LayerZero", "Wormhole"):
            assert name in goal
        assert "Return valid JSON only." in goal
        assert '"found_airdrops"' in goal

    def test_eligibility_goal(self):
        goal = build_eligibility_goal(WALLET, "Aave")
        assert WALLET in goal
        assert "on Aave" in goal
        assert '"estimated_reward"' in goal


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

class TestInput:
    @pytest.mark.asyncio
    async def test_missing_wallet_raises_without_upstream_call(self, orchestrator, stub_agent):
        with pytest.raises(ClientInputError):
            await orchestrator.research(_req(wallet=None))
        assert stub_agent.research_calls == 0

    @pytest.mark.asyncio
    async def test_blank_wallet_raises(self, orchestrator, stub_agent):
        with pytest.raises(ClientInputError):
            await orchestrator.research(_req(wallet="   "))
        assert stub_agent.research_calls == 0


# ---------------------------------------------------------------------------
# Agent call + parsing
# ---------------------------------------------------------------------------

class TestAgentSuccess:
    @pytest.mark.asyncio
    async def test_request_body(self, orchestrator, stub_agent):
        await orchestrator.research(_req(days=7))
        body = stub_agent.bodies[0]
        assert body["profile"] == "crypto_analytics_agent"
        assert body["max_steps"] == 25
        assert body["save_state"] is False
        assert WALLET in body["goal"]
        assert "last 7 days" in body["goal"]

    @pytest.mark.asyncio
    async def test_embedded_json_is_used(self, orchestrator):
        result = await orchestrator.research(_req())
        assert [f.protocol for f in result.found_airdrops] == ["LayerZero", "Scroll"]
        assert result.research_summary == "Two protocols analysed."
        assert result.execution_id == "agent-123"
        assert result.total_estimated_value == 800

    @pytest.mark.asyncio
    async def test_inconsistent_agent_total_is_corrected(self, orchestrator, stub_agent):
        stub_agent.result = agent_json(total_estimated_value=99999)
        result = await orchestrator.research(_req())
        assert result.total_estimated_value == 800
        assert _total_ok(result)

    @pytest.mark.asyncio
    async def test_agent_json_without_execution_id_uses_payload_id(self, orchestrator, stub_agent):
        stub_agent.result = agent_json(execution_id=None)
        result = await orchestrator.research(_req())
        assert result.execution_id == "exec_stub"

    @pytest.mark.asyncio
    async def test_prose_only_answer_uses_normalizer(self, orchestrator, stub_agent):
        stub_agent.result = "The wallet looks active on several L2s."
        result = await orchestrator.research(_req())
        assert len(result.found_airdrops) == len(REFERENCE_PROTOCOLS)
        assert result.research_summary == "The wallet looks active on several L2s."
        assert result.execution_id == "exec_stub"
        assert _total_ok(result)

    @pytest.mark.asyncio
    async def test_broken_json_uses_normalizer(self, orchestrator, stub_agent):
        stub_agent.result = '{"found_airdrops": [ {"protocol": "Blur", }'
        result = await orchestrator.research(_req())
        assert len(result.found_airdrops) == len(REFERENCE_PROTOCOLS)
        assert _total_ok(result)

    @pytest.mark.asyncio
    async def test_normalizer_result_is_cached(self, orchestrator, stub_agent, research_cache):
        stub_agent.result = "no json here"
        await orchestrator.research(_req())
        assert len(research_cache) == 1


# ---------------------------------------------------------------------------
# Cache behaviour
# ---------------------------------------------------------------------------

class TestCaching:
    @pytest.mark.asyncio
    async def test_second_call_within_window_is_cached(self, orchestrator, stub_agent, clock):
        first = await orchestrator.research(_req())
        clock.advance(299)
        second = await orchestrator.research(_req())
        assert second == first
        assert stub_agent.research_calls == 1

    @pytest.mark.asyncio
    async def test_expired_entry_triggers_new_call(self, orchestrator, stub_agent, clock):
        await orchestrator.research(_req())
        clock.advance(300)
        stub_agent.result = agent_json(execution_id="agent-456")
        second = await orchestrator.research(_req())
        assert stub_agent.research_calls == 2
        assert second.execution_id == "agent-456"

    @pytest.mark.asyncio
    async def test_different_timeframe_is_a_different_key(self, orchestrator, stub_agent):
        await orchestrator.research(_req(days=30))
        await orchestrator.research(_req(days=7))
        assert stub_agent.research_calls == 2

    @pytest.mark.asyncio
    async def test_expired_entry_with_agent_down_serves_demo(self, orchestrator, stub_agent, clock):
        await orchestrator.research(_req())
        clock.advance(301)
        stub_agent.fail = True
        result = await orchestrator.research(_req())
        assert result.research_summary == DEMO_SUMMARY


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------

class TestFallback:
    @pytest.mark.asyncio
    async def test_unreachable_agent_returns_demo(self, orchestrator, stub_agent):
        stub_agent.fail = True
        result = await orchestrator.research(_req())
        assert len(result.found_airdrops) == 3
        assert result.total_estimated_value == 2000
        assert result.research_summary == DEMO_SUMMARY
        assert result.execution_id.startswith("demo_")

    @pytest.mark.asyncio
    async def test_demo_is_identical_every_time(self, orchestrator, stub_agent):
        stub_agent.fail = True
        first = await orchestrator.research(_req())
        second = await orchestrator.research(_req())
        assert first == second

    @pytest.mark.asyncio
    async def test_demo_is_not_cached(self, orchestrator, stub_agent, research_cache):
        stub_agent.fail = True
        await orchestrator.research(_req())
        assert len(research_cache) == 0
        stub_agent.fail = False
        result = await orchestrator.research(_req())
        assert result.execution_id == "agent-123"
        assert stub_agent.research_calls == 1

    @pytest.mark.asyncio
    async def test_non_2xx_returns_demo(self, orchestrator, stub_agent):
        stub_agent.status = 502
        result = await orchestrator.research(_req())
        assert result.research_summary == DEMO_SUMMARY

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_demo(self, orchestrator, monkeypatch):
        def _boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(orchestrator, "_shape", _boom)
        result = await orchestrator.research(_req())
        assert result.total_estimated_value == 2000

    @pytest.mark.asyncio
    async def test_open_circuit_skips_agent(self, orchestrator, stub_agent):
        stub_agent.fail = True
        for _ in range(3):  # failure_threshold in the fixture
            await orchestrator.research(_req())
        stub_agent.fail = False
        result = await orchestrator.research(_req())
        assert result.research_summary == DEMO_SUMMARY
        assert stub_agent.research_calls == 0
