"""Tests for the demo-data fallback generator."""

from __future__ import annotations

from airdrop_agent.fallback import DEMO_SUMMARY, ResponseFallbackGenerator

from conftest import FakeClock, WALLET


class TestGenerateDemo:
    def test_fixed_findings(self):
        r = ResponseFallbackGenerator(clock=FakeClock()).generate_demo(WALLET)
        assert [f.protocol for f in r.found_airdrops] == [
            "Uniswap V4",
            "Arbitrum Odyssey",
            "zkSync Era",
        ]
        assert [f.eligible for f in r.found_airdrops] == [True, True, False]
        assert [f.estimated_value for f in r.found_airdrops] == [1250.0, 750.0, 520.0]
        assert all(len(f.requirements) == 4 for f in r.found_airdrops)

    def test_total_is_2000(self):
        r = ResponseFallbackGenerator().generate_demo(WALLET)
        assert r.total_estimated_value == 2000.0

    def test_summary_and_wallet(self):
        r = ResponseFallbackGenerator().generate_demo(WALLET)
        assert r.research_summary == DEMO_SUMMARY
        assert r.wallet_address == WALLET

    def test_execution_id_prefix(self):
        r = ResponseFallbackGenerator(clock=FakeClock()).generate_demo(WALLET)
        assert r.execution_id == "demo_1748736000000"

    def test_deterministic_with_fixed_clock(self):
        gen = ResponseFallbackGenerator(clock=FakeClock())
        assert gen.generate_demo(WALLET) == gen.generate_demo(WALLET)

    def test_calls_do_not_share_mutable_state(self):
        gen = ResponseFallbackGenerator()
        first = gen.generate_demo(WALLET)
        first.found_airdrops[0].requirements.append("mutated")
        second = gen.generate_demo(WALLET)
        assert "mutated" not in second.found_airdrops[0].requirements
