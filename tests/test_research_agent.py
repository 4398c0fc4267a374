"""Tests for the research agent HTTP client (httpx MockTransport)."""

from __future__ import annotations

import json

import httpx
import pytest

from airdrop_agent.circuit_breaker import CircuitBreaker, CircuitState
from airdrop_agent.data_sources.research_agent import ResearchAgentClient
from airdrop_agent.exceptions import UpstreamUnavailable


def _client(handler, **kwargs) -> ResearchAgentClient:
    return ResearchAgentClient(
        "http://agent.test/", transport=httpx.MockTransport(handler), **kwargs
    )


class TestResearch:

    @pytest.mark.asyncio
    async def test_posts_goal_and_returns_payload(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"result": "done", "execution_id": "e1"})

        client = _client(handler, profile="crypto_analytics_agent")
        payload = await client.research("find drops", max_steps=25)
        await client.close()

        assert payload == {"result": "done", "execution_id": "e1"}
        assert seen["url"] == "http://agent.test/research"
        assert seen["body"] == {
            "goal": "find drops",
            "profile": "crypto_analytics_agent",
            "max_steps": 25,
            "save_state": False,
        }

    @pytest.mark.asyncio
    async def test_single_attempt_on_failure(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        client = _client(handler)
        with pytest.raises(UpstreamUnavailable, match="HTTP 503"):
            await client.research("g", max_steps=1)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client = _client(handler)
        with pytest.raises(UpstreamUnavailable, match="timed out"):
            await client.research("g", max_steps=1)

    @pytest.mark.asyncio
    async def test_connection_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)
        with pytest.raises(UpstreamUnavailable, match="unreachable"):
            await client.research("g", max_steps=1)

    @pytest.mark.asyncio
    async def test_non_json_body_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        client = _client(handler)
        with pytest.raises(UpstreamUnavailable):
            await client.research("g", max_steps=1)

    @pytest.mark.asyncio
    async def test_non_object_body_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["a", "b"])

        client = _client(handler)
        with pytest.raises(UpstreamUnavailable):
            await client.research("g", max_steps=1)

    @pytest.mark.asyncio
    async def test_open_circuit_is_unavailable(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        breaker = CircuitBreaker("sentient_api", failure_threshold=2, recovery_timeout=60)
        client = _client(handler, circuit_breaker=breaker)
        for _ in range(2):
            with pytest.raises(UpstreamUnavailable):
                await client.research("g", max_steps=1)
        assert breaker.state == CircuitState.OPEN
        with pytest.raises(UpstreamUnavailable, match="OPEN"):
            await client.research("g", max_steps=1)
        assert len(calls) == 2


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self):
        client = _client(lambda request: httpx.Response(200, json={"status": "ok"}))
        assert await client.health() is True

    @pytest.mark.asyncio
    async def test_non_2xx(self):
        client = _client(lambda request: httpx.Response(500))
        assert await client.health() is False

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("slow", request=request)

        client = _client(handler)
        assert await client.health(timeout=0.1) is False


class TestClientLifecycle:

    @pytest.mark.asyncio
    async def test_close_and_reopen(self):
        client = _client(lambda request: httpx.Response(200, json={"result": ""}))
        await client.research("g", max_steps=1)
        await client.close()
        # A closed client is transparently recreated
        assert await client.research("g", max_steps=1) == {"result": ""}
        await client.close()

    @pytest.mark.asyncio
    async def test_close_without_use(self):
        client = _client(lambda request: httpx.Response(200))
        await client.close()
