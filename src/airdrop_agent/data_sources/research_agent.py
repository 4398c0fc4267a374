"""
Sentient research agent client for the Airdrop Research Agent.

The agent exposes two endpoints:

- ``POST {base_url}/research`` with ``{goal, profile, max_steps, save_state}``
  returning ``{"result": "<free text>", "execution_id": "..."}``
- ``GET {base_url}/health``

Each research call is a single attempt: no retries.  Transport errors,
timeouts, non-2xx answers and an open circuit all surface as
``UpstreamUnavailable`` so callers have one thing to catch.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..circuit_breaker import CircuitBreaker, CircuitOpenError
from ..exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)


class ResearchAgentClient:
    """Async client for the external research agent."""

    def __init__(
        self,
        base_url: str,
        *,
        profile: str = "crypto_analytics_agent",
        timeout: float = 120.0,
        health_timeout: float = 5.0,
        circuit_breaker: CircuitBreaker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self._timeout = timeout
        self._health_timeout = health_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.circuit_breaker = circuit_breaker

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _post_research(self, body: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        try:
            resp = await client.post("/research", json=body)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailable(
                f"research agent timed out after {self._timeout:.0f}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailable(
                f"research agent HTTP {exc.response.status_code}"
            ) from exc
        except httpx.RequestError as exc:
            raise UpstreamUnavailable(f"research agent unreachable: {exc}") from exc
        except ValueError as exc:
            raise UpstreamUnavailable("research agent returned a non-JSON body") from exc
        if not isinstance(payload, dict):
            raise UpstreamUnavailable("research agent returned a non-object body")
        return payload

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def research(
        self,
        goal: str,
        *,
        max_steps: int,
        save_state: bool = False,
    ) -> dict[str, Any]:
        """Run one research task and return the agent's JSON payload."""
        body = {
            "goal": goal,
            "profile": self.profile,
            "max_steps": max_steps,
            "save_state": save_state,
        }
        if self.circuit_breaker is None:
            return await self._post_research(body)
        try:
            return await self.circuit_breaker.call(self._post_research, body)
        except CircuitOpenError as exc:
            logger.warning("Research agent circuit OPEN – fast-failing")
            raise UpstreamUnavailable(str(exc)) from exc

    async def health(self, timeout: Optional[float] = None) -> bool:
        """Return True when ``GET /health`` answers 2xx within *timeout*."""
        client = await self._get_client()
        try:
            resp = await client.get(
                "/health", timeout=timeout if timeout is not None else self._health_timeout
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Research agent health check failed: %s", exc)
            return False
        return True
