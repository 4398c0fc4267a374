"""
Research orchestration for the Airdrop Research Agent.

``ResearchOrchestrator.research`` is the core flow behind
``/api/research-airdrops``:

    cache hit (fresh)  -> return cached result
    cache miss         -> ask the research agent
                          -> JSON found in its answer   -> validate
                          -> no usable JSON             -> ResultNormalizer
                          -> store in cache, return
    agent failure      -> demo data (never cached)

``EligibilityChecker.check`` follows the same pattern for a single protocol,
with a smaller step budget and no cache.  Both degrade to synthetic data on
any upstream failure; only missing client input raises.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Optional

from pydantic import ValidationError

from .cache import ResearchCache, research_cache_key
from .data_sources.research_agent import ResearchAgentClient
from .exceptions import ClientInputError, MalformedUpstreamPayload, UpstreamUnavailable
from .fallback import ResponseFallbackGenerator
from .models import EligibilityResult, ResearchRequest, ResearchResult
from .normalizer import (
    ResultNormalizer,
    extract_json,
    make_execution_id,
    research_result_from_json,
)

logger = logging.getLogger(__name__)

RESEARCH_PROTOCOLS = """\
- Uniswap V4, Aave V3, Compound V3
- Arbitrum, Optimism, zkSync, Base, Polygon zkEVM
- Starknet, Scroll, Linea
- Blur, OpenSea, LooksRare
- LayerZero, Axelar, Wormhole"""

DEFAULT_ELIGIBILITY_REQUIREMENTS = (
    "Active participation",
    "Minimum transactions",
    "Specific token holdings",
)
UNAVAILABLE_FINDINGS = "Live eligibility research is unavailable; this is an estimate."


def build_research_goal(wallet_address: str, timeframe_days: int) -> str:
    """Natural-language research goal sent to the agent."""
    return f"""\
Comprehensive airdrop research for wallet {wallet_address} from last {timeframe_days} days.

CRITICAL: Return structured JSON data in this exact format:
{{
    "wallet_address": "{wallet_address}",
    "found_airdrops": [
        {{
            "protocol": "Protocol Name",
            "eligible": true/false,
            "estimated_value": 1000,
            "deadline": "2024-12-31",
            "requirements": ["req1", "req2"]
        }}
    ],
    "research_summary": "Detailed analysis summary...",
    "total_estimated_value": 5000,
    "execution_id": "unique_id"
}}

Analyze these protocols specifically:
{RESEARCH_PROTOCOLS}

Focus on:
1. Current eligibility based on on-chain activity
2. Accurate reward estimations
3. Clear requirements and deadlines
4. Official documentation links

Return valid JSON only.
"""


def build_eligibility_goal(wallet_address: str, protocol: str) -> str:
    return (
        f"Check airdrop eligibility for wallet {wallet_address} on {protocol}.\n"
        'Return JSON: {"eligible": true/false, "estimated_reward": number, '
        '"requirements": [], "research_findings": "text"}\n'
    )


class ResearchOrchestrator:
    """Cache-first research with graceful degradation.

    Parameters
    ----------
    client:
        Research agent client.
    cache:
        Shared ``ResearchCache``; owned by the caller.
    normalizer:
        Synthetic shaper used when the agent answer holds no usable JSON.
    fallback:
        Demo data generator used when the agent cannot be reached.
    freshness_seconds:
        Age below which a cached result is served as-is.
    max_steps:
        Step budget passed to the agent.
    """

    def __init__(
        self,
        client: ResearchAgentClient,
        cache: ResearchCache,
        *,
        normalizer: Optional[ResultNormalizer] = None,
        fallback: Optional[ResponseFallbackGenerator] = None,
        freshness_seconds: float = 300,
        max_steps: int = 25,
    ) -> None:
        self.client = client
        self.cache = cache
        self.normalizer = normalizer or ResultNormalizer()
        self.fallback = fallback or ResponseFallbackGenerator()
        self.freshness_seconds = freshness_seconds
        self.max_steps = max_steps

    async def research(self, request: ResearchRequest) -> ResearchResult:
        """Return research for *request*; only missing input raises."""
        wallet = (request.wallet_address or "").strip()
        if not wallet:
            raise ClientInputError("Wallet address is required")
        timeframe = request.timeframe_days

        key = research_cache_key(wallet, timeframe)
        entry = self.cache.get(key)
        if entry is not None and self.cache.is_fresh(entry, self.freshness_seconds):
            logger.info("Research cache hit for %s", key)
            return entry.value

        try:
            logger.info("Calling research agent for %s (%d days)", wallet, timeframe)
            payload = await self.client.research(
                build_research_goal(wallet, timeframe),
                max_steps=self.max_steps,
            )
            result = self._shape(payload, wallet)
        except UpstreamUnavailable as exc:
            logger.warning("Research agent unavailable for %s: %s – serving demo data", wallet, exc)
            return self.fallback.generate_demo(wallet)
        except Exception:
            logger.exception("Research failed for %s – serving demo data", wallet)
            return self.fallback.generate_demo(wallet)

        self.cache.put(key, result)
        logger.info(
            "Research completed for %s: %d findings, total=%.2f",
            wallet, len(result.found_airdrops), result.total_estimated_value,
        )
        return result

    def _shape(self, payload: dict[str, Any], wallet: str) -> ResearchResult:
        try:
            data = extract_json(str(payload.get("result") or ""))
            return research_result_from_json(
                data,
                wallet,
                str(payload.get("execution_id") or make_execution_id()),
            )
        except MalformedUpstreamPayload as exc:
            logger.warning("Agent answer unusable (%s) – using fallback parser", exc)
            return self.normalizer.normalize(payload, wallet)


class EligibilityChecker:
    """Single-protocol eligibility check; never raises for upstream failures."""

    def __init__(
        self,
        client: ResearchAgentClient,
        *,
        rng: Optional[random.Random] = None,
        max_steps: int = 15,
    ) -> None:
        self.client = client
        self._rng = rng or random.Random()
        self.max_steps = max_steps

    async def check(self, wallet_address: Optional[str], protocol: Optional[str]) -> EligibilityResult:
        wallet = (wallet_address or "").strip()
        protocol = (protocol or "").strip()
        if not wallet:
            raise ClientInputError("Wallet address is required")
        if not protocol:
            raise ClientInputError("Protocol is required")

        try:
            payload = await self.client.research(
                build_eligibility_goal(wallet, protocol),
                max_steps=self.max_steps,
            )
        except UpstreamUnavailable as exc:
            logger.warning("Eligibility check for %s on %s degraded: %s", wallet, protocol, exc)
            return self._synthetic(protocol, UNAVAILABLE_FINDINGS)
        except Exception:
            logger.exception("Eligibility check failed for %s on %s", wallet, protocol)
            return self._synthetic(protocol, UNAVAILABLE_FINDINGS)

        text = str(payload.get("result") or "")
        try:
            return self._from_json(extract_json(text), protocol, text)
        except MalformedUpstreamPayload:
            return self._synthetic(protocol, text or "Eligibility research completed.")

    def _synthetic(self, protocol: str, findings: str) -> EligibilityResult:
        return EligibilityResult(
            eligible=self._rng.random() > 0.5,
            protocol=protocol,
            estimated_reward=float(self._rng.randrange(100, 1600)),
            requirements=list(DEFAULT_ELIGIBILITY_REQUIREMENTS),
            research_findings=findings,
        )

    def _from_json(self, data: dict[str, Any], protocol: str, text: str) -> EligibilityResult:
        base = self._synthetic(protocol, text or "Eligibility research completed.")
        merged = base.model_dump()
        merged.update({k: v for k, v in data.items() if k in merged and v is not None})
        merged["protocol"] = protocol
        try:
            return EligibilityResult.model_validate(merged)
        except ValidationError as exc:
            raise MalformedUpstreamPayload("agent eligibility JSON is invalid") from exc
