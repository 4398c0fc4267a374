"""
Pydantic models used throughout the Airdrop Research Agent.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class ResearchRequest(BaseModel):
    """Body of ``POST /api/research-airdrops``.

    ``wallet_address`` is optional at the schema level so a missing value
    surfaces as a 400 from the service rather than a 422 from FastAPI.
    """

    wallet_address: Optional[str] = Field(None, description="Wallet to research")
    timeframe_days: int = Field(30, ge=1, description="Look-back window in days")


class EligibilityRequest(BaseModel):
    """Body of ``POST /api/check-eligibility``."""

    wallet_address: Optional[str] = None
    protocol: Optional[str] = None


class ClaimRequest(BaseModel):
    """Body of ``POST /api/claim-airdrop``."""

    wallet_address: Optional[str] = None
    airdrop_id: Optional[str] = None
    claim_amount: Optional[float] = Field(None, ge=0.0)


# ---------------------------------------------------------------------------
# Research result  (the main output)
# ---------------------------------------------------------------------------
class AirdropFinding(BaseModel):
    """A single airdrop opportunity found for a wallet."""

    protocol: str
    eligible: bool = False
    estimated_value: float = Field(0.0, ge=0.0)
    deadline: str = Field("", description="Claim deadline (YYYY-MM-DD)")
    requirements: list[str] = Field(default_factory=list)


class ResearchResult(BaseModel):
    """Normalised research answer returned by ``/api/research-airdrops``.

    ``total_estimated_value`` is always derived from the findings: any value
    supplied by the caller (or by the research agent) is replaced with the
    sum over eligible findings.
    """

    wallet_address: str
    found_airdrops: list[AirdropFinding] = Field(default_factory=list)
    research_summary: str = ""
    total_estimated_value: float = 0.0
    execution_id: str

    @model_validator(mode="after")
    def _derive_total(self) -> "ResearchResult":
        self.total_estimated_value = sum(
            f.estimated_value for f in self.found_airdrops if f.eligible
        )
        return self


class CacheEntry(BaseModel):
    """A cached research result and the epoch second it was stored."""

    key: str
    value: ResearchResult
    created_at: float


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------
class EligibilityResult(BaseModel):
    """Eligibility of one wallet for one protocol's airdrop."""

    eligible: bool
    protocol: str
    estimated_reward: float = Field(0.0, ge=0.0)
    requirements: list[str] = Field(default_factory=list)
    research_findings: str = ""


# ---------------------------------------------------------------------------
# Claims (simulated – no relation to any real ledger)
# ---------------------------------------------------------------------------
class ClaimReceipt(BaseModel):
    """Synthetic transaction receipt for a simulated claim."""

    success: bool
    transaction_hash: str = Field(..., pattern=r"^0x[0-9a-f]{64}$")
    claimed_amount: float
    airdrop_id: str
    timestamp: str
    network: str
    gas_used: int
    status: str


class ClaimRecord(BaseModel):
    """One entry of a wallet's claim history."""

    airdrop_id: str
    protocol: str
    amount: float
    timestamp: str
    transaction_hash: str
    status: str = "confirmed"


class ClaimHistory(BaseModel):
    wallet_address: str
    total_claimed: float
    claims: list[ClaimRecord] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
class HealthReport(BaseModel):
    """Payload of ``GET /health``."""

    status: Literal["healthy", "degraded"]
    timestamp: str
    service: str
    sentient_api: Literal["connected", "disconnected"]
    cache_size: int
    uptime_seconds: float
    circuit_breaker: dict = Field(default_factory=dict)
    warning: Optional[str] = None
