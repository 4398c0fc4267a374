"""
Project configuration file for the Airdrop Research Agent.

This module centralises all user-modifiable settings such as the research
agent endpoint, timeouts, cache sizing and other options.  You can edit
these values directly or set environment variables to override them.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _parse_float(name: str, default: str, *, low: float = 0.0, high: float = 1.0) -> float:
    """Parse an env var as a float and validate it within [low, high]."""
    raw = os.getenv(name, default)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.error("Invalid value for %s: %r – using default %s", name, raw, default)
        value = float(default)
    if not (low <= value <= high):
        logger.warning("%s=%.4f is outside [%.1f, %.1f] – clamped", name, value, low, high)
        value = max(low, min(value, high))
    return value


def _parse_int(name: str, default: str, *, minimum: int = 1) -> int:
    """Parse an env var as an int and enforce a minimum."""
    raw = os.getenv(name, default)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.error("Invalid value for %s: %r – using default %s", name, raw, default)
        value = int(default)
    if value < minimum:
        logger.warning("%s=%d is below minimum %d – clamped", name, value, minimum)
        value = minimum
    return value


def _parse_optional_int(name: str) -> Optional[int]:
    """Parse an optional int env var; unset or invalid means ``None``."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.error("Invalid value for %s: %r – ignoring", name, raw)
        return None


# ---------------------------------------------------------------------------
# Sentient research agent
# ---------------------------------------------------------------------------
SENTIENT_API_URL: str = os.getenv("SENTIENT_API_URL", "http://localhost:8000").rstrip("/")
AGENT_PROFILE: str = os.getenv("AGENT_PROFILE", "crypto_analytics_agent")
RESEARCH_MAX_STEPS: int = _parse_int("RESEARCH_MAX_STEPS", "25", minimum=1)
ELIGIBILITY_MAX_STEPS: int = _parse_int("ELIGIBILITY_MAX_STEPS", "15", minimum=1)

# ---------------------------------------------------------------------------
# Timeouts (seconds)
# ---------------------------------------------------------------------------
RESEARCH_TIMEOUT_SECONDS: float = _parse_float(
    "RESEARCH_TIMEOUT_SECONDS", "120", low=1.0, high=600.0
)
HEALTH_TIMEOUT_SECONDS: float = _parse_float(
    "HEALTH_TIMEOUT_SECONDS", "5", low=0.5, high=60.0
)

# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------
CACHE_FRESHNESS_SECONDS: int = _parse_int("CACHE_FRESHNESS_SECONDS", "300", minimum=1)
CACHE_MAX_ENTRIES: int = _parse_int("CACHE_MAX_ENTRIES", "10000", minimum=1)

# ---------------------------------------------------------------------------
# Claim simulation
# ---------------------------------------------------------------------------
CLAIM_LEDGER_MAX_PER_WALLET: int = _parse_int(
    "CLAIM_LEDGER_MAX_PER_WALLET", "100", minimum=1
)
CLAIM_LEDGER_MAX_WALLETS: int = _parse_int("CLAIM_LEDGER_MAX_WALLETS", "10000", minimum=1)

# Seed for the synthetic-data RNG (unset = OS entropy)
RANDOM_SEED: Optional[int] = _parse_optional_int("RANDOM_SEED")

# ---------------------------------------------------------------------------
# Sentry (error tracking)
# ---------------------------------------------------------------------------
SENTRY_DSN: str = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT: str = os.getenv("SENTRY_ENVIRONMENT", "production")
SENTRY_TRACES_SAMPLE_RATE: float = _parse_float(
    "SENTRY_TRACES_SAMPLE_RATE", "0.1", low=0.0, high=1.0
)

# ---------------------------------------------------------------------------
# Circuit breaker
# ---------------------------------------------------------------------------
CB_FAILURE_THRESHOLD: int = _parse_int("CB_FAILURE_THRESHOLD", "5", minimum=1)
CB_RECOVERY_TIMEOUT: float = _parse_float(
    "CB_RECOVERY_TIMEOUT", "60", low=1.0, high=3600.0
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT: str = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# ---------------------------------------------------------------------------
# API server
# ---------------------------------------------------------------------------
SERVICE_NAME: str = os.getenv("SERVICE_NAME", "Airdrop Claimer API")
API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = _parse_int("API_PORT", "3000", minimum=1)
CORS_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "*").split(",")
    if o.strip()
]
