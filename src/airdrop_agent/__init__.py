"""
Airdrop Research Agent package initializer.

This package exposes the research orchestrator and its collaborators for
external usage.  The HTTP API lives in ``airdrop_agent.api`` and should be
imported explicitly.
"""

from .cache import ResearchCache  # noqa: F401
from .orchestrator import EligibilityChecker, ResearchOrchestrator  # noqa: F401

__all__ = ["EligibilityChecker", "ResearchCache", "ResearchOrchestrator"]
