"""Exception hierarchy for the airdrop_agent package.

All domain-specific exceptions inherit from ``AirdropAgentError`` so
callers can catch the entire family with a single ``except`` clause.
"""

from __future__ import annotations


class AirdropAgentError(Exception):
    """Base exception for all airdrop-agent errors."""


class ClientInputError(AirdropAgentError):
    """A required request field is missing or empty (HTTP 400)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UpstreamUnavailable(AirdropAgentError):
    """The research agent could not be reached, timed out or answered non-2xx.

    Never surfaced to clients: callers degrade to synthetic data instead.
    """


class MalformedUpstreamPayload(AirdropAgentError):
    """The research agent answered, but its payload held no usable JSON."""
