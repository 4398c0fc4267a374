"""
Circuit breaker for the research agent connection.

When the agent keeps failing, research and eligibility requests stop
waiting out the full agent timeout and go straight to demo or synthetic
data.  After ``recovery_timeout`` seconds a single probe request is let
through; if it succeeds the breaker closes again.

    breaker = CircuitBreaker("sentient_api", failure_threshold=5, recovery_timeout=60)
    payload = await breaker.call(client._post_research, body)
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """The agent is considered down; the call was not attempted."""

    def __init__(self, name: str, retry_in: float) -> None:
        super().__init__(
            f"Circuit '{name}' is OPEN – research agent skipped for {retry_in:.0f}s"
        )
        self.circuit_name = name
        self.retry_in = retry_in


@dataclass
class BreakerCounters:
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    rejected: int = 0

    @property
    def failure_rate(self) -> float:
        return self.failed / self.attempted if self.attempted else 0.0


class CircuitBreaker:
    """Open after ``failure_threshold`` consecutive agent failures.

    ``clock`` must be monotonic; tests pass a fake one.
    """

    def __init__(
        self,
        name: str,
        *,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.failure_threshold = max(1, failure_threshold)
        self.recovery_timeout = recovery_timeout
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._streak = 0
        self._opened_at: Optional[float] = None
        self._probing = False
        self._lock = asyncio.Lock()
        self.counters = BreakerCounters()

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN and self._cooled_down():
            return CircuitState.HALF_OPEN
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state == CircuitState.CLOSED

    def _cooled_down(self) -> bool:
        return self._clock() - (self._opened_at or 0.0) >= self.recovery_timeout

    async def _admit(self) -> None:
        async with self._lock:
            if self._state == CircuitState.OPEN and self._cooled_down():
                self._move(CircuitState.HALF_OPEN)
            if self._state == CircuitState.OPEN or (
                self._state == CircuitState.HALF_OPEN and self._probing
            ):
                self.counters.rejected += 1
                retry_in = self.recovery_timeout - (self._clock() - (self._opened_at or 0.0))
                raise CircuitOpenError(self.name, max(0.0, retry_in))
            if self._state == CircuitState.HALF_OPEN:
                self._probing = True
            self.counters.attempted += 1

    async def call(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Await *func* unless the circuit is open.

        Only one probe runs while HALF_OPEN; concurrent callers are
        rejected with ``CircuitOpenError`` until it settles.
        """
        await self._admit()
        try:
            result = await func(*args, **kwargs)
        except Exception:
            await self._record(ok=False)
            raise
        except BaseException:
            # Cancelled: reopen the half-open slot without counting a failure.
            self._probing = False
            raise
        await self._record(ok=True)
        return result

    async def _record(self, *, ok: bool) -> None:
        async with self._lock:
            self._probing = False
            if ok:
                self.counters.succeeded += 1
                self._streak = 0
                self._move(CircuitState.CLOSED)
                return
            self.counters.failed += 1
            self._streak += 1
            if self._state == CircuitState.HALF_OPEN or self._streak >= self.failure_threshold:
                self._opened_at = self._clock()
                self._move(CircuitState.OPEN)

    def _move(self, new_state: CircuitState) -> None:
        if new_state == self._state:
            return
        log = logger.info if new_state == CircuitState.CLOSED else logger.warning
        log(
            "research agent breaker '%s': %s -> %s after %d consecutive failures",
            self.name, self._state.value, new_state.value, self._streak,
        )
        self._state = new_state

    def status(self) -> dict[str, Any]:
        """Snapshot embedded in the /health report."""
        return {
            "name": self.name,
            "state": self.state.value,
            "consecutive_failures": self._streak,
            "attempted": self.counters.attempted,
            "failed": self.counters.failed,
            "rejected": self.counters.rejected,
            "failure_rate": round(self.counters.failure_rate, 3),
            "recovery_timeout_s": self.recovery_timeout,
        }
