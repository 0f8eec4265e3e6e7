# portfolio_tracker/services/circuit_breaker.py
"""
Circuit breaker guarding calls to the quote provider.

After ``failure_threshold`` consecutive provider failures the breaker opens
and every symbol fetch is rejected immediately with ``CircuitBreakerOpen``
instead of waiting on a provider that is down. Callers that value a whole
portfolio treat the rejection like any other per-symbol failure.

States:
    CLOSED    - Fetches pass through
    OPEN      - Fetches rejected until recovery_timeout elapses
    HALF_OPEN - One trial fetch decides between CLOSED and OPEN

Usage:
    from portfolio_tracker.services.circuit_breaker import CircuitBreaker

    breaker = CircuitBreaker(name="yahoo", failure_threshold=5)

    with breaker:
        quote = fetch_quote("AAPL")
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """
    Raised when the breaker rejects a call.

    Attributes:
        breaker_name: Name of the circuit breaker
        time_remaining: Seconds until a trial call is allowed
    """

    def __init__(self, breaker_name: str, time_remaining: float) -> None:
        self.breaker_name = breaker_name
        self.time_remaining = time_remaining
        super().__init__(
            f"Circuit breaker '{breaker_name}' is open. "
            f"Retry in {time_remaining:.1f} seconds."
        )


@dataclass
class CircuitBreakerStats:
    """Counters exposed on the readiness endpoint."""
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    state_changes: int = 0


@dataclass
class CircuitBreaker:
    """
    Thread-safe circuit breaker.

    Shared by every worker thread of a valuation request, so all state is
    guarded by one re-entrant lock.

    Attributes:
        name: Identifier used in logs and errors
        failure_threshold: Consecutive failures before opening
        recovery_timeout: Seconds to stay open before a trial call
        half_open_max_calls: Trial calls admitted while half-open
        excluded_exceptions: Exceptions that do not count as provider failures
            (an unknown ticker says nothing about provider health)
    """

    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 60.0
    half_open_max_calls: int = 1
    excluded_exceptions: tuple[type[Exception], ...] = field(default_factory=tuple)

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _opened_at: float = field(default=0.0, init=False)
    _half_open_calls: int = field(default=0, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False)
    _stats: CircuitBreakerStats = field(default_factory=CircuitBreakerStats, init=False)

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if self.recovery_timeout < 0:
            raise ValueError("recovery_timeout cannot be negative")
        if self.half_open_max_calls < 1:
            raise ValueError("half_open_max_calls must be at least 1")

        logger.info(
            f"CircuitBreaker '{self.name}' initialized: "
            f"threshold={self.failure_threshold}, "
            f"recovery_timeout={self.recovery_timeout}s"
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @property
    def state(self) -> CircuitState:
        """Current state, after applying any pending OPEN -> HALF_OPEN move."""
        with self._lock:
            self._refresh_state()
            return self._state

    @property
    def stats(self) -> CircuitBreakerStats:
        """Snapshot of the counters."""
        with self._lock:
            return CircuitBreakerStats(**vars(self._stats))

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    def status(self) -> dict[str, Any]:
        """Summary used by the readiness health check."""
        stats = self.stats
        return {
            "name": self.name,
            "state": self.state.value,
            "total_calls": stats.total_calls,
            "failed_calls": stats.failed_calls,
            "rejected_calls": stats.rejected_calls,
        }

    def reset(self) -> None:
        """Force the breaker back to CLOSED."""
        with self._lock:
            self._move_to(CircuitState.CLOSED)

    def __enter__(self) -> "CircuitBreaker":
        with self._lock:
            self._stats.total_calls += 1
            if not self._admit():
                self._stats.rejected_calls += 1
                raise CircuitBreakerOpen(self.name, self._time_until_trial())
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> bool:
        with self._lock:
            if exc_val is None or (
                self.excluded_exceptions and isinstance(exc_val, self.excluded_exceptions)
            ):
                self._on_success()
            else:
                self._on_failure()
        return False

    # =========================================================================
    # PRIVATE METHODS (caller holds the lock)
    # =========================================================================

    def _refresh_state(self) -> None:
        if self._state == CircuitState.OPEN and self._time_until_trial() == 0.0:
            self._move_to(CircuitState.HALF_OPEN)

    def _admit(self) -> bool:
        self._refresh_state()
        if self._state == CircuitState.CLOSED:
            return True
        if self._state == CircuitState.HALF_OPEN and self._half_open_calls < self.half_open_max_calls:
            self._half_open_calls += 1
            return True
        return False

    def _on_success(self) -> None:
        self._stats.successful_calls += 1
        if self._state == CircuitState.HALF_OPEN:
            self._move_to(CircuitState.CLOSED)
        else:
            self._failure_count = 0

    def _on_failure(self) -> None:
        self._stats.failed_calls += 1
        if self._state == CircuitState.HALF_OPEN:
            self._move_to(CircuitState.OPEN)
            return
        self._failure_count += 1
        if self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
            self._move_to(CircuitState.OPEN)

    def _move_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        self._stats.state_changes += 1

        if new_state == CircuitState.OPEN:
            self._opened_at = time.monotonic()
        elif new_state == CircuitState.HALF_OPEN:
            self._half_open_calls = 0
        else:
            self._failure_count = 0

        log = logger.warning if new_state == CircuitState.OPEN else logger.info
        log(f"CircuitBreaker '{self.name}' state change: {old_state.value} -> {new_state.value}")

    def _time_until_trial(self) -> float:
        remaining = self.recovery_timeout - (time.monotonic() - self._opened_at)
        return max(0.0, remaining)
