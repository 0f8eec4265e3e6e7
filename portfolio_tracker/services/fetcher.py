# portfolio_tracker/services/fetcher.py
"""
Concurrent per-symbol fetching with per-symbol failure isolation.

Both the valuation engine and the history reconstruction need "one call per
unique symbol, in parallel, and a failed symbol must not sink the others".
This module does exactly that and nothing else.

Behavior:
- Each unique symbol is looked up once, on a thread pool of ``max_workers``
  (1 serializes calls for rate-limited providers)
- Any exception from a lookup is recorded as that symbol's failure
- Each lookup has its own deadline, starting when it begins running. A lookup
  past its deadline is recorded as timed out; its thread is abandoned and its
  result discarded. Symbols queued behind it are unaffected
- Worker threads run in a copy of the caller's context, so log records keep
  the request's correlation ID

Usage:
    outcome = fetch_per_symbol(["AAPL", "TSLA"], provider.get_current_quote, max_workers=4)
    outcome.results   # {"AAPL": Quote(...)}
    outcome.failures  # {"TSLA": "Ticker 'TSLA' not found by yahoo"}
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from contextvars import copy_context
from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, TypeVar

from portfolio_tracker.services.circuit_breaker import CircuitBreakerOpen
from portfolio_tracker.services.exceptions import MarketDataError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# How often queued lookups are checked for having started
POLL_INTERVAL = 0.05


@dataclass
class FetchOutcome(Generic[T]):
    """
    Per-symbol results of a fan-out fetch.

    Attributes:
        results: Symbol -> value for successful lookups
        failures: Symbol -> reason for failed or timed-out lookups
    """

    results: dict[str, T] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)


def unique_symbols(symbols: Iterable[str]) -> list[str]:
    """Distinct symbols in first-seen order."""
    return list(dict.fromkeys(symbols))


def fetch_per_symbol(
        symbols: Iterable[str],
        lookup: Callable[[str], T],
        max_workers: int = 1,
        timeout: float | None = None,
) -> FetchOutcome[T]:
    """
    Call ``lookup`` once per unique symbol, concurrently.

    Args:
        symbols: Symbols, duplicates allowed
        lookup: Per-symbol fetch; raises on failure
        max_workers: Thread pool size (>= 1)
        timeout: Seconds allowed for one lookup, counted from when that
            lookup starts running, or None to wait indefinitely. Time a
            symbol spends queued behind others does not count against it.

    Returns:
        FetchOutcome; every unique symbol is in exactly one of its maps
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {max_workers}")

    pending = unique_symbols(symbols)
    outcome: FetchOutcome[T] = FetchOutcome()
    if not pending:
        return outcome

    workers = min(max_workers, len(pending))
    started: dict[str, float] = {}

    def timed_lookup(symbol: str) -> T:
        started[symbol] = time.monotonic()
        return lookup(symbol)

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="symbol-fetch")
    try:
        futures: dict[Future, str] = {
            executor.submit(copy_context().run, timed_lookup, symbol): symbol
            for symbol in pending
        }
        waiting = set(futures)

        while waiting:
            done, _ = wait(
                waiting,
                timeout=_next_check(waiting, futures, started, timeout),
                return_when=FIRST_COMPLETED,
            )
            for future in done:
                waiting.discard(future)
                _record(outcome, futures[future], future)

            if timeout is None:
                continue
            now = time.monotonic()
            for future in list(waiting):
                symbol = futures[future]
                start = started.get(symbol)
                if start is None or future.done() or now - start < timeout:
                    continue
                waiting.discard(future)
                logger.warning(f"Lookup for {symbol} timed out after {timeout}s")
                outcome.failures[symbol] = f"Lookup for {symbol} timed out"
    finally:
        # Do not block on abandoned lookups
        executor.shutdown(wait=False, cancel_futures=True)

    logger.debug(
        f"Fetched {len(outcome.results)}/{len(pending)} symbols "
        f"({len(outcome.failures)} failed, workers={workers})"
    )
    return outcome


def _next_check(
        waiting: set[Future],
        futures: dict[Future, str],
        started: dict[str, float],
        timeout: float | None,
) -> float | None:
    """Seconds until the earliest running lookup's deadline, capped by the poll interval."""
    if timeout is None:
        return None
    now = time.monotonic()
    remaining = [
        started[futures[future]] + timeout - now
        for future in waiting
        if futures[future] in started
    ]
    # Queued lookups start without waking wait(); poll to pick up their start times
    if len(remaining) < len(waiting):
        remaining.append(POLL_INTERVAL)
    return max(0.0, min(remaining))


def _record(outcome: FetchOutcome[T], symbol: str, future: Future) -> None:
    try:
        outcome.results[symbol] = future.result()
    except (MarketDataError, CircuitBreakerOpen) as e:
        logger.warning(f"Lookup failed for {symbol}: {e}")
        outcome.failures[symbol] = str(e)
    except Exception as e:
        logger.error(f"Unexpected error looking up {symbol}: {e}", exc_info=True)
        outcome.failures[symbol] = str(e)
