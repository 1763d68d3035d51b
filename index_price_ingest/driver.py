"""
Sequential fetch-retry driver.

Walks the constituent list one company at a time, with exactly one
request in flight, and accumulates parsed series into an
``AggregateOutput``. The loop is an explicit state machine:

    REQUESTING
      |--success-----------> ADVANCE --(wait backoff)--> next company
      |                         |--(last company)--> DONE
      |--connection reset--> RETRY_IMMEDIATE --(wait backoff)--> same company
      |--rate limited------> RETRY_BACKOFF --(backoff += 5s, wait)--> same company
      |--unclassified------> RETRY_IMMEDIATE, at most
                             MAX_UNCLASSIFIED_ATTEMPTS in a row

Backoff starts at zero and only grows. It is never reset between
companies, so every rate-limit response slows down the rest of the run.

``transition()`` is a pure function over ``DriverState`` so the retry
policy can be tested without any I/O; ``download_all_prices()`` is the
async loop that performs the waits and fetches.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable

from tqdm import tqdm

from index_price_ingest.exceptions import (
    ConnectionResetFetchError,
    FetchError,
    FetchStalledError,
    RateLimitedError,
)
from index_price_ingest.models import AggregateOutput, Company, SymbolSeries, aggregate_entry

logger = logging.getLogger(__name__)

BACKOFF_STEP_MS = 5000
MAX_UNCLASSIFIED_ATTEMPTS = 5

Fetcher = Callable[[Company], Awaitable[SymbolSeries]]
Sleeper = Callable[[float], Awaitable[object]]
CompletionCallback = Callable[[AggregateOutput], object]


class FetchState(Enum):
    REQUESTING = "requesting"
    RETRY_IMMEDIATE = "retry_immediate"
    RETRY_BACKOFF = "retry_backoff"
    ADVANCE = "advance"
    DONE = "done"


@dataclass(frozen=True)
class DriverState:
    """Snapshot of the driver between two requests.

    Attributes:
        index: Position of the company the next request is for.
        backoff_ms: Wait applied before the next request. Never decreases.
        state: How the previous request ended.
        unclassified_attempts: Consecutive unclassified failures for ``index``.
    """

    index: int = 0
    backoff_ms: int = 0
    state: FetchState = FetchState.REQUESTING
    unclassified_attempts: int = 0

    @property
    def wait_seconds(self) -> float:
        return self.backoff_ms / 1000


def initial_state(total: int) -> DriverState:
    """Starting state for a run over ``total`` companies."""
    if total == 0:
        return DriverState(state=FetchState.DONE)
    return DriverState()


def transition(
    current: DriverState,
    outcome: SymbolSeries | FetchError,
    total: int,
    symbol: str = "",
) -> DriverState:
    """Compute the next state from the outcome of one request.

    Args:
        current: State the request was issued from.
        outcome: The parsed series, or the error the request raised.
        total: Number of companies in the run.
        symbol: Symbol that was requested, for error reporting.

    Raises:
        FetchStalledError: When the same company has now failed
            ``MAX_UNCLASSIFIED_ATTEMPTS`` times in a row with
            unclassified errors.
    """
    if isinstance(outcome, ConnectionResetFetchError):
        return replace(
            current, state=FetchState.RETRY_IMMEDIATE, unclassified_attempts=0
        )

    if isinstance(outcome, RateLimitedError):
        return replace(
            current,
            state=FetchState.RETRY_BACKOFF,
            backoff_ms=current.backoff_ms + BACKOFF_STEP_MS,
            unclassified_attempts=0,
        )

    if isinstance(outcome, FetchError):
        attempts = current.unclassified_attempts + 1
        if attempts >= MAX_UNCLASSIFIED_ATTEMPTS:
            raise FetchStalledError(symbol or outcome.symbol, current.index, attempts)
        return replace(
            current, state=FetchState.RETRY_IMMEDIATE, unclassified_attempts=attempts
        )

    next_index = current.index + 1
    return DriverState(
        index=next_index,
        backoff_ms=current.backoff_ms,
        state=FetchState.DONE if next_index >= total else FetchState.ADVANCE,
    )


async def download_all_prices(
    companies: list[Company],
    fetch: Fetcher,
    *,
    sleep: Sleeper = asyncio.sleep,
    on_complete: CompletionCallback | None = None,
    progress: bool = True,
) -> AggregateOutput:
    """Fetch every company in order and aggregate the results.

    Args:
        companies: Constituents, processed strictly in list order.
        fetch: Coroutine function returning a ``SymbolSeries`` or raising
            a ``FetchError`` subclass (see ``client.make_fetcher``).
        sleep: Awaitable used for the backoff waits (seconds).
        on_complete: Called once with the finished output.
        progress: Show a tqdm progress bar.

    Returns:
        Mapping of symbol -> ``{"ticker": time_series, "name": name}``,
        one entry per company, in list order.

    Raises:
        FetchStalledError: If one company keeps failing with unclassified
            errors. Nothing is delivered to ``on_complete`` in that case.
    """
    total = len(companies)
    output: AggregateOutput = {}
    state = initial_state(total)

    logger.info("Downloading 1 year of price history for %d companies", total)
    bar = tqdm(total=total, desc="Downloading prices", unit="symbol", disable=not progress)
    try:
        while state.state is not FetchState.DONE:
            if state.state is not FetchState.REQUESTING:
                await sleep(state.wait_seconds)

            company = companies[state.index]
            outcome: SymbolSeries | FetchError
            try:
                outcome = await fetch(company)
            except ConnectionResetFetchError as exc:
                logger.warning("Connection reset, retrying %s: %s", company.symbol, exc)
                outcome = exc
            except RateLimitedError as exc:
                logger.warning(
                    "Rate limited, retrying %s after %d ms: %s",
                    company.symbol, state.backoff_ms + BACKOFF_STEP_MS, exc,
                )
                outcome = exc
            except FetchError as exc:
                logger.error("Fetch failed for %s: %s", company.symbol, exc)
                outcome = exc
            else:
                output[outcome.symbol] = aggregate_entry(outcome)
                bar.update(1)

            state = transition(state, outcome, total, symbol=company.symbol)
    finally:
        bar.close()

    logger.info("Downloaded %d of %d companies (final backoff %d ms)",
                len(output), total, state.backoff_ms)
    if on_complete is not None:
        on_complete(output)
    return output
