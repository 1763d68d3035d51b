"""
Core record types shared by the loader, parser and driver.

- ``Company``: one index constituent from the seed file.
- ``TimePoint``: one parsed feed row. A plain dict because the field
  names come from the feed's own ``COLUMNS`` header and differ per feed.
- ``SymbolSeries``: everything parsed out of one symbol's feed.
- ``AggregateOutput``: the driver's accumulator, symbol -> entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

TimePoint = dict[str, Any]
AggregateOutput = dict[str, dict[str, Any]]

# Key holding the derived timestamp on every TimePoint
UNIX_TIME_KEY = "unix_time"


@dataclass(frozen=True)
class Company:
    """An index constituent, e.g. ``Company("CVX", "CHEVRON CORP.", "ENERGY")``."""

    symbol: str
    name: str
    sector: str


@dataclass
class SymbolSeries:
    """Parsed price feed for a single company.

    Attributes:
        name: Company name, carried over from the seed record.
        symbol: Ticker symbol, carried over from the seed record.
        exchange: Exchange identifier announced by the feed, if any.
        columns: Field names from the feed's ``COLUMNS=`` line. Index 0
            names the timestamp column and is not copied onto points.
        time_series: Time points in feed (chronological) order.
        metadata: Every other ``KEY=value`` header line, keys lower-cased.
    """

    name: str
    symbol: str
    exchange: str | None = None
    columns: list[str] = field(default_factory=list)
    time_series: list[TimePoint] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)


def aggregate_entry(series: SymbolSeries) -> dict[str, Any]:
    """Build the value stored under ``series.symbol`` in an AggregateOutput."""
    return {"ticker": series.time_series, "name": series.name}
