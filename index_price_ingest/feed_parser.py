"""
Parser for the line-oriented price feed.

A feed looks like this (one header block, then data rows)::

    EXCHANGE%3DNYSE
    MARKET_OPEN_MINUTE=570
    MARKET_CLOSE_MINUTE=960
    INTERVAL=3600
    COLUMNS=DATE,CLOSE,HIGH,LOW,OPEN,VOLUME
    DATA=
    TIMEZONE_OFFSET=-300
    a1609459200,100.5,101,99,100,5000
    1,100.7,101.2,100.1,100.5,4200
    2,100.9,101.5,100.3,100.7,3900

Rows starting with ``a`` carry an absolute unix timestamp (the anchor);
every other row carries an offset, in ``interval`` units, from the most
recent anchor.

The parser never raises: rows it cannot make sense of are logged and
skipped, and a feed without data simply yields an empty series.
"""

from __future__ import annotations

import logging

from index_price_ingest.models import UNIX_TIME_KEY, Company, SymbolSeries, TimePoint

logger = logging.getLogger(__name__)

_EXCHANGE_PREFIX = "EXCHANGE%3D"
_ANCHOR_MARKER = "a"
_COLUMNS_KEY = "columns"


def _parse_int(cell: str) -> int | None:
    try:
        return int(cell.strip())
    except ValueError:
        return None


def parse_feed(company: Company, interval: int, text: str) -> SymbolSeries:
    """Decode one symbol's raw feed into a ``SymbolSeries``.

    Args:
        company: The constituent the feed was requested for. Its name and
            symbol are copied onto the result.
        interval: Seconds represented by one relative offset unit.
        text: Raw response body.

    Returns:
        The parsed series. ``time_series`` is empty when the body holds no
        usable data rows.
    """
    series = SymbolSeries(name=company.name, symbol=company.symbol)
    last_anchor = 0
    skipped = 0

    for line in text.splitlines():
        if not line.strip():
            continue

        if line.startswith(_EXCHANGE_PREFIX):
            series.exchange = line[len(_EXCHANGE_PREFIX):]
            continue

        if "=" in line:
            key, value = line.split("=", 1)
            key = key.lower()
            if key == _COLUMNS_KEY:
                series.columns = value.split(",")
            else:
                series.metadata[key] = value
            continue

        cells = line.split(",")
        first = cells[0]
        if first.startswith(_ANCHOR_MARKER):
            anchor = _parse_int(first[len(_ANCHOR_MARKER):])
            if anchor is None:
                skipped += 1
                continue
            last_anchor = anchor
            offset = 0
        else:
            offset = _parse_int(first)
            if offset is None:
                skipped += 1
                continue

        point: TimePoint = {UNIX_TIME_KEY: last_anchor + offset * interval}
        for name, value in zip(series.columns[1:], cells[1:]):
            point[name] = value
        series.time_series.append(point)

    if skipped:
        logger.warning(
            "%s: skipped %d feed row(s) without an integer timestamp",
            company.symbol, skipped,
        )
    logger.debug(
        "Parsed %s: exchange=%s, %d columns, %d points",
        company.symbol, series.exchange, len(series.columns), len(series.time_series),
    )
    return series
