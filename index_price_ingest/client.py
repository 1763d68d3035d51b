"""
Remote price feed client.

Issues exactly one HTTP GET per call and turns the outcome into either a
parsed ``SymbolSeries`` or one of the ``FetchError`` subclasses. Retrying
is not done here; that is the driver's job.

Outcome classification:

- connection reset (``ConnectionResetError``, a ``ClientOSError`` carrying
  ``ECONNRESET``, or ``ServerDisconnectedError``) -> ``ConnectionResetFetchError``
- no response at all (refused connection, DNS failure, timeout, other
  client errors) -> ``RateLimitedError``
- HTTP 403 -> ``RateLimitedError``
- HTTP 200 whose body parses to no time points, or cannot be decoded
  -> ``RateLimitedError``
- any other status -> ``UnclassifiedFetchError``
"""

from __future__ import annotations

import asyncio
import errno
import logging

import aiohttp

from index_price_ingest.config import SourceConfig
from index_price_ingest.driver import Fetcher
from index_price_ingest.exceptions import (
    ConnectionResetFetchError,
    RateLimitedError,
    UnclassifiedFetchError,
)
from index_price_ingest.feed_parser import parse_feed
from index_price_ingest.models import Company, SymbolSeries

logger = logging.getLogger(__name__)

# Opaque query parameters the endpoint expects alongside the real ones
_FIXED_PARAMS = "df=cpct&auto=0&ei=Ef6XUYfCqSTiAKEMg"


def build_url(symbol: str, source: SourceConfig) -> str:
    """Build the request URL for one symbol."""
    return (
        f"{source.base_url}?q={symbol.upper()}"
        f"&i={source.interval}&p={source.period}&f={source.fields}&{_FIXED_PARAMS}"
    )


def _is_connection_reset(exc: BaseException) -> bool:
    if isinstance(exc, (ConnectionResetError, aiohttp.ServerDisconnectedError)):
        return True
    return isinstance(exc, aiohttp.ClientOSError) and exc.errno == errno.ECONNRESET


async def fetch_prices(
    session: aiohttp.ClientSession,
    company: Company,
    source: SourceConfig,
) -> SymbolSeries:
    """Fetch and parse one company's price feed.

    Raises:
        ConnectionResetFetchError: The connection was reset.
        RateLimitedError: No response, HTTP 403, or a 200 without usable data.
        UnclassifiedFetchError: Any other status code.
    """
    url = build_url(company.symbol, source)
    headers = {"User-Agent": source.user_agent}
    timeout = aiohttp.ClientTimeout(total=source.timeout_seconds)

    try:
        async with session.get(url, headers=headers, timeout=timeout) as response:
            status = response.status
            try:
                body = await response.text()
            except UnicodeDecodeError as exc:
                # Undecodable bodies carry no usable rows; the status decides.
                logger.warning("Undecodable response body for %s: %s", company.symbol, exc)
                body = ""
    except asyncio.TimeoutError as exc:
        raise RateLimitedError(
            f"No response for {company.symbol} within {source.timeout_seconds}s",
            symbol=company.symbol,
        ) from exc
    except (aiohttp.ClientError, OSError) as exc:
        if _is_connection_reset(exc):
            raise ConnectionResetFetchError(
                f"Connection reset while fetching {company.symbol}",
                symbol=company.symbol,
            ) from exc
        raise RateLimitedError(
            f"No response for {company.symbol}: {exc!r}", symbol=company.symbol
        ) from exc

    if status == 403:
        raise RateLimitedError(
            f"HTTP 403 for {company.symbol}", symbol=company.symbol, status=status
        )
    if status != 200:
        logger.debug("Unexpected response body for %s: %.200s", company.symbol, body)
        raise UnclassifiedFetchError(
            f"HTTP {status} for {company.symbol} ({url})",
            symbol=company.symbol,
            status=status,
        )

    series = parse_feed(company, source.interval, body)
    if not series.time_series:
        raise RateLimitedError(
            f"No price rows in response for {company.symbol}",
            symbol=company.symbol,
            status=status,
        )
    return series


def make_fetcher(session: aiohttp.ClientSession, source: SourceConfig) -> Fetcher:
    """Bind a session and source config into the driver's fetch callable."""

    async def fetch(company: Company) -> SymbolSeries:
        return await fetch_prices(session, company, source)

    return fetch
