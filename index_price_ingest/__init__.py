"""
index-price-ingest: hourly price history for every constituent of a market index.

Public API surface:

- ``fetch_index_prices(...)`` -- **recommended entry point**. Loads the
  constituent list, downloads and parses every company's feed one at a
  time, optionally exports the result, and returns the aggregate.

- ``load_constituents(path)`` -- Seed loader on its own.

- ``download_all_prices(companies, fetch, ...)`` -- The async
  fetch-retry driver, for callers that bring their own fetch function
  or event loop.

- ``parse_feed(company, interval, text)`` -- Feed parser on its own.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from index_price_ingest._pipeline import export_output, run_download
from index_price_ingest.config import IngestConfig, default_config, load_config
from index_price_ingest.driver import CompletionCallback, download_all_prices
from index_price_ingest.feed_parser import parse_feed
from index_price_ingest.models import AggregateOutput, Company, SymbolSeries
from index_price_ingest.seed import load_constituents

__all__ = [
    "fetch_index_prices",
    "load_constituents",
    "download_all_prices",
    "parse_feed",
    "AggregateOutput",
    "Company",
    "SymbolSeries",
    "IngestConfig",
]

logger = logging.getLogger(__name__)


def fetch_index_prices(
    config: IngestConfig | None = None,
    config_path: str | Path | None = None,
    on_complete: CompletionCallback | None = None,
    export: bool = False,
    progress: bool = True,
) -> AggregateOutput:
    """Download one year of hourly prices for every index constituent.

    Orchestration:
      1. Resolve the config (explicit object, YAML path, or defaults).
      2. ``load_constituents()`` -- fatal ``SeedLoadError`` if unreadable.
      3. ``download_all_prices()`` over a live aiohttp session.
      4. If *export* is True, write ``prices.{format}`` to the output dir.

    Args:
        config: Config object. Takes precedence over *config_path*.
        config_path: YAML config to load when *config* is not given.
        on_complete: Called once with the finished aggregate.
        export: Also write the aggregate to disk.
        progress: Show a progress bar while downloading.

    Returns:
        Mapping of symbol -> ``{"ticker": [time points], "name": name}``.

    Raises:
        SeedLoadError: If the constituent file cannot be read.
        FetchStalledError: If a company keeps failing with unclassified errors.
        ExportError: If *export* is True and writing fails.
    """
    if config is None:
        config = load_config(config_path) if config_path else default_config()

    logger.info("fetch_index_prices() -- seed=%s", config.seed.path)
    companies = load_constituents(config.seed.path)

    output = asyncio.run(
        run_download(config, companies, on_complete=on_complete, progress=progress)
    )

    if export:
        export_output(config, output)
    return output
