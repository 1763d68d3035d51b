"""
Internal pipeline orchestration for index-price-ingest.

Seed -> driver (with a live aiohttp session) -> optional export. Kept
out of ``__init__.py`` so the public functions stay thin wrappers.

This module is **not** part of the public API.
"""

from __future__ import annotations

import logging

import aiohttp

from index_price_ingest.client import make_fetcher
from index_price_ingest.config import IngestConfig
from index_price_ingest.driver import CompletionCallback, download_all_prices
from index_price_ingest.export import export_prices
from index_price_ingest.models import AggregateOutput, Company

logger = logging.getLogger(__name__)


async def run_download(
    config: IngestConfig,
    companies: list[Company],
    on_complete: CompletionCallback | None = None,
    progress: bool = True,
) -> AggregateOutput:
    """Run the driver over *companies* using one shared HTTP session."""
    async with aiohttp.ClientSession() as session:
        fetch = make_fetcher(session, config.source)
        return await download_all_prices(
            companies, fetch, on_complete=on_complete, progress=progress
        )


def export_output(config: IngestConfig, output: AggregateOutput) -> str:
    """Export *output* according to ``config.output``."""
    path = export_prices(
        output,
        output_dir=config.output.output_dir,
        output_format=config.output.output_format,
    )
    logger.info("Pipeline complete: wrote %s", path)
    return path
