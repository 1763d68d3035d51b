"""
Demo script: download a year of hourly prices for every index constituent.

Usage:
    uv run python scripts/run_download.py                    # in-memory only
    uv run python scripts/run_download.py --export           # also write outputs/prices.parquet
    uv run python scripts/run_download.py --config my.yaml   # custom config

A missing or unreadable seed file aborts the run with a SeedLoadError.
"""

from __future__ import annotations

import argparse
import logging

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("run_download")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    import index_price_ingest

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--export", action="store_true", help="Write prices to disk")
    args = parser.parse_args()

    def _report(output: index_price_ingest.AggregateOutput) -> None:
        points = sum(len(entry["ticker"]) for entry in output.values())
        log.info("Finished: %d symbols, %s time points", len(output), f"{points:,}")

    index_price_ingest.fetch_index_prices(
        config_path=args.config,
        on_complete=_report,
        export=args.export,
    )


if __name__ == "__main__":
    main()
