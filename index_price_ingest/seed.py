"""
Seed loader: reads the index constituent list.

The seed file is a plain CSV with a header row followed by
``symbol, name, sector`` rows. Every cell (header included) is
upper-cased, the header row is dropped, and the remaining rows are
mapped positionally onto ``Company`` records.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from index_price_ingest.config import DEFAULT_SEED_PATH
from index_price_ingest.exceptions import SeedLoadError
from index_price_ingest.models import Company

logger = logging.getLogger(__name__)

_SEED_COLUMNS = 3


def _read_seed_frame(path: Path) -> pd.DataFrame:
    """Read the seed CSV as an all-string grid, header row included."""
    try:
        return pd.read_csv(
            path,
            header=None,
            dtype=str,
            keep_default_na=False,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError as exc:
        raise SeedLoadError(f"Seed file is empty: {path}") from exc
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as exc:
        raise SeedLoadError(f"Cannot read seed file {path}: {exc}") from exc


def load_constituents(path: str | Path | None = None) -> list[Company]:
    """Load the constituent list from the seed CSV.

    Args:
        path: CSV location. Defaults to ``data/sp500_constituents.csv``
            relative to the working directory.

    Returns:
        Companies in file order, all fields upper-cased.

    Raises:
        SeedLoadError: If the file is missing, unreadable, empty, or has
            fewer than three columns.
    """
    path = Path(path or DEFAULT_SEED_PATH)
    grid = _read_seed_frame(path)

    if grid.shape[1] < _SEED_COLUMNS:
        raise SeedLoadError(
            f"Seed file {path} has {grid.shape[1]} column(s); "
            f"expected at least {_SEED_COLUMNS} (symbol, name, sector)"
        )

    grid = grid.apply(lambda col: col.str.upper())
    rows = grid.iloc[1:, :_SEED_COLUMNS]

    companies = [
        Company(symbol=symbol, name=name, sector=sector)
        for symbol, name, sector in rows.itertuples(index=False, name=None)
    ]
    logger.info("Loaded %d constituents from %s", len(companies), path)
    return companies
