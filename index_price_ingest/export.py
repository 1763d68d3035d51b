"""
Exporter for index-price-ingest.

Writes the aggregated prices to the output directory. Serialization is
optional; the in-memory ``AggregateOutput`` is the primary result.

Output file naming convention:
  ``prices.csv`` / ``prices.parquet`` -- tidy table, one row per time point,
  numeric columns coerced.
  ``prices.json`` -- the aggregate as-is (symbol -> {ticker, name}).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

import pandas as pd

from index_price_ingest.exceptions import ExportError
from index_price_ingest.models import AggregateOutput
from index_price_ingest.transforms.frame import KEY_COLUMNS, aggregate_to_frame
from index_price_ingest.transforms.numbers import parse_numbers

logger = logging.getLogger(__name__)

_SUPPORTED_FORMATS = {"csv", "parquet", "json"}
_TABLE_NAME = "prices"


def _write_dataframe(df: pd.DataFrame, path: Path, output_format: str) -> None:
    """Write a single DataFrame to disk in the specified format.

    Raises:
        ExportError: If writing fails for any reason.
    """
    try:
        if output_format == "csv":
            df.to_csv(path, index=False, encoding="utf-8")
        else:  # parquet
            df.to_parquet(path, index=False, engine="pyarrow")
    except Exception as exc:
        raise ExportError(
            f"Failed to write {path.name} as {output_format}: {exc}"
        ) from exc


def _write_json(output: AggregateOutput, path: Path) -> None:
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(output, f)
    except (OSError, TypeError) as exc:
        raise ExportError(f"Failed to write {path.name} as json: {exc}") from exc


def export_prices(
    output: AggregateOutput,
    output_dir: str | Path,
    output_format: Literal["csv", "parquet", "json"] = "parquet",
) -> str:
    """Write the aggregated prices to ``{output_dir}/prices.{format}``.

    The output directory is created recursively if it does not exist.

    Args:
        output: The driver's AggregateOutput.
        output_dir: Directory to write into.
        output_format: ``"csv"``, ``"parquet"`` or ``"json"``.

    Returns:
        Path of the written file.

    Raises:
        ExportError: If *output_format* is unsupported, or if the write fails.
    """
    if output_format not in _SUPPORTED_FORMATS:
        raise ExportError(
            f"Unsupported output format: '{output_format}'. "
            f"Supported formats: {sorted(_SUPPORTED_FORMATS)}"
        )

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    file_path = out / f"{_TABLE_NAME}.{output_format}"

    if output_format == "json":
        _write_json(output, file_path)
        logger.info("Exported %d symbols -> %s", len(output), file_path.name)
        return str(file_path)

    df = parse_numbers(aggregate_to_frame(output), key_columns=KEY_COLUMNS)
    _write_dataframe(df, file_path, output_format)
    logger.info(
        "Exported %d symbols -> %s (%d rows, %d cols)",
        len(output), file_path.name, len(df), len(df.columns),
    )
    return str(file_path)
