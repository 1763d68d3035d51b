"""
Configuration models and YAML I/O for index-price-ingest.

Key models:
- IngestConfig: Top-level config (seed + source + output).
- SeedConfig: Location of the constituent CSV.
- SourceConfig: Remote price feed endpoint and request parameters.
- OutputConfig: Optional on-disk export of the aggregated prices.

Key functions:
- default_config() -> IngestConfig: Built-in defaults.
- load_config(path) -> IngestConfig: Load and validate from YAML.
- save_config(config, path): Serialize to YAML.

Retry and backoff behaviour is not part of the config; the driver's
policy is fixed (see ``driver.py``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from index_price_ingest.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

DEFAULT_SEED_PATH = "data/sp500_constituents.csv"
DEFAULT_BASE_URL = "https://www.google.com/finance/getprices"


class SeedConfig(BaseModel):
    """Constituent seed file."""

    path: str = Field(DEFAULT_SEED_PATH, description="CSV of (symbol, name, sector)")


class SourceConfig(BaseModel):
    """Remote price feed settings."""

    base_url: str = Field(DEFAULT_BASE_URL, description="Price feed endpoint")
    interval: int = Field(3600, description="Seconds per relative offset unit")
    period: str = Field("1Y", description="Lookback window requested from the feed")
    fields: str = Field("d,c,v,k,o,h,l", description="Field set requested from the feed")
    user_agent: str = Field("StockOracle", description="User-Agent request header")
    timeout_seconds: float = Field(30.0, description="Total timeout per request")

    @field_validator("interval")
    @classmethod
    def _interval_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"interval must be positive, got {value}")
        return value


class OutputConfig(BaseModel):
    """Export settings. Export is off unless a caller asks for it."""

    output_dir: str = Field("outputs/", description="Directory for exported files")
    output_format: Literal["csv", "parquet", "json"] = Field(
        "parquet", description="Export format"
    )


class IngestConfig(BaseModel):
    """Top-level configuration for index-price-ingest."""

    seed: SeedConfig = Field(default_factory=SeedConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def default_config() -> IngestConfig:
    """Return a config populated entirely with defaults."""
    return IngestConfig()


def load_config(path: str | Path) -> IngestConfig:
    """Load and validate a YAML config file into an IngestConfig model.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigValidationError: If the file is empty.
        pydantic.ValidationError: If the YAML content fails schema validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError(f"Config file is empty: {path}")
    logger.info("Loaded config from %s", path)
    return IngestConfig.model_validate(raw)


def save_config(config: IngestConfig, path: str | Path) -> None:
    """Serialize an IngestConfig to YAML with a short header comment."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        f.write("# index-price-ingest configuration\n\n")
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
    logger.info("Saved config to %s", path)
