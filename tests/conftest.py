"""
Shared test fixtures for index-price-ingest tests.

Feed texts and the seed CSV are synthetic and defined here so every test
module builds on the same small, readable samples.
"""

from pathlib import Path

import pytest

from index_price_ingest.models import Company

# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

SEED_CSV = """Symbol,Name,Sector
cvx,Chevron Corp.,Energy
aapl,Apple Inc.,Information Technology
ko,Coca-Cola Company (The),Consumer Staples
"""

ANCHOR = 1609459200
INTERVAL = 3600

SAMPLE_FEED = "\n".join([
    "EXCHANGE%3DNYSE",
    "MARKET_OPEN_MINUTE=570",
    "MARKET_CLOSE_MINUTE=960",
    "INTERVAL=3600",
    "COLUMNS=DATE,CLOSE,HIGH,LOW,OPEN,VOLUME",
    "DATA=",
    "TIMEZONE_OFFSET=-300",
    f"a{ANCHOR},100.5,101,99,100,5000",
    "1,100.7,101.2,100.1,100.5,4200",
    "2,100.9,101.5,100.3,100.7,3900",
    "a1609804800,102,102.5,101.5,101.8,6100",
    "3,102.4,102.9,101.9,102,5800",
    "",
])


def make_feed(exchange: str = "NASDAQ", rows: list[str] | None = None) -> str:
    """Build a minimal well-formed feed body."""
    rows = rows if rows is not None else [f"a{ANCHOR},10,11,9,10,100", "1,10.5,11,10,10,120"]
    return "\n".join([
        f"EXCHANGE%3D{exchange}",
        "COLUMNS=DATE,CLOSE,HIGH,LOW,OPEN,VOLUME",
        "DATA=",
        *rows,
    ]) + "\n"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def seed_csv(tmp_path: Path) -> Path:
    path = tmp_path / "constituents.csv"
    path.write_text(SEED_CSV, encoding="utf-8")
    return path


@pytest.fixture()
def companies() -> list[Company]:
    return [
        Company("CVX", "CHEVRON CORP.", "ENERGY"),
        Company("AAPL", "APPLE INC.", "INFORMATION TECHNOLOGY"),
        Company("KO", "COCA-COLA COMPANY (THE)", "CONSUMER STAPLES"),
    ]


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (runs the real HTTP client against a local server)",
    )
