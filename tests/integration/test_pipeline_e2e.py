"""
Integration tests: real aiohttp client against a local feed server.

A small ``aiohttp.web`` app runs on a background thread and serves
scripted responses per symbol, so the full path (seed CSV -> driver ->
client -> parser -> aggregate -> export) runs without reaching the
internet.
"""

from __future__ import annotations

import asyncio
import socket
import threading
from collections import defaultdict

import aiohttp
import pandas as pd
import pytest
from aiohttp import web

from index_price_ingest import fetch_index_prices
from index_price_ingest.client import make_fetcher
from index_price_ingest.config import IngestConfig, OutputConfig, SeedConfig, SourceConfig
from index_price_ingest.driver import download_all_prices
from index_price_ingest.exceptions import FetchStalledError, SeedLoadError
from tests.conftest import ANCHOR, make_feed


# ---------------------------------------------------------------------------
# Local feed server
# ---------------------------------------------------------------------------

class FeedServer:
    """Scripted price feed: per-symbol queue of (status, body) responses."""

    def __init__(self):
        self.script: dict[str, list[tuple[int, str | bytes]]] = defaultdict(list)
        self.always: dict[str, tuple[int, str | bytes]] = {}
        self.hits: list[tuple[str, str]] = []
        self.url = ""

    async def handle(self, request: web.Request) -> web.Response:
        symbol = request.query.get("q", "")
        self.hits.append((symbol, request.headers.get("User-Agent", "")))
        if symbol in self.always:
            status, body = self.always[symbol]
        elif self.script[symbol]:
            status, body = self.script[symbol].pop(0)
        else:
            status, body = 200, make_feed(exchange=f"EX-{symbol}")
        if isinstance(body, bytes):
            return web.Response(status=status, body=body, content_type="text/plain", charset="utf-8")
        return web.Response(status=status, text=body)


@pytest.fixture()
def feed_server():
    server = FeedServer()
    app = web.Application()
    app.router.add_get("/finance/getprices", server.handle)

    loop = asyncio.new_event_loop()
    runner = web.AppRunner(app)
    loop.run_until_complete(runner.setup())
    site = web.TCPSite(runner, "127.0.0.1", 0)
    loop.run_until_complete(site.start())
    host, port = runner.addresses[0][:2]
    server.url = f"http://{host}:{port}/finance/getprices"

    thread = threading.Thread(target=loop.run_forever, daemon=True)
    thread.start()
    yield server

    loop.call_soon_threadsafe(loop.stop)
    thread.join(timeout=5)
    loop.run_until_complete(runner.cleanup())
    loop.close()


def _config(seed_csv, feed_server, tmp_path, fmt="parquet") -> IngestConfig:
    return IngestConfig(
        seed=SeedConfig(path=str(seed_csv)),
        source=SourceConfig(base_url=feed_server.url, timeout_seconds=5),
        output=OutputConfig(output_dir=str(tmp_path / "out"), output_format=fmt),
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

@pytest.mark.integration
class TestFetchIndexPrices:
    """End-to-end through the public entry point."""

    def test_all_constituents_fetched(self, seed_csv, feed_server, tmp_path):
        completed = []
        output = fetch_index_prices(
            config=_config(seed_csv, feed_server, tmp_path),
            on_complete=completed.append,
            progress=False,
        )

        assert list(output) == ["CVX", "AAPL", "KO"]
        assert output["AAPL"]["name"] == "APPLE INC."
        assert output["AAPL"]["ticker"][1]["unix_time"] == ANCHOR + 3600
        assert completed == [output]
        assert [sym for sym, _ in feed_server.hits] == ["CVX", "AAPL", "KO"]
        assert {ua for _, ua in feed_server.hits} == {"StockOracle"}

    def test_export_parquet(self, seed_csv, feed_server, tmp_path):
        fetch_index_prices(
            config=_config(seed_csv, feed_server, tmp_path),
            export=True,
            progress=False,
        )
        df = pd.read_parquet(tmp_path / "out" / "prices.parquet")
        assert len(df) == 6
        assert sorted(df["symbol"].unique()) == ["AAPL", "CVX", "KO"]

    def test_config_loaded_from_yaml(self, seed_csv, feed_server, tmp_path):
        from index_price_ingest.config import save_config

        config_path = tmp_path / "config.yaml"
        save_config(_config(seed_csv, feed_server, tmp_path, fmt="json"), config_path)
        output = fetch_index_prices(config_path=config_path, export=True, progress=False)
        assert len(output) == 3
        assert (tmp_path / "out" / "prices.json").exists()

    def test_missing_seed_is_fatal(self, feed_server, tmp_path):
        config = _config(tmp_path / "missing.csv", feed_server, tmp_path)
        with pytest.raises(SeedLoadError):
            fetch_index_prices(config=config, progress=False)
        assert feed_server.hits == []

    def test_unexpected_status_stalls(self, seed_csv, feed_server, tmp_path):
        feed_server.always["AAPL"] = (500, "Internal Server Error")
        with pytest.raises(FetchStalledError, match="AAPL"):
            fetch_index_prices(config=_config(seed_csv, feed_server, tmp_path), progress=False)
        assert "KO" not in [sym for sym, _ in feed_server.hits]


class _StopRun(Exception):
    """Raised from the recording sleep to end a run that would retry forever."""


def _closed_port_url() -> str:
    # Bind then release an ephemeral port so nothing is listening on it
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}/finance/getprices"


@pytest.mark.integration
class TestDriverWithRealClient:
    """Driver + real client, with a recording sleep instead of real waits."""

    def _run(self, companies, base_url, max_waits=None):
        waits: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            waits.append(seconds)
            if max_waits is not None and len(waits) >= max_waits:
                raise _StopRun()

        async def scenario():
            async with aiohttp.ClientSession() as session:
                fetch = make_fetcher(session, SourceConfig(base_url=base_url, timeout_seconds=5))
                return await download_all_prices(
                    companies, fetch, sleep=fake_sleep, progress=False
                )

        try:
            return asyncio.run(scenario()), waits
        except _StopRun:
            return None, waits

    def test_403_then_success(self, companies, feed_server):
        feed_server.script["AAPL"].append((403, ""))
        output, waits = self._run(companies, feed_server.url)
        assert len(output) == 3
        assert waits == [0.0, 5.0, 5.0]

    def test_empty_200_treated_as_rate_limit(self, companies, feed_server):
        feed_server.script["CVX"].append((200, "EXCHANGE%3DNYSE\nCOLUMNS=DATE,CLOSE\n"))
        output, waits = self._run(companies, feed_server.url)
        assert output["CVX"]["ticker"]
        assert waits == [5.0, 5.0, 5.0]
        assert [sym for sym, _ in feed_server.hits] == ["CVX", "CVX", "AAPL", "KO"]

    def test_undecodable_200_treated_as_rate_limit(self, companies, feed_server):
        feed_server.script["AAPL"].append((200, b"\xff\xfe\xfa bad"))
        output, waits = self._run(companies, feed_server.url)
        assert list(output) == ["CVX", "AAPL", "KO"]
        assert waits == [0.0, 5.0, 5.0]
        assert [sym for sym, _ in feed_server.hits] == ["CVX", "AAPL", "AAPL", "KO"]

    def test_refused_connection_backs_off(self, companies):
        output, waits = self._run(companies, _closed_port_url(), max_waits=3)
        assert output is None
        assert waits == [5.0, 10.0, 15.0]
