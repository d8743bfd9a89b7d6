"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path  # noqa: TCH003

import pytest

from seasonality.config.loader import ConfigLoader
from seasonality.core.errors import CandleSourceError
from seasonality.models.market import Candle, Granularity, MarketInfo, MarketKind

NOW = datetime(2024, 3, 1, 0, 0, tzinfo=timezone.utc)


def make_candle(
    timestamp: datetime,
    open_: float = 100.0,
    close: float = 101.0,
    volume: float = 10.0,
) -> Candle:
    return Candle(
        timestamp=timestamp,
        open=open_,
        high=max(open_, close) + 1.0,
        low=min(open_, close) - 1.0,
        close=close,
        volume=volume,
    )


def make_market(base: str, quote: str = "USDT", kind: MarketKind = MarketKind.SWAP) -> MarketInfo:
    settle = quote if kind is not MarketKind.SPOT else ""
    symbol = f"{base}/{quote}:{settle}" if settle else f"{base}/{quote}"
    return MarketInfo(
        symbol=symbol,
        exchange_symbol=f"{base}{quote}",
        kind=kind,
        base=base,
        quote=quote,
        settle=settle,
    )


class FakeCandleSource:
    """In-memory CandleSource.

    Serves ``series[symbol]`` filtered by ``start_time``, or, when
    ``script`` is set, pops one prepared batch per call.
    """

    name = "fake"
    max_limit = 10_000

    def __init__(
        self,
        catalog: dict[str, MarketInfo] | None = None,
        series: dict[str, list[Candle]] | None = None,
        failing: set[str] | None = None,
        script: list[list[Candle] | Exception] | None = None,
    ) -> None:
        self.catalog = catalog or {}
        self.series = series or {}
        self.failing = failing or set()
        self.script = list(script) if script is not None else None
        self.calls: list[tuple[str, Granularity, datetime, int]] = []
        self.closed = False

    async def load_catalog(self) -> dict[str, MarketInfo]:
        return dict(self.catalog)

    async def fetch_candles(
        self,
        symbol: str,
        granularity: Granularity,
        start_time: datetime,
        limit: int,
    ) -> list[Candle]:
        self.calls.append((symbol, granularity, start_time, limit))
        if symbol in self.failing:
            raise CandleSourceError("fake", f"cannot fetch {symbol}")
        if self.script is not None:
            item = self.script.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        candles = [c for c in self.series.get(symbol, []) if c.timestamp >= start_time]
        return candles[:limit]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def clock() -> Callable[[], datetime]:
    return lambda: NOW


@pytest.fixture()
def candle_factory() -> Callable[..., Candle]:
    return make_candle


@pytest.fixture()
def market_factory() -> Callable[..., MarketInfo]:
    return make_market


@pytest.fixture()
def fake_source_cls() -> type[FakeCandleSource]:
    return FakeCandleSource


@pytest.fixture()
def hourly_candles() -> list[Candle]:
    """Two days of 1h candles ending just before NOW; even hours up, odd hours down."""
    start = NOW - timedelta(days=2)
    candles = []
    for i in range(48):
        ts = start + timedelta(hours=i)
        close = 102.0 if ts.hour % 2 == 0 else 99.0
        candles.append(make_candle(ts, 100.0, close))
    return candles


@pytest.fixture()
def catalog() -> dict[str, MarketInfo]:
    markets = [
        make_market("BTC"),
        make_market("ETH", kind=MarketKind.SPOT),
        make_market("ETH"),
        make_market("SOL", quote="USDC"),
        make_market("XRP"),
    ]
    return {m.symbol: m for m in markets}


@pytest.fixture()
def config_dir(tmp_path: Path) -> Path:
    """Create a temp config directory with default.toml."""
    config = tmp_path / "config"
    config.mkdir()

    default_toml = config / "default.toml"
    default_toml.write_text(
        """\
[exchange]
default = "binance"
timeout_seconds = 5.0
rate_limit_rps = 10.0

[exchange.binance]
base_url = "https://fapi.example.test"

[seasonality]
inter_symbol_delay_seconds = 0.0
max_symbols = 2
candle_limit = 1000
max_batches = 3
max_days_back = 365

[backtest]
holdout_days = 30
top_slots = 3
min_candles_per_training_day = 24
window_delay_seconds = 0.0
max_training_days = 30

[api]
host = "127.0.0.1"
port = 8100
"""
    )
    return config


@pytest.fixture()
def config_loader(config_dir: Path) -> ConfigLoader:
    """ConfigLoader with test config."""
    loader = ConfigLoader(config_dir=config_dir, env="test")
    loader.load()
    return loader
