"""Value objects: candles, catalog entries, slot statistics and backtest results."""

from __future__ import annotations

from seasonality.models.market import (
    Candle,
    Granularity,
    MarketInfo,
    MarketKind,
    as_utc,
    parse_granularity,
)
from seasonality.models.results import (
    BacktestReport,
    BacktestWindowResult,
    SeasonalityReport,
    SlotStatistics,
    SymbolResult,
)

__all__ = [
    "BacktestReport",
    "BacktestWindowResult",
    "Candle",
    "Granularity",
    "MarketInfo",
    "MarketKind",
    "SeasonalityReport",
    "SlotStatistics",
    "SymbolResult",
    "as_utc",
    "parse_granularity",
]
