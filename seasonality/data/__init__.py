"""Exchange candle sources and symbol helpers."""

from __future__ import annotations

from seasonality.data.binance_futures import BinanceFuturesClient
from seasonality.data.bybit_futures import BybitFuturesClient
from seasonality.data.source_factory import ExchangeName, create_candle_source

__all__ = [
    "BinanceFuturesClient",
    "BybitFuturesClient",
    "ExchangeName",
    "create_candle_source",
]
