"""Walk-forward backtesting of time-slot selections."""

from __future__ import annotations

from seasonality.backtesting.metrics import summarize_trades
from seasonality.backtesting.window_backtester import (
    WindowBacktester,
    rank_slots,
    simulate_trades,
    split_by_position,
)

__all__ = [
    "WindowBacktester",
    "rank_slots",
    "simulate_trades",
    "split_by_position",
    "summarize_trades",
]
