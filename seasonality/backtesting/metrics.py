"""Out-of-sample trade metrics for one backtest window."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from seasonality.models.results import BacktestWindowResult

if TYPE_CHECKING:
    from collections.abc import Sequence


def win_rate_percent(trades: Sequence[float]) -> float:
    """Share of trades with a strictly positive return, in percent."""
    if not trades:
        return 0.0
    wins = sum(1 for t in trades if t > 0)
    return 100.0 * wins / len(trades)


def total_pnl(trades: Sequence[float]) -> float:
    """Sum of per-trade log returns (additive, not compounded)."""
    return math.fsum(trades)


def summarize_trades(
    training_days: int,
    trades: Sequence[float],
    selected_slots: Sequence[str] = (),
) -> BacktestWindowResult | None:
    """Build the window result, or None when there were no trades.

    Args:
        training_days: Training-window length the slots were picked on.
        trades: Log return of every held-out candle in a selected slot.
        selected_slots: Slots chosen on the training partition.
    """
    if not trades:
        return None
    pnl = total_pnl(trades)
    return BacktestWindowResult(
        training_days=training_days,
        win_rate_percent=win_rate_percent(trades),
        average_return=pnl / len(trades),
        best_trade=max(trades),
        worst_trade=min(trades),
        total_pnl=pnl,
        trade_count=len(trades),
        selected_slots=list(selected_slots),
    )
