"""Result value objects for seasonality and backtest runs.

Field aliases are the camelCase keys the dashboard consumes; serialize with
``model_dump(by_alias=True)``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SlotStatistics(BaseModel):
    """Aggregated log-return statistics for one time slot."""

    average_log_return: float = Field(alias="avgReturn")
    positive_percent: float = Field(alias="positivePercent", ge=0.0, le=100.0)
    sample_count: int = Field(alias="sampleCount", ge=1)
    average_quote_volume: float = Field(default=0.0, alias="avgQuoteVolume")

    model_config = {"frozen": True, "populate_by_name": True}


class SymbolResult(BaseModel):
    """Per-symbol slot statistics; only slots with at least one sample appear."""

    symbol: str
    slots: dict[str, SlotStatistics] = Field(default_factory=dict, alias="timeSlots")

    model_config = {"frozen": True, "populate_by_name": True}


class SeasonalityReport(BaseModel):
    results: list[SymbolResult] = Field(default_factory=list)
    time_slots: list[str] = Field(default_factory=list, alias="timeSlots")

    model_config = {"frozen": True, "populate_by_name": True}


class BacktestWindowResult(BaseModel):
    """Out-of-sample performance of slots picked on ``training_days`` of history."""

    training_days: int = Field(alias="daysBack", ge=1)
    win_rate_percent: float = Field(alias="winRate", ge=0.0, le=100.0)
    average_return: float = Field(alias="avgReturn")
    best_trade: float = Field(alias="bestTrade")
    worst_trade: float = Field(alias="worstTrade")
    total_pnl: float = Field(alias="totalPnL")
    trade_count: int = Field(alias="totalTrades", ge=1)
    selected_slots: list[str] = Field(default_factory=list, alias="selectedSlots")

    model_config = {"frozen": True, "populate_by_name": True}


class BacktestReport(BaseModel):
    symbol: str
    windows: list[BacktestWindowResult] = Field(default_factory=list, alias="backtestResults")

    @property
    def best_window(self) -> BacktestWindowResult | None:
        """Window with the highest win rate; the shortest one wins ties."""
        best: BacktestWindowResult | None = None
        for window in self.windows:
            if best is None or window.win_rate_percent > best.win_rate_percent:
                best = window
        return best

    model_config = {"frozen": True, "populate_by_name": True}
