"""Walk-forward slot backtester.

For each training-window length N (1..max) the backtester asks: if the
best slots had been picked from the first N days of history, how would
they have done over the held-out days that follow?
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from seasonality.backtesting.metrics import summarize_trades
from seasonality.core.errors import ConfigurationError
from seasonality.core.logging import get_logger
from seasonality.engine.candle_fetcher import fetch_range
from seasonality.engine.slot_aggregator import SlotTable
from seasonality.engine.time_slots import classify

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Sequence

    from seasonality.interfaces import CandleSource
    from seasonality.models.market import Candle, Granularity
    from seasonality.models.results import BacktestWindowResult

log = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def split_by_position(
    candles: Sequence[Candle],
    training_days: int,
    total_days: int,
) -> tuple[list[Candle], list[Candle]]:
    """Split candles into training and testing parts by position.

    The first ``floor(len * training_days / total_days)`` candles train,
    the rest test. This assumes candles are evenly spaced over the period.
    """
    cut = len(candles) * training_days // total_days
    return list(candles[:cut]), list(candles[cut:])


def rank_slots(
    training: Sequence[Candle],
    granularity: Granularity,
    top_n: int = 3,
) -> list[str]:
    """Best ``top_n`` slots by average log return on ``training``.

    Only slots with at least one sample are ranked. Ties keep canonical
    slot order.
    """
    table = SlotTable(granularity)
    table.extend(training)
    ranked = sorted(
        ((label, stats) for label, stats in table.entries() if stats is not None),
        key=lambda item: item[1].average_log_return,
        reverse=True,
    )
    return [label for label, _ in ranked[:top_n]]


def simulate_trades(
    testing: Sequence[Candle],
    selected_slots: Collection[str],
    granularity: Granularity,
) -> list[float]:
    """Log return of every testing candle that falls in a selected slot."""
    trades: list[float] = []
    for candle in testing:
        if classify(candle.timestamp, granularity) not in selected_slots:
            continue
        log_return = candle.log_return
        if log_return is not None:
            trades.append(log_return)
    return trades


class WindowBacktester:
    """Sweep training-window lengths for one symbol.

    Each length triggers its own fetch, followed by a ``window_delay``
    pause for the exchange rate limit. A failing window is logged and
    skipped.
    """

    def __init__(
        self,
        source: CandleSource,
        *,
        holdout_days: int = 30,
        top_slots: int = 3,
        min_candles_per_training_day: int = 24,
        window_delay: float = 0.1,
        candle_limit: int = 1000,
        max_batches: int = 10,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if holdout_days < 1 or top_slots < 1 or window_delay < 0:
            msg = (
                "holdout_days and top_slots must be >= 1 and window_delay >= 0, got "
                f"{holdout_days}, {top_slots}, {window_delay}"
            )
            raise ConfigurationError(msg)
        self._source = source
        self._holdout_days = holdout_days
        self._top_slots = top_slots
        self._min_per_day = min_candles_per_training_day
        self._delay = window_delay
        self._candle_limit = candle_limit
        self._max_batches = max_batches
        self._clock = clock

    async def backtest(
        self,
        symbol: str,
        granularity: Granularity,
        max_training_days: int,
    ) -> list[BacktestWindowResult]:
        """Evaluate training windows of 1..``max_training_days`` days.

        Returns:
            Window results in ascending ``training_days``; lengths with
            insufficient data, no trades or a failed fetch are omitted.

        Raises:
            ConfigurationError: If ``max_training_days`` < 1.
        """
        if max_training_days < 1:
            msg = f"maxDaysBack must be at least 1, got {max_training_days}"
            raise ConfigurationError(msg)

        results: list[BacktestWindowResult] = []
        for training_days in range(1, max_training_days + 1):
            try:
                result = await self.evaluate_window(symbol, granularity, training_days)
            except Exception as exc:  # noqa: BLE001
                log.warning(
                    "backtest.window_failed",
                    symbol=symbol,
                    training_days=training_days,
                    error=str(exc),
                )
                result = None
            finally:
                if self._delay > 0:
                    await asyncio.sleep(self._delay)
            if result is not None:
                results.append(result)

        log.info(
            "backtest.complete",
            symbol=symbol,
            timeframe=granularity.value,
            windows_tested=max_training_days,
            windows_reported=len(results),
        )
        return results

    async def evaluate_window(
        self,
        symbol: str,
        granularity: Granularity,
        training_days: int,
    ) -> BacktestWindowResult | None:
        """Fetch, split, rank and simulate one training-window length."""
        total_days = training_days + self._holdout_days
        end = self._clock()
        candles = await fetch_range(
            self._source,
            symbol,
            granularity,
            end - timedelta(days=total_days),
            end,
            limit=self._candle_limit,
            max_batches=self._max_batches,
            batch_delay=self._delay,
        )

        required = training_days * self._min_per_day
        if len(candles) < required:
            log.info(
                "backtest.window_skipped",
                symbol=symbol,
                training_days=training_days,
                reason="insufficient_data",
                candles=len(candles),
                required=required,
            )
            return None

        training, testing = split_by_position(candles, training_days, total_days)
        selected = rank_slots(training, granularity, self._top_slots)
        trades = simulate_trades(testing, selected, granularity)
        log.debug(
            "backtest.window_slots",
            training_days=training_days,
            slots=selected,
            training=len(training),
            testing=len(testing),
            trades=len(trades),
        )

        result = summarize_trades(training_days, trades, selected)
        if result is None:
            log.info(
                "backtest.window_skipped",
                symbol=symbol,
                training_days=training_days,
                reason="no_trades",
            )
        return result
