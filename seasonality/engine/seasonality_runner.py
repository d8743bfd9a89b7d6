"""Seasonality runner: slot statistics for many symbols, one at a time."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from seasonality.core.errors import ConfigurationError
from seasonality.core.logging import get_logger
from seasonality.data.symbols import to_display_symbol
from seasonality.engine.candle_fetcher import fetch_range
from seasonality.engine.slot_aggregator import aggregate
from seasonality.engine.time_slots import enumerate_slots
from seasonality.models.results import SeasonalityReport, SymbolResult

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from seasonality.interfaces import CandleSource
    from seasonality.models.market import Granularity

log = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class SeasonalityRunner:
    """Aggregate slot statistics for a list of symbols.

    Symbols are processed strictly in sequence. After every symbol the
    runner awaits ``inter_symbol_delay`` seconds to stay under the
    exchange rate limit. A failing symbol is logged and skipped.
    """

    def __init__(
        self,
        source: CandleSource,
        *,
        inter_symbol_delay: float = 0.1,
        candle_limit: int = 1000,
        max_batches: int = 10,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if inter_symbol_delay < 0:
            msg = f"inter_symbol_delay must be >= 0, got {inter_symbol_delay}"
            raise ConfigurationError(msg)
        self._source = source
        self._delay = inter_symbol_delay
        self._candle_limit = candle_limit
        self._max_batches = max_batches
        self._clock = clock

    async def run(
        self,
        symbols: Sequence[str],
        days_back: int,
        granularity: Granularity,
    ) -> SeasonalityReport:
        """Compute slot statistics for each symbol over the last ``days_back`` days.

        Args:
            symbols: Unified symbols, processed in the given order.
            days_back: Look-back length in days, at least 1.
            granularity: Candle period and slot width.

        Returns:
            SeasonalityReport with one SymbolResult per symbol that had data,
            and the canonical slot labels for ``granularity``.

        Raises:
            ConfigurationError: If ``days_back`` < 1. Nothing is fetched.
        """
        if days_back < 1:
            msg = f"daysBack must be at least 1, got {days_back}"
            raise ConfigurationError(msg)

        end = self._clock()
        start = end - timedelta(days=days_back)
        results: list[SymbolResult] = []

        for symbol in symbols:
            try:
                log.debug("seasonality.symbol_start", symbol=symbol)
                candles = await fetch_range(
                    self._source,
                    symbol,
                    granularity,
                    start,
                    end,
                    limit=self._candle_limit,
                    max_batches=self._max_batches,
                    batch_delay=self._delay,
                )
                if not candles:
                    log.info("seasonality.symbol_no_data", symbol=symbol)
                    continue
                results.append(
                    SymbolResult(
                        symbol=to_display_symbol(symbol),
                        slots=aggregate(candles, granularity),
                    )
                )
            except Exception as exc:  # noqa: BLE001
                log.warning("seasonality.symbol_failed", symbol=symbol, error=str(exc))
            finally:
                if self._delay > 0:
                    await asyncio.sleep(self._delay)

        log.info(
            "seasonality.run_complete",
            exchange=self._source.name,
            requested=len(symbols),
            processed=len(results),
            timeframe=granularity.value,
            days_back=days_back,
        )
        return SeasonalityReport(
            results=results,
            time_slots=list(enumerate_slots(granularity)),
        )
