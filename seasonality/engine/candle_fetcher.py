"""Paged candle retrieval over a time range."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from seasonality.core.logging import get_logger
from seasonality.models.market import as_utc

if TYPE_CHECKING:
    from datetime import datetime

    from seasonality.interfaces import CandleSource
    from seasonality.models.market import Candle, Granularity

log = get_logger(__name__)


async def fetch_range(
    source: CandleSource,
    symbol: str,
    granularity: Granularity,
    start: datetime,
    end: datetime,
    *,
    limit: int = 1000,
    max_batches: int = 1,
    batch_delay: float = 0.0,
) -> list[Candle]:
    """Fetch candles for ``[start, end]``, oldest first.

    Pages forward from ``start`` while the source keeps returning full
    batches, up to ``max_batches`` calls. A batch is full at
    ``min(limit, source.max_limit)`` candles. Candles after ``end`` and
    repeated timestamps are dropped. ``batch_delay`` seconds are awaited
    between calls.
    """
    end = as_utc(end)
    cursor = as_utc(start)
    page_size = min(limit, source.max_limit)
    if page_size < limit:
        log.debug(
            "candle_fetcher.limit_capped",
            symbol=symbol,
            requested=limit,
            page_size=page_size,
        )
    candles: list[Candle] = []

    for batch_no in range(max_batches):
        if batch_no and batch_delay > 0:
            await asyncio.sleep(batch_delay)

        batch = await source.fetch_candles(symbol, granularity, cursor, page_size)
        added = 0
        for candle in batch:
            if candle.timestamp > end:
                break
            if candles and candle.timestamp <= candles[-1].timestamp:
                continue
            candles.append(candle)
            added += 1

        if len(batch) < page_size or added == 0 or candles[-1].timestamp >= end:
            break
        cursor = candles[-1].timestamp + granularity.duration
    else:
        if max_batches > 1:
            log.debug(
                "candle_fetcher.batch_cap_reached",
                symbol=symbol,
                batches=max_batches,
                candles=len(candles),
            )

    return candles
