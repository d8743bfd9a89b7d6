"""Fold candles into per-slot log-return statistics for one symbol."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from seasonality.engine.time_slots import classify, enumerate_slots, slot_index
from seasonality.models.results import SlotStatistics

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from seasonality.models.market import Candle, Granularity


@dataclass
class SlotAccumulator:
    """Raw samples collected for one slot."""

    returns: list[float] = field(default_factory=list)
    quote_volumes: list[float] = field(default_factory=list)

    def statistics(self) -> SlotStatistics | None:
        """Summarize the samples, or None when the slot has no data."""
        n = len(self.returns)
        if n == 0:
            return None
        positives = sum(1 for r in self.returns if r > 0)
        return SlotStatistics(
            average_log_return=math.fsum(self.returns) / n,
            positive_percent=100.0 * positives / n,
            sample_count=n,
            average_quote_volume=math.fsum(self.quote_volumes) / n,
        )


class SlotTable:
    """Fixed-size table of accumulators, one per enumerated slot.

    Sums use ``math.fsum`` so the statistics do not depend on candle order.
    """

    def __init__(self, granularity: Granularity) -> None:
        self._granularity = granularity
        self._labels = enumerate_slots(granularity)
        self._index = slot_index(granularity)
        self._cells = [SlotAccumulator() for _ in self._labels]

    @property
    def labels(self) -> tuple[str, ...]:
        return self._labels

    def add(self, candle: Candle) -> bool:
        """Record one candle; returns False when it has no valid log return."""
        log_return = candle.log_return
        if log_return is None:
            return False
        cell = self._cells[self._index[classify(candle.timestamp, self._granularity)]]
        cell.returns.append(log_return)
        cell.quote_volumes.append(candle.quote_volume)
        return True

    def extend(self, candles: Iterable[Candle]) -> int:
        return sum(1 for c in candles if self.add(c))

    def entries(self) -> Iterator[tuple[str, SlotStatistics | None]]:
        """Every slot in canonical order, with None for slots without data."""
        for label, cell in zip(self._labels, self._cells, strict=True):
            yield label, cell.statistics()

    def to_mapping(self) -> dict[str, SlotStatistics]:
        return {label: stats for label, stats in self.entries() if stats is not None}


def aggregate(candles: Iterable[Candle], granularity: Granularity) -> dict[str, SlotStatistics]:
    """Per-slot statistics for ``candles``; slots without samples are omitted.

    Args:
        candles: Candles for one symbol, any order.
        granularity: Active candle period, selects the slot labels.

    Returns:
        Mapping of slot label to statistics, in canonical slot order.
    """
    table = SlotTable(granularity)
    table.extend(candles)
    return table.to_mapping()
