"""Time-of-day slot classification for UTC candle timestamps."""

from __future__ import annotations

from functools import cache
from typing import TYPE_CHECKING

from seasonality.models.market import Granularity, as_utc

if TYPE_CHECKING:
    from datetime import datetime

DAILY_SLOT = "Daily"


@cache
def enumerate_slots(granularity: Granularity) -> tuple[str, ...]:
    """All valid slot labels for ``granularity``, in canonical order.

    1h → 24 labels, 4h → 6, 15m → 96, 1d → the single label "Daily".
    """
    if granularity is Granularity.DAY_1:
        return (DAILY_SLOT,)
    step = int(granularity.duration.total_seconds() // 60)
    return tuple(f"{m // 60:02d}:{m % 60:02d}" for m in range(0, 24 * 60, step))


def classify(timestamp: datetime, granularity: Granularity) -> str:
    """Map a timestamp to its slot label.

    Naive timestamps are taken as UTC. The hour (and, for 15m, the minute)
    is floored to the slot width.
    """
    ts = as_utc(timestamp)
    if granularity is Granularity.DAY_1:
        return DAILY_SLOT
    if granularity is Granularity.HOUR_4:
        return f"{ts.hour // 4 * 4:02d}:00"
    if granularity is Granularity.MINUTE_15:
        return f"{ts.hour:02d}:{ts.minute // 15 * 15:02d}"
    return f"{ts.hour:02d}:00"


def slot_index(granularity: Granularity) -> dict[str, int]:
    """Label → position lookup for fixed-size per-slot tables."""
    return {label: i for i, label in enumerate(enumerate_slots(granularity))}
