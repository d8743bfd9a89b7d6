"""Tests for the slot aggregator."""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from seasonality.engine.slot_aggregator import SlotAccumulator, SlotTable, aggregate
from seasonality.engine.time_slots import enumerate_slots
from seasonality.models.market import Candle, Granularity

_BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)

_candle_specs = st.lists(
    st.tuples(
        st.integers(min_value=0, max_value=24 * 4 * 10 - 1),
        st.floats(min_value=0.01, max_value=1e5, allow_nan=False, allow_infinity=False),
        st.floats(min_value=0.01, max_value=1e5, allow_nan=False, allow_infinity=False),
    ),
    max_size=60,
)


def _build(specs: list[tuple[int, float, float]]) -> list[Candle]:
    return [
        Candle(
            timestamp=_BASE + timedelta(minutes=15 * step),
            open=o,
            high=max(o, c),
            low=min(o, c),
            close=c,
            volume=1.0,
        )
        for step, o, c in specs
    ]


class TestAggregate:
    def test_two_candle_scenario(self, candle_factory: Callable[..., Candle]) -> None:
        candles = [
            candle_factory(_BASE, 100.0, 105.0),
            candle_factory(_BASE + timedelta(days=1), 100.0, 95.0),
        ]
        slots = aggregate(candles, Granularity.HOUR_1)
        assert list(slots) == ["00:00"]
        stats = slots["00:00"]
        expected = (math.log(1.05) + math.log(0.95)) / 2
        assert stats.average_log_return == pytest.approx(expected)
        assert stats.average_log_return == pytest.approx(-0.00125, abs=1e-5)
        assert stats.positive_percent == 50.0
        assert stats.sample_count == 2

    def test_empty_slots_omitted(self, hourly_candles: list[Candle]) -> None:
        slots = aggregate(hourly_candles[:3], Granularity.HOUR_1)
        assert len(slots) == 3

    def test_invalid_prices_skipped(self, candle_factory: Callable[..., Candle]) -> None:
        candles = [
            candle_factory(_BASE, 0.0, 105.0),
            candle_factory(_BASE + timedelta(hours=1), 100.0, 110.0),
        ]
        slots = aggregate(candles, Granularity.HOUR_1)
        assert "00:00" not in slots
        assert slots["01:00"].sample_count == 1

    def test_all_invalid_gives_empty_mapping(self, candle_factory: Callable[..., Candle]) -> None:
        assert aggregate([candle_factory(_BASE, 0.0, 0.0)], Granularity.HOUR_1) == {}

    def test_output_in_canonical_order(self, hourly_candles: list[Candle]) -> None:
        slots = aggregate(list(reversed(hourly_candles)), Granularity.HOUR_1)
        assert list(slots) == list(enumerate_slots(Granularity.HOUR_1))

    def test_alternating_hours(self, hourly_candles: list[Candle]) -> None:
        slots = aggregate(hourly_candles, Granularity.HOUR_1)
        assert slots["00:00"].positive_percent == 100.0
        assert slots["01:00"].positive_percent == 0.0
        assert slots["00:00"].average_log_return == pytest.approx(math.log(1.02))
        assert all(s.sample_count == 2 for s in slots.values())

    def test_four_hour_buckets(self, hourly_candles: list[Candle]) -> None:
        slots = aggregate(hourly_candles, Granularity.HOUR_4)
        assert list(slots) == list(enumerate_slots(Granularity.HOUR_4))
        assert slots["04:00"].sample_count == 8
        assert slots["04:00"].positive_percent == 50.0

    def test_daily_bucket(self, hourly_candles: list[Candle]) -> None:
        slots = aggregate(hourly_candles, Granularity.DAY_1)
        assert list(slots) == ["Daily"]
        assert slots["Daily"].sample_count == 48

    def test_average_quote_volume(self, candle_factory: Callable[..., Candle]) -> None:
        candles = [
            candle_factory(_BASE, 100.0, 100.0, volume=2.0),
            candle_factory(_BASE + timedelta(days=1), 100.0, 200.0, volume=1.0),
        ]
        assert aggregate(candles, Granularity.HOUR_1)["00:00"].average_quote_volume == 200.0

    @settings(max_examples=50)
    @given(specs=_candle_specs, seed=st.randoms(use_true_random=False))
    def test_order_independent(self, specs: list[tuple[int, float, float]], seed) -> None:  # noqa: ANN001
        candles = _build(specs)
        shuffled = list(candles)
        seed.shuffle(shuffled)
        for granularity in Granularity:
            assert aggregate(candles, granularity) == aggregate(shuffled, granularity)

    @settings(max_examples=50)
    @given(specs=_candle_specs)
    def test_positive_percent_bounded(self, specs: list[tuple[int, float, float]]) -> None:
        for stats in aggregate(_build(specs), Granularity.MINUTE_15).values():
            assert 0.0 <= stats.positive_percent <= 100.0
            assert stats.sample_count >= 1


class TestSlotTable:
    def test_entries_cover_every_slot(self, hourly_candles: list[Candle]) -> None:
        table = SlotTable(Granularity.MINUTE_15)
        table.extend(hourly_candles)
        entries = list(table.entries())
        assert len(entries) == 96
        assert entries[0][1] is not None
        assert entries[1][1] is None

    def test_add_reports_skipped(self, candle_factory: Callable[..., Candle]) -> None:
        table = SlotTable(Granularity.HOUR_1)
        assert table.add(candle_factory(_BASE, 100.0, 101.0)) is True
        assert table.add(candle_factory(_BASE, -1.0, 101.0)) is False

    def test_extend_counts_valid(self, candle_factory: Callable[..., Candle]) -> None:
        table = SlotTable(Granularity.HOUR_1)
        added = table.extend(
            [candle_factory(_BASE, 100.0, 101.0), candle_factory(_BASE, 0.0, 101.0)]
        )
        assert added == 1

    def test_empty_accumulator_has_no_statistics(self) -> None:
        assert SlotAccumulator().statistics() is None
