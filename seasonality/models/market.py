"""Market data models: Granularity, Candle, MarketInfo."""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, field_validator, model_validator

from seasonality.core.errors import ConfigurationError


class Granularity(str, Enum):
    """Candle period requested from the source; also the slot width."""

    MINUTE_15 = "15m"
    HOUR_1 = "1h"
    HOUR_4 = "4h"
    DAY_1 = "1d"

    @property
    def duration(self) -> timedelta:
        return _DURATIONS[self]


_DURATIONS: dict[Granularity, timedelta] = {
    Granularity.MINUTE_15: timedelta(minutes=15),
    Granularity.HOUR_1: timedelta(hours=1),
    Granularity.HOUR_4: timedelta(hours=4),
    Granularity.DAY_1: timedelta(days=1),
}


def parse_granularity(value: str | Granularity) -> Granularity:
    """Parse a timeframe string such as ``"1h"``.

    Raises:
        ConfigurationError: If the value is not one of 15m, 1h, 4h, 1d.
    """
    if isinstance(value, Granularity):
        return value
    try:
        return Granularity(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(g.value for g in Granularity)
        msg = f"Unknown timeframe '{value}'. Expected one of: {allowed}"
        raise ConfigurationError(msg) from None


def as_utc(ts: datetime) -> datetime:
    """Return ``ts`` as an aware UTC datetime; naive values are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class Candle(BaseModel):
    """OHLCV candle from an exchange."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float
    exchange: str = ""
    symbol: str = ""
    interval: str = "1h"

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @property
    def log_return(self) -> float | None:
        """ln(close/open), or None when either price is not strictly positive."""
        if self.open > 0 and self.close > 0:
            return math.log(self.close / self.open)
        return None

    @property
    def quote_volume(self) -> float:
        return self.volume * self.close

    @model_validator(mode="after")
    def high_gte_low(self) -> Candle:
        if self.high < self.low:
            msg = "high must be >= low"
            raise ValueError(msg)
        return self

    model_config = {"frozen": True}


class MarketKind(str, Enum):
    SPOT = "spot"
    SWAP = "swap"
    FUTURE = "future"


class MarketInfo(BaseModel):
    """One catalog entry, keyed by its unified symbol (``BASE/QUOTE:SETTLE``)."""

    symbol: str
    exchange_symbol: str
    kind: MarketKind
    base: str
    quote: str
    settle: str = ""
    active: bool = True

    @property
    def is_usdt_perpetual(self) -> bool:
        return self.kind is MarketKind.SWAP and self.quote == "USDT" and self.settle == "USDT"

    model_config = {"frozen": True}
