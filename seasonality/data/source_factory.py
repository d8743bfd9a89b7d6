"""Candle source selection by exchange name."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from seasonality.core.errors import ConfigurationError
from seasonality.data.binance_futures import BinanceFuturesClient
from seasonality.data.bybit_futures import BybitFuturesClient

if TYPE_CHECKING:
    from seasonality.config.loader import ConfigLoader
    from seasonality.data.rest_base import RestCandleSource
    from seasonality.interfaces import CandleSource


class ExchangeName(str, Enum):
    BINANCE = "binance"
    BYBIT = "bybit"


_SOURCES: dict[ExchangeName, type[RestCandleSource]] = {
    ExchangeName.BINANCE: BinanceFuturesClient,
    ExchangeName.BYBIT: BybitFuturesClient,
}


def parse_exchange(value: str | ExchangeName) -> ExchangeName:
    """Parse an exchange name.

    Raises:
        ConfigurationError: If the exchange is not supported.
    """
    if isinstance(value, ExchangeName):
        return value
    try:
        return ExchangeName(str(value).strip().lower())
    except ValueError:
        available = ", ".join(e.value for e in ExchangeName)
        msg = f"Unknown exchange '{value}'. Available: {available}"
        raise ConfigurationError(msg) from None


def create_candle_source(exchange: str | ExchangeName, config: ConfigLoader) -> CandleSource:
    """Create a candle source for ``exchange`` using its ``exchange.<name>`` config.

    Args:
        exchange: Exchange name or enum member.
        config: ConfigLoader instance.

    Returns:
        A fresh, unconnected candle source. Callers must ``close()`` it.
    """
    name = parse_exchange(exchange)
    cls = _SOURCES[name]
    kwargs: dict[str, object] = {
        "timeout_seconds": float(config.get("exchange.timeout_seconds", 10.0)),
        "rate_limit_rps": float(config.get("exchange.rate_limit_rps", 10.0)),
    }
    base_url = config.get(f"exchange.{name.value}.base_url")
    if base_url:
        kwargs["base_url"] = str(base_url)
    return cls(**kwargs)  # type: ignore[arg-type]


def list_exchanges() -> list[str]:
    return [e.value for e in ExchangeName]
