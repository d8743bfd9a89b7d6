"""Symbol normalization and selection over an exchange catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING

from seasonality.core.errors import ConfigurationError

if TYPE_CHECKING:
    from seasonality.models.market import MarketInfo


def to_display_symbol(symbol: str) -> str:
    """Drop the separator and settle suffix: ``BTC/USDT:USDT`` → ``BTCUSDT``."""
    pair = symbol.split(":", 1)[0]
    return pair.replace("/", "")


def usdt_perpetuals(catalog: dict[str, MarketInfo]) -> list[str]:
    """USDT-margined perpetual swaps, in catalog order."""
    return [symbol for symbol, market in catalog.items() if market.is_usdt_perpetual]


def resolve_symbol(catalog: dict[str, MarketInfo], requested: str, exchange: str = "") -> str:
    """Find the unified symbol for a user-supplied pair.

    Accepts the unified form (``BTC/USDT:USDT``) or the display form
    (``BTCUSDT``, case-insensitive). An exact unified match wins; among
    display-form matches USDT perpetuals are preferred.

    Raises:
        ConfigurationError: If no catalog entry matches.
    """
    wanted = requested.strip()
    if wanted in catalog:
        return wanted

    display = wanted.upper()
    matches = [
        symbol
        for symbol, market in catalog.items()
        if to_display_symbol(symbol).upper() == display
        or market.exchange_symbol.upper() == display
    ]
    if matches:
        perps = [s for s in matches if catalog[s].is_usdt_perpetual]
        return (perps or matches)[0]

    where = f" on {exchange}" if exchange else ""
    msg = f"Pair {requested} not found{where}"
    raise ConfigurationError(msg)


def default_backtest_symbol(catalog: dict[str, MarketInfo]) -> str:
    """First USDT perpetual in catalog order.

    Raises:
        ConfigurationError: If the catalog lists none.
    """
    perps = usdt_perpetuals(catalog)
    if not perps:
        msg = "No USDT futures symbols found"
        raise ConfigurationError(msg)
    return perps[0]
