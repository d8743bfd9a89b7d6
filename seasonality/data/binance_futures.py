"""Binance USDⓈ-M futures REST candle source."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from seasonality.core.errors import CandleSourceError
from seasonality.core.logging import get_logger
from seasonality.data.rest_base import RestCandleSource
from seasonality.models.market import Candle, MarketInfo, MarketKind, as_utc

if TYPE_CHECKING:
    from seasonality.models.market import Granularity

log = get_logger(__name__)

BINANCE_FUTURES_URL = "https://fapi.binance.com"


def _market_from_symbol_info(info: dict[str, Any]) -> MarketInfo:
    base = info["baseAsset"]
    quote = info["quoteAsset"]
    settle = info.get("marginAsset", quote)
    contract_type = info.get("contractType", "PERPETUAL")
    if contract_type == "PERPETUAL":
        kind = MarketKind.SWAP
        unified = f"{base}/{quote}:{settle}"
    else:
        kind = MarketKind.FUTURE
        delivery = datetime.fromtimestamp(int(info.get("deliveryDate", 0)) / 1000, tz=timezone.utc)
        unified = f"{base}/{quote}:{settle}-{delivery:%y%m%d}"
    return MarketInfo(
        symbol=unified,
        exchange_symbol=info["symbol"],
        kind=kind,
        base=base,
        quote=quote,
        settle=settle,
        active=info.get("status") == "TRADING",
    )


class BinanceFuturesClient(RestCandleSource):
    """Async client for the Binance USDⓈ-M futures market-data endpoints."""

    exchange = "binance"
    max_limit = 1500

    def __init__(
        self,
        base_url: str = BINANCE_FUTURES_URL,
        timeout_seconds: float = 10.0,
        rate_limit_rps: float = 10.0,
    ) -> None:
        super().__init__(base_url, timeout_seconds, rate_limit_rps)

    async def load_catalog(self) -> dict[str, MarketInfo]:
        """Fetch exchangeInfo and index markets by unified symbol."""
        data = await self._get_json("/fapi/v1/exchangeInfo", {})
        if not isinstance(data, dict) or not isinstance(data.get("symbols"), list):
            raise CandleSourceError(self.exchange, "exchangeInfo without a symbols list")

        markets: dict[str, MarketInfo] = {}
        for info in data["symbols"]:
            try:
                market = _market_from_symbol_info(info)
            except (KeyError, TypeError, ValueError) as exc:
                log.debug("binance.catalog_entry_skipped", entry=info.get("symbol"), error=str(exc))
                continue
            markets[market.symbol] = market

        self._markets = markets
        log.info("binance.catalog_loaded", markets=len(markets))
        return dict(markets)

    async def fetch_candles(
        self,
        symbol: str,
        granularity: Granularity,
        start_time: datetime,
        limit: int,
    ) -> list[Candle]:
        """Fetch up to ``limit`` klines starting at ``start_time``, oldest first."""
        exchange_symbol = await self._exchange_symbol(symbol)
        rows = await self._get_json(
            "/fapi/v1/klines",
            {
                "symbol": exchange_symbol,
                "interval": granularity.value,
                "startTime": int(as_utc(start_time).timestamp() * 1000),
                "limit": min(limit, self.max_limit),
            },
        )
        if not isinstance(rows, list):
            raise CandleSourceError(self.exchange, f"unexpected klines payload for {symbol}")

        try:
            return [
                Candle(
                    timestamp=datetime.fromtimestamp(int(row[0]) / 1000, tz=timezone.utc),
                    open=float(row[1]),
                    high=float(row[2]),
                    low=float(row[3]),
                    close=float(row[4]),
                    volume=float(row[5]),
                    exchange=self.exchange,
                    symbol=symbol,
                    interval=granularity.value,
                )
                for row in rows
            ]
        except (IndexError, TypeError, ValueError) as exc:
            raise CandleSourceError(self.exchange, f"malformed kline for {symbol}: {exc}") from exc
