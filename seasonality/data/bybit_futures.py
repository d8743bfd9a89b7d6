"""Bybit v5 linear-contract REST candle source."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from seasonality.core.errors import CandleSourceError
from seasonality.core.logging import get_logger
from seasonality.data.rest_base import RestCandleSource
from seasonality.models.market import Candle, Granularity, MarketInfo, MarketKind, as_utc

log = get_logger(__name__)

BYBIT_URL = "https://api.bybit.com"

_MAX_CATALOG_PAGES = 20

_INTERVALS: dict[Granularity, str] = {
    Granularity.MINUTE_15: "15",
    Granularity.HOUR_1: "60",
    Granularity.HOUR_4: "240",
    Granularity.DAY_1: "D",
}


def _market_from_instrument(item: dict[str, Any]) -> MarketInfo:
    base = item["baseCoin"]
    quote = item["quoteCoin"]
    settle = item.get("settleCoin", quote)
    if item.get("contractType") == "LinearPerpetual":
        kind = MarketKind.SWAP
        unified = f"{base}/{quote}:{settle}"
    else:
        kind = MarketKind.FUTURE
        delivery = datetime.fromtimestamp(int(item.get("deliveryTime", 0)) / 1000, tz=timezone.utc)
        unified = f"{base}/{quote}:{settle}-{delivery:%y%m%d}"
    return MarketInfo(
        symbol=unified,
        exchange_symbol=item["symbol"],
        kind=kind,
        base=base,
        quote=quote,
        settle=settle,
        active=item.get("status") == "Trading",
    )


class BybitFuturesClient(RestCandleSource):
    """Async client for Bybit v5 market-data endpoints (category=linear)."""

    exchange = "bybit"
    max_limit = 1000

    def __init__(
        self,
        base_url: str = BYBIT_URL,
        timeout_seconds: float = 10.0,
        rate_limit_rps: float = 10.0,
    ) -> None:
        super().__init__(base_url, timeout_seconds, rate_limit_rps)

    def _result(self, data: Any, path: str) -> dict[str, Any]:
        """Unwrap the v5 envelope, raising on a non-zero retCode."""
        if not isinstance(data, dict):
            raise CandleSourceError(self.exchange, f"unexpected payload from {path}")
        if data.get("retCode", 0) != 0:
            raise CandleSourceError(
                self.exchange, f"{path} failed: {data.get('retMsg', 'unknown error')}"
            )
        result = data.get("result")
        if not isinstance(result, dict):
            raise CandleSourceError(self.exchange, f"{path} returned no result")
        return result

    async def load_catalog(self) -> dict[str, MarketInfo]:
        """Fetch all linear instruments, following the page cursor."""
        path = "/v5/market/instruments-info"
        markets: dict[str, MarketInfo] = {}
        cursor = ""
        for _ in range(_MAX_CATALOG_PAGES):
            params: dict[str, Any] = {"category": "linear", "limit": 1000}
            if cursor:
                params["cursor"] = cursor
            result = self._result(await self._get_json(path, params), path)
            for item in result.get("list", []):
                try:
                    market = _market_from_instrument(item)
                except (KeyError, TypeError, ValueError) as exc:
                    log.debug("bybit.catalog_entry_skipped", entry=item.get("symbol"), error=str(exc))
                    continue
                markets[market.symbol] = market
            cursor = result.get("nextPageCursor", "")
            if not cursor:
                break

        self._markets = markets
        log.info("bybit.catalog_loaded", markets=len(markets))
        return dict(markets)

    async def fetch_candles(
        self,
        symbol: str,
        granularity: Granularity,
        start_time: datetime,
        limit: int,
    ) -> list[Candle]:
        """Fetch up to ``limit`` klines starting at ``start_time``, oldest first.

        Bybit returns the newest candles of the requested window first, so
        the window end is pinned to ``start + limit * period`` and the rows
        are put back in time order.
        """
        path = "/v5/market/kline"
        exchange_symbol = await self._exchange_symbol(symbol)
        limit = min(limit, self.max_limit)
        start = as_utc(start_time)
        end = start + granularity.duration * limit
        start_ms = int(start.timestamp() * 1000)
        result = self._result(
            await self._get_json(
                path,
                {
                    "category": "linear",
                    "symbol": exchange_symbol,
                    "interval": _INTERVALS[granularity],
                    "start": start_ms,
                    "end": int(end.timestamp() * 1000) - 1,
                    "limit": limit,
                },
            ),
            path,
        )
        rows = result.get("list", [])
        if not isinstance(rows, list):
            raise CandleSourceError(self.exchange, f"unexpected kline list for {symbol}")

        try:
            candles = [
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
                if int(row[0]) >= start_ms
            ]
        except (IndexError, TypeError, ValueError) as exc:
            raise CandleSourceError(self.exchange, f"malformed kline for {symbol}: {exc}") from exc
        candles.sort(key=lambda c: c.timestamp)
        return candles
