"""Shared plumbing for exchange REST candle sources."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from seasonality.core.errors import CandleSourceError
from seasonality.core.logging import get_logger

if TYPE_CHECKING:
    from datetime import datetime

    from seasonality.models.market import Candle, Granularity, MarketInfo

log = get_logger(__name__)


class RestCandleSource(ABC):
    """Lazily created ``httpx.AsyncClient``, request pacing and catalog cache.

    Subclasses set ``exchange`` and ``max_limit`` (the most klines one
    request may return) and implement ``load_catalog`` and ``fetch_candles``.
    """

    exchange: ClassVar[str] = ""
    max_limit: ClassVar[int] = 1000

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        rate_limit_rps: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._min_interval = 1.0 / rate_limit_rps
        self._last_request_time = 0.0
        self._client: httpx.AsyncClient | None = None
        self._markets: dict[str, MarketInfo] = {}

    @property
    def name(self) -> str:
        return self.exchange

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def _rate_limit(self) -> None:
        """Enforce the minimum interval between requests."""
        loop = asyncio.get_running_loop()
        elapsed = loop.time() - self._last_request_time
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)
        self._last_request_time = loop.time()

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        await self._rate_limit()
        client = await self._get_client()
        resp = await client.get(path, params=params)
        resp.raise_for_status()
        try:
            return resp.json()
        except ValueError as exc:
            raise CandleSourceError(self.exchange, f"non-JSON response from {path}") from exc

    @abstractmethod
    async def load_catalog(self) -> dict[str, MarketInfo]:
        """Fetch the exchange catalog, cache it and return it keyed by unified symbol."""
        ...

    @abstractmethod
    async def fetch_candles(
        self,
        symbol: str,
        granularity: Granularity,
        start_time: datetime,
        limit: int,
    ) -> list[Candle]:
        """Fetch up to ``min(limit, max_limit)`` candles from ``start_time``, oldest first."""
        ...

    async def _exchange_symbol(self, symbol: str) -> str:
        """Translate a unified symbol to the exchange's own id."""
        if not self._markets:
            await self.load_catalog()
        market = self._markets.get(symbol)
        if market is not None:
            return market.exchange_symbol
        if "/" not in symbol:
            return symbol
        raise CandleSourceError(self.exchange, f"unknown symbol {symbol}")

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
