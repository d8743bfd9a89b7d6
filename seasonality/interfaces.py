"""Protocol interfaces for seasonality components.

The runner and backtester code against these contracts; exchange clients
and test fakes implement them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from seasonality.models.market import Candle, Granularity, MarketInfo


@runtime_checkable
class CandleSource(Protocol):
    """Protocol for historical candle providers (one implementation per exchange)."""

    @property
    def name(self) -> str: ...

    @property
    def max_limit(self) -> int:
        """Most candles one ``fetch_candles`` call can return."""
        ...

    async def load_catalog(self) -> dict[str, MarketInfo]: ...

    async def fetch_candles(
        self,
        symbol: str,
        granularity: Granularity,
        start_time: datetime,
        limit: int,
    ) -> list[Candle]: ...

    async def close(self) -> None: ...
