"""Request handling for seasonality and backtest runs.

Validates request payloads, builds a candle source for the requested
exchange, runs the seasonality runner or window backtester and shapes the
response payload. Every failure comes back as ``{"error": message}``.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from seasonality.backtesting.window_backtester import WindowBacktester
from seasonality.core.errors import CandleSourceError, ConfigurationError
from seasonality.core.logging import get_logger
from seasonality.data.source_factory import create_candle_source, parse_exchange
from seasonality.data.symbols import (
    default_backtest_symbol,
    resolve_symbol,
    to_display_symbol,
    usdt_perpetuals,
)
from seasonality.engine.seasonality_runner import SeasonalityRunner
from seasonality.models.market import Granularity, parse_granularity
from seasonality.models.results import BacktestReport

if TYPE_CHECKING:
    from collections.abc import Callable

    from seasonality.config.loader import ConfigLoader
    from seasonality.interfaces import CandleSource

log = get_logger(__name__)


class Metric(str, Enum):
    RETURNS = "returns"
    VOLUME = "volume"


class _Request(BaseModel):
    timeframe: Granularity
    exchange: str | None = None
    specific_pair: str | None = Field(default=None, alias="specificPair")

    @field_validator("timeframe", mode="before")
    @classmethod
    def _parse_timeframe(cls, value: Any) -> Granularity:
        if value is None or value == "":
            msg = "timeframe parameter is required"
            raise ConfigurationError(msg)
        return parse_granularity(value)

    @field_validator("exchange", mode="before")
    @classmethod
    def _parse_exchange(cls, value: Any) -> str | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return parse_exchange(value).value

    @field_validator("specific_pair", mode="before")
    @classmethod
    def _blank_pair(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    model_config = {"frozen": True, "populate_by_name": True, "extra": "ignore"}


class SeasonalityRequest(_Request):
    days_back: int = Field(alias="daysBack")
    metric: Metric = Metric.RETURNS


class BacktestRequest(_Request):
    max_days_back: int = Field(alias="maxDaysBack")


def _validation_message(exc: ValidationError) -> str:
    """First validation problem as a readable message."""
    error = exc.errors()[0]
    ctx_error = error.get("ctx", {}).get("error")
    if isinstance(ctx_error, ConfigurationError):
        return str(ctx_error)
    field = ".".join(str(part) for part in error.get("loc", ()))
    if error.get("type") == "missing":
        return f"{field} parameter is required"
    return f"Invalid {field}: {error.get('msg', 'invalid value')}"


def parse_request(payload: dict[str, Any]) -> SeasonalityRequest | BacktestRequest:
    """Validate a raw request body.

    Raises:
        ConfigurationError: On a missing or malformed field.
    """
    model: type[SeasonalityRequest] | type[BacktestRequest]
    model = BacktestRequest if payload.get("action") == "backtest" else SeasonalityRequest
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(_validation_message(exc)) from None


class AnalyticsService:
    """Entry point shared by the HTTP API and the CLI.

    Raises ``ConfigError`` on construction when a key in ``REQUIRED_KEYS``
    is missing from the config.
    """

    REQUIRED_KEYS: ClassVar[list[str]] = [
        "exchange.default",
        "seasonality.max_days_back",
        "seasonality.max_symbols",
        "backtest.max_training_days",
    ]

    def __init__(
        self,
        config: ConfigLoader,
        source_factory: Callable[[str, ConfigLoader], CandleSource] = create_candle_source,
    ) -> None:
        config.validate_keys(self.REQUIRED_KEYS)
        self._config = config
        self._source_factory = source_factory
        self._max_days_back = int(config.get("seasonality.max_days_back", 365))
        self._max_training_days = int(config.get("backtest.max_training_days", 365))
        self._max_symbols = int(config.get("seasonality.max_symbols", 50))

    async def handle(self, payload: dict[str, Any]) -> tuple[int, dict[str, Any]]:
        """Run one request and return ``(http_status, body)``."""
        try:
            request = parse_request(payload)
            if isinstance(request, BacktestRequest):
                body = await self.backtest(request)
            else:
                body = await self.seasonality(request)
        except ConfigurationError as exc:
            log.warning("service.request_rejected", error=str(exc))
            return 400, {"error": str(exc)}
        except (CandleSourceError, httpx.HTTPError) as exc:
            log.error("service.exchange_failed", error=str(exc))
            return 502, {"error": f"Exchange request failed: {exc}"}
        except Exception:
            log.exception("service.unexpected_error")
            return 500, {"error": "Internal error while processing the request"}
        return 200, body

    def _exchange_for(self, request: _Request) -> str:
        """Requested exchange, or ``exchange.default`` when the request names none."""
        if request.exchange:
            return request.exchange
        return parse_exchange(str(self._config.require("exchange.default"))).value

    async def seasonality(self, request: SeasonalityRequest) -> dict[str, Any]:
        """Slot statistics for one pair or the first ``max_symbols`` USDT perpetuals."""
        if not 1 <= request.days_back <= self._max_days_back:
            msg = f"daysBack must be between 1 and {self._max_days_back}, got {request.days_back}"
            raise ConfigurationError(msg)

        exchange = self._exchange_for(request)
        source = self._source_factory(exchange, self._config)
        try:
            catalog = await source.load_catalog()
            if request.specific_pair:
                symbols = [resolve_symbol(catalog, request.specific_pair, exchange)]
            else:
                symbols = usdt_perpetuals(catalog)[: self._max_symbols]
            log.info(
                "service.seasonality_start",
                exchange=exchange,
                symbols=len(symbols),
                timeframe=request.timeframe.value,
                days_back=request.days_back,
                metric=request.metric.value,
            )
            runner = SeasonalityRunner(
                source,
                inter_symbol_delay=float(
                    self._config.get("seasonality.inter_symbol_delay_seconds", 0.1)
                ),
                candle_limit=int(self._config.get("seasonality.candle_limit", 1000)),
                max_batches=int(self._config.get("seasonality.max_batches", 10)),
            )
            report = await runner.run(symbols, request.days_back, request.timeframe)
        finally:
            await source.close()
        return report.model_dump(by_alias=True)

    async def backtest(self, request: BacktestRequest) -> dict[str, Any]:
        """Walk-forward window sweep for one pair (explicit or catalog default)."""
        if not 1 <= request.max_days_back <= self._max_training_days:
            msg = (
                f"maxDaysBack must be between 1 and {self._max_training_days}, "
                f"got {request.max_days_back}"
            )
            raise ConfigurationError(msg)

        exchange = self._exchange_for(request)
        source = self._source_factory(exchange, self._config)
        try:
            catalog = await source.load_catalog()
            if request.specific_pair:
                symbol = resolve_symbol(catalog, request.specific_pair, exchange)
            else:
                symbol = default_backtest_symbol(catalog)
            log.info(
                "service.backtest_start",
                exchange=exchange,
                symbol=symbol,
                timeframe=request.timeframe.value,
                max_days_back=request.max_days_back,
            )
            backtester = WindowBacktester(
                source,
                holdout_days=int(self._config.get("backtest.holdout_days", 30)),
                top_slots=int(self._config.get("backtest.top_slots", 3)),
                min_candles_per_training_day=int(
                    self._config.get("backtest.min_candles_per_training_day", 24)
                ),
                window_delay=float(self._config.get("backtest.window_delay_seconds", 0.1)),
                candle_limit=int(self._config.get("seasonality.candle_limit", 1000)),
                max_batches=int(self._config.get("seasonality.max_batches", 10)),
            )
            windows = await backtester.backtest(symbol, request.timeframe, request.max_days_back)
        finally:
            await source.close()

        report = BacktestReport(symbol=to_display_symbol(symbol), windows=windows)
        best = report.best_window
        body = report.model_dump(by_alias=True)
        body["bestWindow"] = best.training_days if best is not None else None
        return body
