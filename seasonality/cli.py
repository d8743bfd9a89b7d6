"""Seasonality CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from seasonality.config.loader import ConfigError, ConfigLoader
from seasonality.service import AnalyticsService


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="seasonality",
        description="Intraday time-slot seasonality and walk-forward backtests for crypto futures",
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--seasonality", action="store_true", help="Compute slot statistics")
    mode.add_argument("--backtest", action="store_true", help="Run the window backtest")
    mode.add_argument("--serve", action="store_true", help="Serve the HTTP API")

    parser.add_argument(
        "--days-back", type=int, default=30, help="Look-back in days for --seasonality (default: 30)"
    )
    parser.add_argument(
        "--max-days-back",
        type=int,
        default=7,
        help="Longest training window in days for --backtest (default: 7)",
    )
    parser.add_argument(
        "--timeframe",
        choices=["15m", "1h", "4h", "1d"],
        default="1h",
        help="Candle period and slot width (default: 1h)",
    )
    parser.add_argument(
        "--metric",
        choices=["returns", "volume"],
        default="returns",
        help="Reported metric (default: returns)",
    )
    parser.add_argument(
        "--exchange", type=str, default=None, help="Exchange (default: exchange.default from config)"
    )
    parser.add_argument(
        "--pair", type=str, default=None, help="Single pair, e.g. BTC/USDT:USDT or BTCUSDT"
    )
    parser.add_argument(
        "--config-dir", type=str, default="config", help="Config directory path (default: config)"
    )
    parser.add_argument(
        "--env", type=str, default=None, help="Environment name (default: from SEASONALITY_ENV)"
    )
    parser.add_argument("--host", type=str, default=None, help="API bind host (default: api.host)")
    parser.add_argument("--port", type=int, default=None, help="API port (default: api.port)")

    return parser


def build_payload(args: argparse.Namespace) -> dict[str, Any]:
    """Translate parsed arguments into an analytics request body.

    Without --exchange the service falls back to ``exchange.default``.
    """
    payload: dict[str, Any] = {"timeframe": args.timeframe}
    if args.exchange:
        payload["exchange"] = args.exchange
    if args.pair:
        payload["specificPair"] = args.pair
    if args.backtest:
        payload["action"] = "backtest"
        payload["maxDaysBack"] = args.max_days_back
    else:
        payload["daysBack"] = args.days_back
        payload["metric"] = args.metric
    return payload


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = ConfigLoader(config_dir=args.config_dir, env=args.env)
    try:
        config.load()
        config.validate_ranges()
        service = AnalyticsService(config)
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 1

    if args.serve:
        import uvicorn

        from seasonality.api import create_app

        uvicorn.run(
            create_app(service=service),
            host=args.host or str(config.get("api.host", "127.0.0.1")),
            port=args.port or int(config.get("api.port", 8100)),
        )
        return 0

    payload = build_payload(args)
    status, body = asyncio.run(service.handle(payload))
    print(json.dumps(body, indent=2))
    return 0 if status == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
