"""Seasonality HTTP API, a FastAPI app in front of AnalyticsService.

Usage:
    uvicorn seasonality.api:create_app --factory --host 0.0.0.0 --port 8100
    # or
    seasonality --serve
"""

from __future__ import annotations

from typing import Any

from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from seasonality import __version__
from seasonality.config.loader import ConfigLoader
from seasonality.core.logging import current_log_level, get_logger
from seasonality.data.source_factory import list_exchanges
from seasonality.service import AnalyticsService

log = get_logger(__name__)


def create_app(
    config: ConfigLoader | None = None,
    service: AnalyticsService | None = None,
) -> FastAPI:
    """Build the FastAPI app.

    Args:
        config: Loaded configuration; read from ``./config`` when omitted.
        service: Pre-built service (tests inject one with a fake source).
    """
    if service is None:
        config = config or ConfigLoader()
        config.validate_ranges()
        service = AnalyticsService(config)

    app = FastAPI(title="Crypto Seasonality API", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.post("/api/analytics")
    async def analytics(payload: dict[str, Any] = Body(...)) -> JSONResponse:  # noqa: B008
        status, body = await service.handle(payload)
        return JSONResponse(content=body, status_code=status)

    @app.get("/api/health")
    def health() -> dict[str, Any]:
        return {"status": "ok", "version": __version__, "exchanges": list_exchanges()}

    log.info("api.created", exchanges=list_exchanges(), log_level=current_log_level())
    return app
