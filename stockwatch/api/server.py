# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""FastAPI server: watch-list routes, live event stream, background refresh scheduler."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from stockwatch.api.stock_routes import router as stock_router
from stockwatch.core.config import StockWatchConfig, load_config
from stockwatch.core.errors import GENERIC_ERROR_MESSAGE, WatchListError
from stockwatch.core.scheduler import RefreshScheduler
from stockwatch.core.watchlist import WatchListService
from stockwatch.data.alphavantage_provider import AlphaVantageProvider
from stockwatch.db.stock_store import StockStore
from stockwatch.notify.broadcaster import BroadcastHub, FanoutNotifier, Notifier, WebhookNotifier

logger = logging.getLogger(__name__)


def build_service(config: StockWatchConfig, hub: BroadcastHub) -> WatchListService:
    """Wire store, provider and notifiers from configuration."""
    notifiers: List[Notifier] = [hub]
    if config.notify.webhook_url:
        notifiers.append(WebhookNotifier(config.notify.webhook_url))
    notifier: Notifier = hub if len(notifiers) == 1 else FanoutNotifier(notifiers)
    provider = AlphaVantageProvider(
        api_key=config.provider.api_key,
        base_url=config.provider.base_url,
        timeout=config.provider.timeout,
    )
    store = StockStore(config.store.db_path)
    logger.info("[CONFIG] Using db_path=%s", store.db_path)
    return WatchListService(store, provider, notifier, max_sessions=config.provider.max_sessions)


def create_app(
    config: Optional[StockWatchConfig] = None,
    service: Optional[WatchListService] = None,
    hub: Optional[BroadcastHub] = None,
    scheduler_enabled: Optional[bool] = None,
) -> FastAPI:
    """Build the application. Components not passed in are wired from config at startup."""
    config = config or load_config()
    hub = hub or BroadcastHub(queue_size=config.notify.queue_size)
    if scheduler_enabled is None:
        scheduler_enabled = config.scheduler.enabled

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "service", None) is None:
            app.state.service = build_service(config, hub)
        scheduler: Optional[RefreshScheduler] = None
        if scheduler_enabled:
            scheduler = RefreshScheduler(
                app.state.service,
                interval_seconds=config.scheduler.interval_seconds,
                warm_start=config.scheduler.warm_start,
            )
            scheduler.start()
        else:
            logger.info("[SCHEDULER] Disabled")
        app.state.scheduler = scheduler
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop()

    app = FastAPI(title="StockWatch API", version="0.1.0", lifespan=lifespan)
    app.state.config = config
    app.state.hub = hub
    app.state.service = service
    app.state.scheduler = None

    @app.exception_handler(WatchListError)
    async def watchlist_error_handler(request: Request, exc: WatchListError) -> JSONResponse:
        error: Dict[str, Any] = exc.to_dict()
        if config.server.is_development:
            error["type"] = type(exc).__name__
        return JSONResponse(status_code=exc.status, content={"error": error})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("[API] Unhandled error on %s %s", request.method, request.url.path)
        error: Dict[str, Any] = {"status": 500, "message": GENERIC_ERROR_MESSAGE}
        if config.server.is_development:
            error["type"] = type(exc).__name__
            error["detail"] = str(exc)
        return JSONResponse(status_code=500, content={"error": error})

    if config.server.force_https:
        @app.middleware("http")
        async def https_redirect_middleware(request: Request, call_next):
            """Redirect plain-HTTP requests seen behind a proxy to HTTPS."""
            if request.headers.get("x-forwarded-proto") != "https":
                url = request.url.replace(scheme="https")
                return RedirectResponse(str(url), status_code=307)
            return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.server.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(stock_router)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        scheduler: Optional[RefreshScheduler] = app.state.scheduler
        return {
            "ok": True,
            "scheduler": scheduler.status() if scheduler is not None else {"running": False},
            "subscribers": hub.subscriber_count,
        }

    return app


__all__ = ["build_service", "create_app"]
