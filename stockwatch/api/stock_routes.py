# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Watch-list API under /api/stocks: watch, unwatch, fetch, manual refresh, live events."""

from __future__ import annotations

import asyncio
import time
from typing import Any, AsyncIterator, Dict, List

from fastapi import APIRouter, Path, Request
from fastapi.responses import StreamingResponse

from stockwatch.core.watchlist import WatchListService
from stockwatch.notify.broadcaster import BroadcastHub, format_sse

router = APIRouter(prefix="/api/stocks", tags=["stocks"])

SSE_KEEPALIVE_SEC = 15.0
SSE_POLL_SEC = 0.25


def _service(request: Request) -> WatchListService:
    return request.app.state.service


@router.post("/watch/{symbol}")
def watch_stock(request: Request, symbol: str = Path(..., description="Ticker symbol")) -> Dict[str, Any]:
    """Add a stock to the watch list."""
    result = _service(request).watch(symbol)
    return {"message": result.message}


@router.delete("/unwatch/{symbol}")
def unwatch_stock(request: Request, symbol: str = Path(..., description="Ticker symbol")) -> Dict[str, Any]:
    """Remove a stock from the watch list."""
    return {"message": _service(request).unwatch(symbol)}


@router.get("/fetch")
def fetch_stocks(request: Request) -> List[Dict[str, Any]]:
    """Stored session data on every watched stock."""
    return _service(request).fetch_all()


@router.post("/refresh")
def refresh_stocks(request: Request) -> Dict[str, Any]:
    """Manual refresh of every watched stock, regardless of trading hours."""
    report = _service(request).refresh_all(automatic=False)
    out = report.to_dict()
    out["message"] = f"Refreshed {len(report.refreshed)} stock(s)."
    return out


@router.get("/events")
def stock_events(request: Request) -> StreamingResponse:
    """Server-Sent Events stream of watch, unwatch and update events."""
    hub: BroadcastHub = request.app.state.hub

    async def event_stream() -> AsyncIterator[str]:
        with hub.subscribe() as sub:
            yield ": connected\n\n"
            last_sent = time.monotonic()
            while not await request.is_disconnected():
                event = sub.poll()
                if event is not None:
                    yield format_sse(event)
                    last_sent = time.monotonic()
                    continue
                if time.monotonic() - last_sent >= SSE_KEEPALIVE_SEC:
                    yield ": keepalive\n\n"
                    last_sent = time.monotonic()
                await asyncio.sleep(SSE_POLL_SEC)

    return StreamingResponse(event_stream(), media_type="text/event-stream")


@router.get("/{symbol}/range")
def stock_range(request: Request, symbol: str = Path(..., description="Ticker symbol")) -> Dict[str, Any]:
    """Intraday and closing highs/lows over the stored session window."""
    return _service(request).range_summary(symbol)
