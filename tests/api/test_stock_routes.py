# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""API tests for /api/stocks/*, /health and the error envelope."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from stockwatch.api import stock_routes
from stockwatch.api.server import create_app
from stockwatch.api.stock_routes import stock_events
from stockwatch.core.config import (
    NotifyConfig,
    ProviderConfig,
    SchedulerConfig,
    ServerConfig,
    StockWatchConfig,
    StoreConfig,
)
from stockwatch.core.watchlist import WatchListService
from stockwatch.notify.broadcaster import WATCH, BroadcastHub


def _config(tmp_path, environment: str = "production", force_https: bool = False) -> StockWatchConfig:
    return StockWatchConfig(
        provider=ProviderConfig(
            base_url="https://www.alphavantage.co/query", api_key="test-key", timeout=1.0, max_sessions=25
        ),
        scheduler=SchedulerConfig(enabled=False, interval_seconds=60, warm_start=False),
        store=StoreConfig(db_path=str(tmp_path / "api.db")),
        server=ServerConfig(environment=environment, force_https=force_https, cors_origins=("*",)),
        notify=NotifyConfig(webhook_url=None, queue_size=10),
        log_level="INFO",
    )


@pytest.fixture
def client(tmp_path, service):
    app = create_app(_config(tmp_path), service=service, scheduler_enabled=False)
    with TestClient(app) as c:
        yield c


def test_watch_then_fetch(client, provider, payload) -> None:
    provider.responses["AAPL"] = payload(30)

    response = client.post("/api/stocks/watch/aapl")
    assert response.status_code == 200
    assert response.json() == {"message": "The stock AAPL is now being watched."}

    response = client.get("/api/stocks/fetch")
    assert response.status_code == 200
    (stock,) = response.json()
    assert stock["symbol"] == "AAPL"
    assert stock["change"] == 1.0
    assert len(stock["sessions"]) == 25
    assert "id" not in stock


def test_watch_twice_is_conflict(client, provider, payload) -> None:
    provider.responses["AAPL"] = payload(5)
    client.post("/api/stocks/watch/AAPL")

    response = client.post("/api/stocks/watch/AAPL")

    assert response.status_code == 409
    assert response.json() == {
        "error": {"status": 409, "message": "The stock AAPL is already being watched."}
    }


def test_watch_unknown_symbol_is_404(client) -> None:
    response = client.post("/api/stocks/watch/ZZZZ")
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "The stock ZZZZ could not be found."


def test_watch_invalid_symbol_is_400(client) -> None:
    response = client.post("/api/stocks/watch/%3Cscript%3E")
    assert response.status_code == 400
    assert response.json()["error"]["status"] == 400


def test_upstream_failure_is_generic_500(client, provider, transport_error) -> None:
    provider.responses["AAPL"] = transport_error("AAPL")

    response = client.post("/api/stocks/watch/AAPL")

    assert response.status_code == 500
    assert response.json() == {"error": {"status": 500, "message": "An error occurred. Try again later."}}


def test_unwatch(client, provider, payload) -> None:
    provider.responses["AAPL"] = payload(5)
    client.post("/api/stocks/watch/AAPL")

    response = client.delete("/api/stocks/unwatch/AAPL")
    assert response.status_code == 200
    assert response.json() == {"message": "The stock AAPL is no longer being watched."}

    response = client.delete("/api/stocks/unwatch/AAPL")
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "The stock AAPL is not currently being watched."


def test_fetch_with_nothing_watched_is_404(client) -> None:
    response = client.get("/api/stocks/fetch")
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "No stocks are currently being watched."


def test_manual_refresh(client, provider, payload) -> None:
    provider.responses["AAPL"] = payload(5)
    client.post("/api/stocks/watch/AAPL")
    provider.responses["AAPL"] = payload(6)

    response = client.post("/api/stocks/refresh")

    assert response.status_code == 200
    body = response.json()
    assert body["refreshed"] == ["AAPL"]
    assert body["new_sessions"] == ["AAPL"]
    assert body["skipped"] is False
    assert body["message"] == "Refreshed 1 stock(s)."


def test_range(client, provider, payload) -> None:
    provider.responses["AAPL"] = payload(5)
    client.post("/api/stocks/watch/AAPL")

    response = client.get("/api/stocks/AAPL/range")

    assert response.status_code == 200
    assert response.json()["closing_high"] == 104.0


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["scheduler"] == {"running": False}
    assert body["subscribers"] == 0


def test_development_errors_include_type(tmp_path, service) -> None:
    app = create_app(_config(tmp_path, environment="development"), service=service, scheduler_enabled=False)
    with TestClient(app) as client:
        response = client.delete("/api/stocks/unwatch/AAPL")
    assert response.json()["error"]["type"] == "NotWatched"


@pytest.mark.parametrize("environment,exposes_detail", [("production", False), ("development", True)])
def test_unhandled_error_is_generic_500(tmp_path, service, environment, exposes_detail) -> None:
    app = create_app(_config(tmp_path, environment=environment), service=service, scheduler_enabled=False)
    with patch.object(service, "fetch_all", side_effect=RuntimeError("boom")):
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/stocks/fetch")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["message"] == "An error occurred. Try again later."
    assert ("detail" in error) is exposes_detail


def test_force_https_redirects_plain_http(tmp_path, service) -> None:
    app = create_app(_config(tmp_path, force_https=True), service=service, scheduler_enabled=False)
    with TestClient(app) as client:
        response = client.get("/health", follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == "https://testserver/health"

        response = client.get("/health", headers={"x-forwarded-proto": "https"})
        assert response.status_code == 200


def test_lifespan_wires_service_and_scheduler(tmp_path) -> None:
    app = create_app(_config(tmp_path), scheduler_enabled=True)
    with TestClient(app) as client:
        assert isinstance(app.state.service, WatchListService)
        assert app.state.service.store.db_path == tmp_path / "api.db"
        assert client.get("/health").json()["scheduler"]["running"] is True
    assert app.state.scheduler.running is False


class _StreamRequest:
    """Stand-in for the request seen by the events route."""

    def __init__(self, hub: BroadcastHub) -> None:
        self.app = SimpleNamespace(state=SimpleNamespace(hub=hub))
        self.disconnected = False

    async def is_disconnected(self) -> bool:
        return self.disconnected


def test_event_stream_relays_hub_events_and_unsubscribes_on_close() -> None:
    hub = BroadcastHub()
    response = stock_events(_StreamRequest(hub))
    assert response.media_type == "text/event-stream"

    async def read_two():
        stream = response.body_iterator
        connected = await stream.__anext__()
        assert hub.subscriber_count == 1
        hub.publish(WATCH, {"symbol": "AAPL"})
        frame = await stream.__anext__()
        await stream.aclose()
        return connected, frame

    connected, frame = asyncio.run(read_two())

    assert connected == ": connected\n\n"
    assert frame == 'event: watch\ndata: {"symbol": "AAPL"}\n\n'
    assert hub.subscriber_count == 0


def test_event_stream_ends_when_client_disconnects() -> None:
    hub = BroadcastHub()
    request = _StreamRequest(hub)
    response = stock_events(request)

    async def run():
        stream = response.body_iterator
        await stream.__anext__()
        request.disconnected = True
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    asyncio.run(run())

    assert hub.subscriber_count == 0


def test_event_stream_sends_keepalives_when_idle(monkeypatch) -> None:
    monkeypatch.setattr(stock_routes, "SSE_KEEPALIVE_SEC", 0.0)
    monkeypatch.setattr(stock_routes, "SSE_POLL_SEC", 0.0)
    hub = BroadcastHub()
    response = stock_events(_StreamRequest(hub))

    async def run():
        stream = response.body_iterator
        await stream.__anext__()
        chunk = await stream.__anext__()
        await stream.aclose()
        return chunk

    assert asyncio.run(run()) == ": keepalive\n\n"
    assert hub.subscriber_count == 0
