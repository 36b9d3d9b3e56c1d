# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Shared fixtures: provider payloads, in-memory provider/notifier doubles, temp store."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

import pytest

from stockwatch.core.errors import QuoteProviderError
from stockwatch.core.watchlist import WatchListService
from stockwatch.db.stock_store import StockStore

# Wednesday 2026-01-28 15:00 UTC: inside the trading window
MARKET_OPEN_UTC = datetime(2026, 1, 28, 15, 0, tzinfo=timezone.utc)


def build_payload(
    n: int,
    start: date = date(2026, 1, 1),
    base: float = 100.0,
    step: float = 1.0,
) -> Dict[str, Any]:
    """Daily time-series body with ``n`` sessions, newest first like the provider.

    Session ``i`` (0 = oldest) is dated ``start + i`` days, closes at
    ``base + i * step`` and opened 0.50 below its close.
    """
    series: Dict[str, Dict[str, str]] = {}
    for i in reversed(range(n)):
        close = base + i * step
        series[(start + timedelta(days=i)).isoformat()] = {
            "1. open": f"{close - 0.5:.4f}",
            "2. high": f"{close + 1:.4f}",
            "3. low": f"{close - 1:.4f}",
            "4. close": f"{close:.4f}",
            "5. volume": "1000000",
        }
    return {
        "Meta Data": {"1. Information": "Daily Prices (open, high, low, close) and Volumes"},
        "Time Series (Daily)": series,
    }


Response = Union[Dict[str, Any], Exception]


class FakeProvider:
    """Quote provider returning canned bodies (or raising canned errors) per symbol."""

    def __init__(self, responses: Optional[Dict[str, Response]] = None) -> None:
        self.responses: Dict[str, Response] = dict(responses or {})
        self.calls: List[str] = []

    def fetch_daily(self, symbol: str) -> Dict[str, Any]:
        self.calls.append(symbol)
        response = self.responses.get(symbol, {"Error Message": "Invalid API call."})
        if isinstance(response, Exception):
            raise response
        return response


class RecordingNotifier:
    """Captures published events."""

    def __init__(self) -> None:
        self.events: List[tuple] = []

    def publish(self, topic: str, payload: Dict[str, Any]) -> None:
        self.events.append((topic, payload))

    def topics(self) -> List[str]:
        return [topic for topic, _ in self.events]


@pytest.fixture
def payload():
    """Factory for provider bodies (see :func:`build_payload`)."""
    return build_payload


@pytest.fixture
def transport_error():
    return lambda symbol: QuoteProviderError(f"Quote request failed for {symbol}: timed out", symbol)


@pytest.fixture
def store(tmp_path) -> StockStore:
    return StockStore(tmp_path / "stocks.db")


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clock():
    """Mutable clock; set ``clock.now`` to move time."""

    class _Clock:
        now = MARKET_OPEN_UTC

        def __call__(self) -> datetime:
            return self.now

    return _Clock()


@pytest.fixture
def service(store, provider, notifier, clock) -> WatchListService:
    return WatchListService(store, provider, notifier, clock=clock)
