# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Tests for the background refresh scheduler."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from stockwatch.core.errors import NoStocksWatched, UpstreamUnavailable
from stockwatch.core.scheduler import RefreshScheduler
from stockwatch.core.watchlist import RefreshReport


def _service(side_effect=None):
    service = MagicMock()
    service.refresh_all.side_effect = side_effect
    service.refresh_all.return_value = RefreshReport(automatic=True, refreshed=["AAPL"])
    return service


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        RefreshScheduler(_service(), interval_seconds=0)


def test_run_once_records_report() -> None:
    service = _service()
    scheduler = RefreshScheduler(service)

    report = scheduler.run_once()

    service.refresh_all.assert_called_once_with(automatic=True)
    assert report.refreshed == ["AAPL"]
    assert scheduler.last_report is report
    assert scheduler.last_error is None
    assert scheduler.last_run_at is not None


def test_run_once_treats_empty_watch_list_as_benign() -> None:
    scheduler = RefreshScheduler(_service(side_effect=NoStocksWatched()))
    assert scheduler.run_once() is None
    assert scheduler.last_error is None


def test_run_once_records_classified_errors() -> None:
    scheduler = RefreshScheduler(_service(side_effect=UpstreamUnavailable()))
    assert scheduler.run_once() is None
    assert scheduler.last_error == "An error occurred. Try again later."


def test_run_once_never_raises_on_unexpected_errors() -> None:
    scheduler = RefreshScheduler(_service(side_effect=RuntimeError("boom")))
    scheduler.run_once()
    assert scheduler.last_error == "boom"


def test_loop_runs_immediately_then_keeps_going_after_failures() -> None:
    calls = []
    done = threading.Event()

    def refresh_all(automatic):
        calls.append(automatic)
        if len(calls) >= 3:
            done.set()
        raise UpstreamUnavailable()

    service = MagicMock()
    service.refresh_all.side_effect = refresh_all
    scheduler = RefreshScheduler(service, interval_seconds=0.01)

    scheduler.start()
    try:
        assert done.wait(timeout=5.0)
        assert scheduler.running
    finally:
        scheduler.stop()

    assert not scheduler.running
    assert calls[:3] == [True, True, True]


def test_warm_start_runs_a_manual_refresh_first() -> None:
    calls = []
    done = threading.Event()

    def refresh_all(automatic):
        calls.append(automatic)
        if len(calls) >= 2:
            done.set()
        return RefreshReport(automatic=automatic)

    service = MagicMock()
    service.refresh_all.side_effect = refresh_all
    scheduler = RefreshScheduler(service, interval_seconds=0.01, warm_start=True)

    scheduler.start()
    try:
        assert done.wait(timeout=5.0)
    finally:
        scheduler.stop()

    assert calls[:2] == [False, True]


def test_start_twice_keeps_one_thread() -> None:
    scheduler = RefreshScheduler(_service(), interval_seconds=60)
    scheduler.start()
    try:
        thread = scheduler._thread
        scheduler.start()
        assert scheduler._thread is thread
    finally:
        scheduler.stop()


def test_status_and_stop_without_start() -> None:
    scheduler = RefreshScheduler(_service(), interval_seconds=30)
    scheduler.stop()
    assert scheduler.status() == {
        "running": False,
        "interval_seconds": 30,
        "last_run_at": None,
        "last_error": None,
    }


def test_restart_waits_for_a_batch_still_in_flight() -> None:
    entered = threading.Event()
    release = threading.Event()
    calls = []

    def refresh_all(automatic):
        calls.append(automatic)
        entered.set()
        release.wait(timeout=5.0)
        return RefreshReport(automatic=automatic)

    service = MagicMock()
    service.refresh_all.side_effect = refresh_all
    scheduler = RefreshScheduler(service, interval_seconds=60)

    scheduler.start()
    try:
        assert entered.wait(timeout=5.0)
        first = scheduler._thread

        scheduler.stop(timeout=0.01)
        assert scheduler.running
        scheduler.start()
        assert scheduler._thread is first
        assert len(calls) == 1
    finally:
        release.set()
        scheduler.stop()

    assert not scheduler.running
    assert scheduler._thread is None
