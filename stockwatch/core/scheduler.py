# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Background refresh scheduler.

Runs ``refresh_all(automatic=True)`` immediately on start, then waits a fixed
interval after every completion (success or error) and runs again until stopped.
There is no backoff: a failed batch is retried at the same cadence. Nothing is
persisted across restarts.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from stockwatch.core.errors import NoStocksWatched, WatchListError
from stockwatch.core.watchlist import RefreshReport, WatchListService

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 10.0


class RefreshScheduler:
    """Self-rescheduling refresh loop on a daemon thread."""

    def __init__(
        self,
        service: WatchListService,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        warm_start: bool = False,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.service = service
        self.interval_seconds = interval_seconds
        self.warm_start = warm_start
        self.last_run_at: Optional[str] = None
        self.last_error: Optional[str] = None
        self.last_report: Optional[RefreshReport] = None
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    def run_once(self, automatic: bool = True) -> Optional[RefreshReport]:
        """Run one refresh cycle. Never raises; failures are logged and recorded."""
        report: Optional[RefreshReport] = None
        try:
            report = self.service.refresh_all(automatic=automatic)
            self.last_error = None
            if report.skipped:
                logger.debug("[SCHEDULER] Outside trading window, skipping refresh")
        except NoStocksWatched:
            self.last_error = None
            logger.debug("[SCHEDULER] No stocks watched, nothing to refresh")
        except WatchListError as e:
            self.last_error = e.message
            logger.warning("[SCHEDULER] Refresh failed: %s", e.message)
        except Exception as e:
            self.last_error = str(e)
            logger.exception("[SCHEDULER] Error in refresh: %s", e)
        self.last_run_at = datetime.now(timezone.utc).isoformat()
        self.last_report = report
        return report

    def _loop(self, stop_event: threading.Event) -> None:
        logger.info("[SCHEDULER] Started with interval %.1f seconds", self.interval_seconds)
        if self.warm_start and not stop_event.is_set():
            self.run_once(automatic=False)
        while not stop_event.is_set():
            self.run_once(automatic=True)
            stop_event.wait(self.interval_seconds)
        logger.info("[SCHEDULER] Stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background loop."""
        if self.running:
            if self._stop_event is not None and self._stop_event.is_set():
                logger.warning("[SCHEDULER] Previous loop is still finishing, not restarting")
            else:
                logger.warning("[SCHEDULER] Already running")
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._loop,
            args=(self._stop_event,),
            daemon=True,
            name="RefreshScheduler",
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the loop to stop and wait for the current cycle to finish."""
        if self._stop_event is not None:
            logger.info("[SCHEDULER] Signaling stop...")
            self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                # Keep the reference so start() cannot overlap a batch still in flight
                logger.warning("[SCHEDULER] Thread did not stop within timeout")
                return
        self._stop_event = None
        self._thread = None

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "last_run_at": self.last_run_at,
            "last_error": self.last_error,
        }


__all__ = ["DEFAULT_INTERVAL_SECONDS", "RefreshScheduler"]
