# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Trading-window check on UTC wall-clock time. Weekday 14:28-21:15 UTC, no holiday calendar.

The NYSE trades 9:30-16:00 ET, i.e. 14:30-21:00 UTC. The window opens two minutes
early to absorb scheduler jitter and closes fifteen minutes late so closing prices
can settle. Comparisons use UTC hour/minute only; no timezone database.
"""

from __future__ import annotations

from datetime import datetime, time, timezone

SESSION_OPEN_UTC = time(14, 28)
SESSION_CLOSE_UTC = time(21, 15)


def _as_utc(utc_now: datetime | None) -> datetime:
    if utc_now is None:
        return datetime.now(timezone.utc)
    if utc_now.tzinfo is None:
        return utc_now.replace(tzinfo=timezone.utc)
    return utc_now.astimezone(timezone.utc)


def is_session_active(utc_now: datetime | None = None) -> bool:
    """True on a UTC weekday within [14:28, 21:15) UTC. Naive datetimes are taken as UTC."""
    now = _as_utc(utc_now)
    if now.weekday() >= 5:
        return False
    t = time(now.hour, now.minute)
    return SESSION_OPEN_UTC <= t < SESSION_CLOSE_UTC


__all__ = ["SESSION_OPEN_UTC", "SESSION_CLOSE_UTC", "is_session_active"]
