# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Merge a freshly fetched session window into a stored session history.

Same last date: the open trading day is still moving, so only the last stored
session is replaced. Different last date: a new trading day has rolled in and the
whole window is replaced.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from stockwatch.core.quote_normalizer import recompute_changes
from stockwatch.models.stock import Session


@dataclass(frozen=True)
class MergeResult:
    """Merged history plus what changed.

    Attributes
    ----------
    sessions:
        The new stored window, oldest first.
    updated:
        Sessions that changed: the whole window on a new trading day, otherwise
        just the replaced last session.
    is_new_trading_session:
        True when the window rolled forward to a new date.
    """

    sessions: List[Session]
    updated: List[Session]
    is_new_trading_session: bool

    @property
    def change(self) -> Decimal:
        return self.sessions[-1].change


def merge_sessions(stored: Sequence[Session], fetched: Sequence[Session]) -> Optional[MergeResult]:
    """Merge ``fetched`` into ``stored``. Returns None when there is nothing to merge."""
    if not fetched:
        return None

    latest = fetched[-1]
    if stored and stored[-1].date == latest.date:
        merged = recompute_changes([*stored[:-1], latest])
        return MergeResult(sessions=merged, updated=[merged[-1]], is_new_trading_session=False)

    merged = recompute_changes(fetched)
    return MergeResult(sessions=merged, updated=list(merged), is_new_trading_session=True)


__all__ = ["MergeResult", "merge_sessions"]
