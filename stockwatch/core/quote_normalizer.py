# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Normalize a raw daily time-series payload into an ordered session window.

The provider keys each session by its date (YYYY-MM-DD) and returns them newest
first. We keep the newest ``max_sessions`` entries, compute each session's change
against the previous close, and return them oldest first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from stockwatch.core.errors import QuoteProviderError
from stockwatch.models.stock import ZERO, Session, to_decimal

logger = logging.getLogger(__name__)

TIME_SERIES_KEY = "Time Series (Daily)"
MAX_SESSIONS = 25  # slightly above the business days in an average month

_FIELDS = {
    "open": "1. open",
    "high": "2. high",
    "low": "3. low",
    "close": "4. close",
}


@dataclass(frozen=True)
class NormalizedQuotes:
    """Normalizer output. Empty ``sessions`` means the symbol was not found."""

    sessions: List[Session] = field(default_factory=list)
    change: Optional[Decimal] = None

    @property
    def found(self) -> bool:
        return bool(self.sessions)


def _parse_session(date: str, record: Any) -> Session:
    if not isinstance(record, Mapping):
        raise QuoteProviderError(f"Session {date} is not an object")
    prices: Dict[str, Decimal] = {}
    for name, key in _FIELDS.items():
        if key not in record:
            raise QuoteProviderError(f"Session {date} is missing {key!r}")
        try:
            value = to_decimal(record[key])
        except ValueError as exc:
            raise QuoteProviderError(f"Session {date} has invalid {key!r}: {exc}") from exc
        if value < 0:
            raise QuoteProviderError(f"Session {date} has negative {key!r}")
        prices[name] = value
    return Session(date=date, change=ZERO, **prices)


def recompute_changes(sessions: Sequence[Session]) -> List[Session]:
    """Return ``sessions`` (oldest first) with every change re-derived from closes."""
    out: List[Session] = []
    for i, session in enumerate(sessions):
        if i == 0:
            change = session.close - session.open
        else:
            change = session.close - out[i - 1].close
        out.append(session if session.change == change else replace(session, change=change))
    return out


def normalize_quotes(payload: Any, max_sessions: int = MAX_SESSIONS) -> NormalizedQuotes:
    """Convert a provider payload into sessions (oldest first) plus the latest change.

    Parameters
    ----------
    payload:
        Decoded JSON body. A missing or empty ``"Time Series (Daily)"`` map yields an
        empty result, which callers treat as "symbol not found".
    max_sessions:
        Keep at most this many of the most recent sessions.

    Raises
    ------
    QuoteProviderError
        If a session record is malformed.
    """
    if max_sessions <= 0:
        raise ValueError("max_sessions must be positive")
    series = payload.get(TIME_SERIES_KEY) if isinstance(payload, Mapping) else None
    if not isinstance(series, Mapping) or not series:
        return NormalizedQuotes()

    newest_first: List[Session] = []
    for date in sorted(series, reverse=True):
        newest_first.append(_parse_session(date, series[date]))
        if len(newest_first) == max_sessions:
            break

    sessions = recompute_changes(list(reversed(newest_first)))
    logger.debug(
        "[NORMALIZE] %d sessions %s..%s", len(sessions), sessions[0].date, sessions[-1].date
    )
    return NormalizedQuotes(sessions=sessions, change=sessions[-1].change)


__all__ = [
    "MAX_SESSIONS",
    "TIME_SERIES_KEY",
    "NormalizedQuotes",
    "normalize_quotes",
    "recompute_changes",
]
