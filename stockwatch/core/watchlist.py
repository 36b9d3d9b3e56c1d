# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Watch-list orchestration: watch, unwatch, refresh-all, fetch-all.

Each operation is a short sequential pipeline. A step that fails raises a classified
:class:`~stockwatch.core.errors.WatchListError` and the remaining steps are skipped.
Provider and store exceptions are logged here and never reach callers raw.

Refresh batches run strictly one symbol at a time because a single API key is shared
and the provider rate-limits. A transport failure aborts the rest of the batch;
symbols already refreshed in that batch stay saved and published.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from stockwatch.core.errors import (
    AlreadyWatched,
    InvalidSymbol,
    NoStocksWatched,
    NotWatched,
    QuoteProviderError,
    StoreUnavailable,
    SymbolNotFound,
    UpstreamUnavailable,
)
from stockwatch.core.quote_normalizer import MAX_SESSIONS, NormalizedQuotes, normalize_quotes, recompute_changes
from stockwatch.core.session_merger import merge_sessions
from stockwatch.data.quote_provider import QuoteProvider
from stockwatch.db.stock_store import DuplicateStockError, StockStore, StoreError
from stockwatch.market.market_hours import is_session_active
from stockwatch.models.stock import Stock
from stockwatch.notify.broadcaster import UNWATCH, UPDATE, WATCH, Notifier

logger = logging.getLogger(__name__)

_SYMBOL_RE = re.compile(r"^[A-Z0-9][A-Z0-9.\-]{0,9}$")


def normalize_symbol(symbol: str) -> str:
    """Uppercase and escape ``symbol``; reject anything that is not a ticker."""
    cleaned = html.escape((symbol or "").strip().upper())
    if not _SYMBOL_RE.match(cleaned):
        raise InvalidSymbol(cleaned or "''")
    return cleaned


@dataclass(frozen=True)
class WatchResult:
    message: str
    stock: Stock


@dataclass
class RefreshReport:
    """Outcome of one refresh-all pass.

    ``skipped`` is True when an automatic pass ran outside trading hours and did
    nothing; that is distinct from having no stocks to refresh.
    """

    automatic: bool = False
    skipped: bool = False
    refreshed: List[str] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)
    new_sessions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "automatic": self.automatic,
            "skipped": self.skipped,
            "refreshed": list(self.refreshed),
            "not_found": list(self.not_found),
            "new_sessions": list(self.new_sessions),
        }


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WatchListService:
    """Sequences watch-list operations against the store, the provider and the notifier."""

    def __init__(
        self,
        store: StockStore,
        provider: QuoteProvider,
        notifier: Notifier,
        clock: Callable[[], datetime] = _utc_now,
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        self.store = store
        self.provider = provider
        self.notifier = notifier
        self.clock = clock
        self.max_sessions = max_sessions

    # ------------------------------------------------------------------ #
    # Pipeline steps
    # ------------------------------------------------------------------ #
    def _fetch_quotes(self, symbol: str, step: str) -> NormalizedQuotes:
        """Fetch and normalize; provider failures become UpstreamUnavailable."""
        try:
            payload = self.provider.fetch_daily(symbol)
            return normalize_quotes(payload, max_sessions=self.max_sessions)
        except QuoteProviderError as exc:
            logger.error("[%s] Quote fetch failed for %s: %s", step, symbol, exc)
            raise UpstreamUnavailable() from exc

    def _publish(self, topic: str, payload: Dict[str, Any]) -> None:
        try:
            self.notifier.publish(topic, payload)
        except Exception:
            logger.exception("[NOTIFY] Publish of %s failed", topic)

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #
    def watch(self, symbol: str) -> WatchResult:
        """Start watching ``symbol`` after its first successful quote fetch."""
        symbol = normalize_symbol(symbol)

        try:
            existing = self.store.find_one(symbol)
        except StoreError as exc:
            logger.error("[WATCH] Store lookup failed for %s: %s", symbol, exc)
            raise StoreUnavailable() from exc
        if existing is not None:
            raise AlreadyWatched(symbol)

        quotes = self._fetch_quotes(symbol, "WATCH")
        if not quotes.found:
            raise SymbolNotFound(symbol)

        try:
            stock = self.store.create(Stock(symbol=symbol, sessions=quotes.sessions))
        except DuplicateStockError as exc:
            raise AlreadyWatched(symbol) from exc
        except StoreError as exc:
            logger.error("[WATCH] Store create failed for %s: %s", symbol, exc)
            raise StoreUnavailable() from exc

        self._publish(WATCH, stock.to_dict())
        logger.info("[WATCH] Now watching %s (%d sessions)", symbol, len(stock.sessions))
        return WatchResult(message=f"The stock {symbol} is now being watched.", stock=stock)

    def unwatch(self, symbol: str) -> str:
        """Stop watching ``symbol``."""
        symbol = normalize_symbol(symbol)

        try:
            removed = self.store.find_one_and_remove(symbol)
        except StoreError as exc:
            logger.error("[UNWATCH] Store remove failed for %s: %s", symbol, exc)
            raise StoreUnavailable() from exc
        if removed is None:
            raise NotWatched(symbol)

        self._publish(UNWATCH, {"symbol": symbol})
        logger.info("[UNWATCH] Stopped watching %s", symbol)
        return f"The stock {symbol} is no longer being watched."

    def _load_all(self, step: str) -> List[Stock]:
        try:
            stocks = self.store.find_all()
        except StoreError as exc:
            logger.error("[%s] Store read failed: %s", step, exc)
            raise StoreUnavailable() from exc
        if not stocks:
            raise NoStocksWatched()
        return stocks

    def refresh_all(self, automatic: bool = False) -> RefreshReport:
        """Refresh every watched stock, one at a time.

        Automatic passes are skipped outside the trading window; manual ones always run.

        Raises
        ------
        NoStocksWatched
            Nothing is being watched.
        UpstreamUnavailable
            A quote fetch failed; symbols after it were not refreshed.
        StoreUnavailable
            The store failed to load or save.
        """
        report = RefreshReport(automatic=automatic)
        if automatic and not is_session_active(self.clock()):
            report.skipped = True
            return report

        for stock in self._load_all("REFRESH"):
            quotes = self._fetch_quotes(stock.symbol, "REFRESH")
            result = merge_sessions(stock.sessions, quotes.sessions)
            if result is None:
                logger.warning("[REFRESH] No session data returned for %s, skipping", stock.symbol)
                report.not_found.append(stock.symbol)
                continue

            stock.sessions = result.sessions
            logger.debug(
                "[REFRESH] %s: %d session(s) changed, new_trading_session=%s",
                stock.symbol,
                len(result.updated),
                result.is_new_trading_session,
            )
            try:
                saved = self.store.save(stock)
            except StoreError as exc:
                logger.error("[REFRESH] Store save failed for %s: %s", stock.symbol, exc)
                raise StoreUnavailable() from exc
            if not saved:
                logger.info("[REFRESH] %s was unwatched during refresh, skipping", stock.symbol)
                continue

            self._publish(
                UPDATE,
                {
                    "symbol": stock.symbol,
                    "change": float(result.change),
                    "updated": [s.to_dict() for s in result.sessions],
                    "newTradingSession": result.is_new_trading_session,
                },
            )
            report.refreshed.append(stock.symbol)
            if result.is_new_trading_session:
                report.new_sessions.append(stock.symbol)

        logger.info(
            "[REFRESH] Done: refreshed=%d not_found=%d new_sessions=%d",
            len(report.refreshed),
            len(report.not_found),
            len(report.new_sessions),
        )
        return report

    def fetch_all(self) -> List[Dict[str, Any]]:
        """All watched stocks without store ids, changes recomputed from stored closes."""
        out: List[Dict[str, Any]] = []
        for stock in self._load_all("FETCH"):
            clean = Stock(symbol=stock.symbol, sessions=recompute_changes(stock.sessions))
            out.append(clean.to_dict())
        return out

    def range_summary(self, symbol: str) -> Dict[str, Any]:
        """High/low extremes over the stored window of ``symbol``."""
        symbol = normalize_symbol(symbol)
        try:
            stock = self.store.find_one(symbol)
        except StoreError as exc:
            logger.error("[RANGE] Store lookup failed for %s: %s", symbol, exc)
            raise StoreUnavailable() from exc
        if stock is None or not stock.sessions:
            raise NotWatched(symbol)
        return {
            "symbol": stock.symbol,
            "sessions": len(stock.sessions),
            "from": stock.sessions[0].date,
            "to": stock.sessions[-1].date,
            "intraday_high": float(stock.intraday_high),
            "intraday_low": float(stock.intraday_low),
            "closing_high": float(stock.closing_high),
            "closing_low": float(stock.closing_low),
        }


__all__ = ["RefreshReport", "WatchListService", "WatchResult", "normalize_symbol"]
