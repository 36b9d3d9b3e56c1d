# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""SQLite-backed document store for watched stocks.

This module provides a thin wrapper around ``sqlite3`` exposing the keyed document
operations the watch-list needs: find one, find all, create, find-and-remove, save.
Each stock is one row keyed by symbol; its session window is a JSON document.

Responsibilities only cover storage concerns. Merging and change computation live
in :mod:`stockwatch.core`.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Tuple

from stockwatch.models.stock import Stock

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the underlying database operation fails."""


class DuplicateStockError(StoreError):
    """Raised when creating a stock whose symbol is already stored."""


class StockStore:
    """Persistence layer for :class:`Stock` documents using SQLite."""

    def __init__(self, db_path: Path | str) -> None:
        """Create a new ``StockStore``.

        Parameters
        ----------
        db_path:
            Path to the SQLite database file. Parent directories are created.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _get_connection(self) -> sqlite3.Connection:
        """Open a new SQLite connection."""
        return sqlite3.connect(str(self.db_path), timeout=10)

    def _init_db(self) -> None:
        """Initialize the database schema if it does not exist."""
        conn = self._get_connection()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS stocks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    symbol TEXT NOT NULL UNIQUE,
                    change TEXT NOT NULL,
                    sessions TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to initialize {self.db_path}: {exc}") from exc
        finally:
            conn.close()

    @staticmethod
    def _serialize(stock: Stock) -> Tuple[str, str]:
        if not stock.sessions:
            raise ValueError(f"Refusing to persist {stock.symbol} without sessions")
        sessions_json = json.dumps([s.to_document() for s in stock.sessions])
        return str(stock.change), sessions_json

    @staticmethod
    def _row_to_stock(row: Tuple[Any, ...]) -> Stock:
        row_id, symbol, sessions_json = row
        try:
            return Stock.from_dict({"id": row_id, "symbol": symbol, "sessions": json.loads(sessions_json)})
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreError(f"Stored document for {symbol} is corrupt: {exc!r}") from exc

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def find_one(self, symbol: str) -> Optional[Stock]:
        """Return the stock stored under ``symbol``, or None."""
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT id, symbol, sessions FROM stocks WHERE symbol = ?", (symbol,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"find_one({symbol}) failed: {exc}") from exc
        finally:
            conn.close()
        return self._row_to_stock(row) if row else None

    def find_all(self) -> List[Stock]:
        """Return every stored stock in insertion order."""
        conn = self._get_connection()
        try:
            rows = conn.execute("SELECT id, symbol, sessions FROM stocks ORDER BY id").fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"find_all failed: {exc}") from exc
        finally:
            conn.close()
        return [self._row_to_stock(row) for row in rows]

    def create(self, stock: Stock) -> Stock:
        """Insert a new stock and return it with its assigned id.

        Raises
        ------
        ValueError
            If the stock has no sessions.
        DuplicateStockError
            If the symbol is already stored.
        """
        change, sessions_json = self._serialize(stock)
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO stocks (symbol, change, sessions, updated_at) VALUES (?, ?, ?, ?)",
                (stock.symbol, change, sessions_json, self._now()),
            )
            conn.commit()
            row_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            raise DuplicateStockError(f"{stock.symbol} is already stored") from exc
        except sqlite3.Error as exc:
            raise StoreError(f"create({stock.symbol}) failed: {exc}") from exc
        finally:
            conn.close()
        logger.debug("[STORE] Created %s (id=%s)", stock.symbol, row_id)
        return Stock(symbol=stock.symbol, sessions=list(stock.sessions), id=row_id)

    def find_one_and_remove(self, symbol: str) -> Optional[Stock]:
        """Atomically delete the stock stored under ``symbol`` and return it, or None."""
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT id, symbol, sessions FROM stocks WHERE symbol = ?", (symbol,)
            ).fetchone()
            if row:
                conn.execute("DELETE FROM stocks WHERE id = ?", (row[0],))
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreError(f"find_one_and_remove({symbol}) failed: {exc}") from exc
        finally:
            conn.close()
        if not row:
            return None
        try:
            return self._row_to_stock(row)
        except StoreError as exc:
            # The row is already gone; a corrupt document must still be removable
            logger.warning("[STORE] Removed corrupt document for %s: %s", symbol, exc)
            return Stock(symbol=row[1], id=row[0])

    def save(self, stock: Stock) -> bool:
        """Overwrite the stored sessions and change of ``stock``.

        Returns False if the stock no longer exists (removed concurrently).
        """
        change, sessions_json = self._serialize(stock)
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "UPDATE stocks SET change = ?, sessions = ?, updated_at = ? WHERE symbol = ?",
                (change, sessions_json, self._now(), stock.symbol),
            )
            conn.commit()
            updated = cursor.rowcount > 0
        except sqlite3.Error as exc:
            raise StoreError(f"save({stock.symbol}) failed: {exc}") from exc
        finally:
            conn.close()
        return updated


__all__ = ["DuplicateStockError", "StockStore", "StoreError"]
