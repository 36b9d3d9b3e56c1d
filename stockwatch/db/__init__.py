# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Persistent store for watched stocks."""

from stockwatch.db.stock_store import DuplicateStockError, StockStore, StoreError

__all__ = ["DuplicateStockError", "StockStore", "StoreError"]
