# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""App-level models (sessions and watched stocks)."""

from stockwatch.models.stock import Session, Stock, to_decimal

__all__ = [
    "Session",
    "Stock",
    "to_decimal",
]
