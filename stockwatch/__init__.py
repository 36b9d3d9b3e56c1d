# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""StockWatch: watch-list of tickers kept in sync with daily trading sessions."""

__version__ = "0.1.0"
