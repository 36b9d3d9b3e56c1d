# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Market-hours helpers."""

from stockwatch.market.market_hours import is_session_active

__all__ = ["is_session_active"]
