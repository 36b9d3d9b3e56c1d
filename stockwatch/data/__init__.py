# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Quote providers."""

from stockwatch.data.alphavantage_provider import AlphaVantageProvider
from stockwatch.data.quote_provider import QuoteProvider

__all__ = ["AlphaVantageProvider", "QuoteProvider"]
