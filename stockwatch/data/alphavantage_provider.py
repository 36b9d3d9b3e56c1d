# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Alpha Vantage quote provider (TIME_SERIES_DAILY)."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import requests

from stockwatch.core.errors import QuoteProviderError
from stockwatch.data.quote_provider import QuoteProvider

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.alphavantage.co/query"

# Bodies that come back 200 without a time series
_NOTICE_KEYS = ("Error Message", "Note", "Information")


class AlphaVantageProvider(QuoteProvider):
    """Fetch daily OHLC series from the Alpha Vantage query endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Parameters
        ----------
        api_key:
            Alpha Vantage API key. If not provided, uses ``STOCK_API_KEY`` from the environment.
        base_url:
            Query endpoint.
        timeout:
            Seconds before an outbound request is abandoned.
        session:
            Optional ``requests.Session`` for connection reuse/testing.
        """
        self.api_key = api_key or os.getenv("STOCK_API_KEY")
        if not self.api_key:
            raise ValueError("STOCK_API_KEY is not set. Please set it in your environment.")
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_daily(self, symbol: str) -> Dict[str, Any]:
        params = {
            "function": "TIME_SERIES_DAILY",
            "symbol": symbol,
            "apikey": self.api_key,
        }
        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise QuoteProviderError(f"Quote request failed for {symbol}: {exc}", symbol) from exc

        if response.status_code != 200:
            raise QuoteProviderError(
                f"Quote provider error {response.status_code} for {symbol}: {response.text[:200]}",
                symbol,
            )

        try:
            payload = response.json()
        except ValueError as exc:  # JSONDecodeError
            raise QuoteProviderError(f"Quote provider returned invalid JSON for {symbol}", symbol) from exc

        if not isinstance(payload, dict):
            raise QuoteProviderError(f"Quote provider returned unexpected body for {symbol}", symbol)

        for key in _NOTICE_KEYS:
            if key in payload:
                logger.warning("[PROVIDER] %s for %s: %s", key, symbol, str(payload[key])[:200])
        return payload


__all__ = ["DEFAULT_BASE_URL", "AlphaVantageProvider"]
