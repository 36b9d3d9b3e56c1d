# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Provider interface for fetching raw daily session data."""

from __future__ import annotations

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class QuoteProvider(Protocol):
    """Interface for quote providers.

    Implementations return the provider's decoded JSON body untouched; turning it
    into sessions is the normalizer's job.
    """

    def fetch_daily(self, symbol: str) -> Dict[str, Any]:
        """Fetch the daily time series for ``symbol``.

        Parameters
        ----------
        symbol:
            Uppercase ticker symbol (e.g., ``"AAPL"``).

        Returns
        -------
        dict
            Decoded response body. A body without a time series means the
            symbol is unknown to the provider; that is not an error.

        Raises
        ------
        QuoteProviderError
            On network failure, non-200 status, or an undecodable body.
        """
        ...


__all__ = ["QuoteProvider"]
