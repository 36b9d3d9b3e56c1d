# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Error taxonomy for watch-list operations.

Every failure that reaches a caller is a :class:`WatchListError` carrying an HTTP-style
status and a human-readable message. Server-side failures (provider, store) use a
generic message; their cause is chained and logged, never shown to callers.
"""

from __future__ import annotations

from typing import Optional

GENERIC_ERROR_MESSAGE = "An error occurred. Try again later."


class QuoteProviderError(Exception):
    """Raised by quote providers on transport, HTTP, or payload failures."""

    def __init__(self, message: str, symbol: Optional[str] = None):
        self.message = message
        self.symbol = symbol
        super().__init__(message)


class WatchListError(Exception):
    """Base class for classified watch-list failures."""

    status: int = 500

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        if status is not None:
            self.status = status
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"status": self.status, "message": self.message}


class InvalidSymbol(WatchListError):
    status = 400

    def __init__(self, symbol: str):
        super().__init__(f"The symbol {symbol} is not a valid ticker symbol.")


class AlreadyWatched(WatchListError):
    status = 409

    def __init__(self, symbol: str):
        super().__init__(f"The stock {symbol} is already being watched.")


class NotWatched(WatchListError):
    status = 404

    def __init__(self, symbol: str):
        super().__init__(f"The stock {symbol} is not currently being watched.")


class SymbolNotFound(WatchListError):
    status = 404

    def __init__(self, symbol: str):
        super().__init__(f"The stock {symbol} could not be found.")


class NoStocksWatched(WatchListError):
    status = 404

    def __init__(self) -> None:
        super().__init__("No stocks are currently being watched.")


class UpstreamUnavailable(WatchListError):
    """Quote provider failed (network, HTTP status, malformed payload)."""

    status = 500

    def __init__(self) -> None:
        super().__init__(GENERIC_ERROR_MESSAGE)


class StoreUnavailable(WatchListError):
    """Persistent store failed."""

    status = 500

    def __init__(self) -> None:
        super().__init__(GENERIC_ERROR_MESSAGE)


__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "QuoteProviderError",
    "WatchListError",
    "InvalidSymbol",
    "AlreadyWatched",
    "NotWatched",
    "SymbolNotFound",
    "NoStocksWatched",
    "UpstreamUnavailable",
    "StoreUnavailable",
]
