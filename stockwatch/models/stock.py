# Copyright 2026 StockWatch
# SPDX-License-Identifier: MIT
"""Session and Stock: a watched symbol and its recent daily trading sessions.

Prices are held as ``Decimal`` quantized to cents so that per-session deltas are
exact. Stored documents keep decimals as strings; API payloads render floats.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Any) -> Decimal:
    """Parse ``value`` into a Decimal rounded half-up to two places.

    Raises
    ------
    ValueError
        If ``value`` is not a finite number.
    """
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"Not a decimal value: {value!r}") from exc
    if not number.is_finite():
        raise ValueError(f"Not a finite decimal value: {value!r}")
    return number.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Session:
    """One trading day for one symbol.

    Attributes
    ----------
    date:
        Session date (YYYY-MM-DD).
    open, high, low, close:
        Prices rounded to two places. ``close`` is the current value while the
        session is still trading.
    change:
        ``close`` minus the previous session's close, or ``close - open`` for the
        earliest session in a window.
    """

    date: str
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    change: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict; decimals as floats."""
        return {
            "date": self.date,
            "open": float(self.open),
            "close": float(self.close),
            "high": float(self.high),
            "low": float(self.low),
            "change": float(self.change),
        }

    def to_document(self) -> Dict[str, str]:
        """Storage dict; decimals as exact strings."""
        return {
            "date": self.date,
            "open": str(self.open),
            "high": str(self.high),
            "low": str(self.low),
            "close": str(self.close),
            "change": str(self.change),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        return cls(
            date=str(data["date"]),
            open=to_decimal(data["open"]),
            high=to_decimal(data["high"]),
            low=to_decimal(data["low"]),
            close=to_decimal(data["close"]),
            change=to_decimal(data.get("change", ZERO)),
        )


@dataclass
class Stock:
    """A watched symbol with its session window (oldest first).

    ``change`` is derived from the newest session rather than stored separately,
    so it cannot drift from the session history. ``id`` is the store's row id and
    is never part of API payloads.
    """

    symbol: str
    sessions: List[Session] = field(default_factory=list)
    id: Optional[int] = None

    @property
    def change(self) -> Decimal:
        if not self.sessions:
            raise ValueError(f"Stock {self.symbol} has no sessions")
        return self.sessions[-1].change

    @property
    def intraday_high(self) -> Decimal:
        return max(s.high for s in self.sessions)

    @property
    def intraday_low(self) -> Decimal:
        return min(s.low for s in self.sessions)

    @property
    def closing_high(self) -> Decimal:
        return max(s.close for s in self.sessions)

    @property
    def closing_low(self) -> Decimal:
        return min(s.close for s in self.sessions)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict without the store id."""
        return {
            "symbol": self.symbol,
            "change": float(self.change),
            "sessions": [s.to_dict() for s in self.sessions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stock":
        return cls(
            symbol=str(data["symbol"]),
            sessions=[Session.from_dict(s) for s in data.get("sessions") or []],
            id=data.get("id"),
        )


__all__ = ["CENT", "ZERO", "Session", "Stock", "to_decimal"]
