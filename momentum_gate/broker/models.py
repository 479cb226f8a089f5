"""Market data models — typed representations of Binance kline rows."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Bar:
    """A single OHLC bar. ``timestamp`` marks the interval start (UTC)."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
