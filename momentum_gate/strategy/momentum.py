"""Momentum computation — pure functions over an ascending bar series.

The momentum anchor is the most recent bar at or before the start of the
hour ``offset_hours - 1`` hours before *now*. Momentum is the percentage
change from the anchor's open to the latest bar's close.
"""

import math
from datetime import datetime, timedelta
from typing import Optional, Sequence

from momentum_gate.broker.models import Bar

PERCENT = 100.0


def momentum_target_instant(now: datetime, offset_hours: int) -> datetime:
    """Return the hour-truncated instant the anchor search looks back to.

    An offset of 1 yields the start of the current hour. The evaluation is
    assumed to run an hour ahead of the candle it assesses.
    """
    momentum_instant = now + timedelta(hours=1 - offset_hours)
    return momentum_instant.replace(minute=0, second=0, microsecond=0)


def find_anchor_bar(series: Sequence[Bar], target: datetime) -> Optional[Bar]:
    """Return the bar with the greatest timestamp not after *target*.

    Scans newest to oldest. Returns ``None`` when every bar is after *target*.
    """
    for bar in reversed(series):
        if bar.timestamp <= target:
            return bar
    return None


def _divide(numerator: float, denominator: float) -> float:
    """IEEE-754 division: a zero denominator yields ±inf or NaN."""
    try:
        return numerator / denominator
    except ZeroDivisionError:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def calculate_momentum(latest: Bar, anchor: Bar) -> float:
    """Percentage change from ``anchor.open`` to ``latest.close``."""
    return (_divide(latest.close, anchor.open) - 1.0) * PERCENT


def momentum_matches(
    momentum: Optional[float],
    greater_than: Optional[float] = None,
    less_than: Optional[float] = None,
) -> bool:
    """Apply the threshold test; every configured bound must hold.

    Always ``False`` when *momentum* is ``None``, infinite or NaN.
    """
    if momentum is None or not math.isfinite(momentum):
        return False
    match = True
    if greater_than is not None:
        match = match and momentum > greater_than
    if less_than is not None:
        match = match and momentum < less_than
    return match
