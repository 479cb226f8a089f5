"""Strategy data models — typed representations for evaluator outputs."""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from momentum_gate.broker.models import Bar


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating one strategy against one bar series."""

    now: datetime
    target_instant: datetime
    weekday_matches: bool
    time_matches: bool
    momentum: Optional[float]  # None when no anchor bar was found
    momentum_matches: bool
    latest_bar: Bar
    anchor_bar: Optional[Bar] = None

    @property
    def all_match(self) -> bool:
        return self.weekday_matches and self.time_matches and self.momentum_matches

    @property
    def momentum_defined(self) -> bool:
        """False when there is no anchor or the value is inf/NaN."""
        return self.momentum is not None and math.isfinite(self.momentum)
