"""Strategy definition dataclass.

Represents one momentum strategy loaded from the strategies YAML file.
"""

from dataclasses import dataclass, field
from datetime import time
from typing import Optional

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


@dataclass(frozen=True)
class StrategyDefinition:
    """Gating conditions for a single strategy.

    ``active_weekdays`` uses ``datetime.weekday()`` numbering (Monday=0).
    Only the hour of each ``active_times`` entry takes part in matching.
    """

    name: str
    instrument: str
    offset_hours: int
    greater_than: Optional[float] = None
    less_than: Optional[float] = None
    active_weekdays: frozenset[int] = field(default_factory=frozenset)
    active_times: tuple[time, ...] = ()
    up: bool = True

    @property
    def direction(self) -> str:
        """Return ``"Up"`` or ``"Down"``; descriptive only."""
        return "Up" if self.up else "Down"

    @property
    def weekday_names(self) -> list[str]:
        return [WEEKDAY_NAMES[d] for d in sorted(self.active_weekdays)]
