"""Session filter — pure functions, check weekday and hour eligibility."""

from datetime import datetime, time
from typing import Iterable


def is_active_weekday(now: datetime, active_weekdays: Iterable[int]) -> bool:
    """Return True if ``now.weekday()`` (Monday=0) is an active weekday."""
    return now.weekday() in set(active_weekdays)


def is_active_time(now: datetime, active_times: Iterable[time]) -> bool:
    """Return True if the upcoming hour matches any active time.

    Compares ``(now.hour + 1) % 24`` against the hour of each entry; minutes
    are ignored. At 13:xx a ``14:00`` entry matches, at 14:xx it does not.
    """
    next_hour = (now.hour + 1) % 24
    return any(t.hour == next_hour for t in active_times)
