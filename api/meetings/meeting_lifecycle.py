# api/meetings/meeting_lifecycle.py
"""
Lifecycle of a meeting as a pure function of its schedule.

The ``is_active`` column on ``Meeting`` is only a projection of this for
listings; anything that decides an outcome calls ``derive_state`` instead.
"""
import enum
from datetime import datetime, timedelta
from typing import Tuple

from utils.clock import as_utc

MAX_DURATION_MINUTES = 720


class LifecycleState(str, enum.Enum):
    dormant = "dormant"
    active  = "active"
    ended   = "ended"


def meeting_window(start: datetime, duration_minutes: int) -> Tuple[datetime, datetime]:
    """Return the half-open window [start, end) of a meeting."""
    start = as_utc(start)
    return start, start + timedelta(minutes=duration_minutes)


def derive_state(now: datetime, start: datetime, duration_minutes: int) -> LifecycleState:
    begin, end = meeting_window(start, duration_minutes)
    now = as_utc(now)
    if now < begin:
        return LifecycleState.dormant
    if now >= end:
        return LifecycleState.ended
    return LifecycleState.active
