"""
Drain deadline assignment for preemptible instances.

Preemptible instances are reclaimed at the latest 24 hours after creation.
A deadline is picked between one third and two thirds of the remaining time
so that nodes created together are not all drained together.
"""

import math
import random
from datetime import datetime, timedelta
from typing import Optional

PREEMPTION_HORIZON = timedelta(hours=24)
MIN_SPAN_HOURS = 1
DEBUG_MIN_MINUTES = 2
DEBUG_MAX_MINUTES = 6


def span_hours(created_at: datetime, now: datetime) -> int:
    """One third of the hours left before the preemption horizon, at least 1."""
    remaining = (created_at + PREEMPTION_HORIZON) - now
    span = math.floor(remaining.total_seconds() / 3600 / 3)
    return max(span, MIN_SPAN_HOURS)


def assign_deadline(
    created_at: datetime,
    now: datetime,
    debug_mode: bool = False,
    rng: Optional[random.Random] = None,
) -> datetime:
    """
    Compute a new drain deadline for an instance.

    Args:
        created_at: Instance creation time
        now: Current time
        debug_mode: Use a 2-6 minute deadline instead of the 24h model
        rng: Random source (a fresh unseeded generator if omitted)

    Returns:
        The deadline, always later than now
    """
    rng = rng or random.Random()

    if debug_mode:
        return now + timedelta(minutes=rng.randint(DEBUG_MIN_MINUTES, DEBUG_MAX_MINUTES))

    span = span_hours(created_at, now)
    jitter = rng.randrange(span)
    return now + timedelta(hours=span + jitter)
