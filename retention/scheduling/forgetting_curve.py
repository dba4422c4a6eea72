"""
Simplified exponential forgetting curve, R = e^(-t/S).

S (stability) is approximated as interval_days * ease_factor.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Optional

from .models import SchedulingState, utcnow


def stability(scheduling: SchedulingState) -> float:
    return scheduling.interval_days * scheduling.ease_factor


def predict_optimal_review_time(
    scheduling: SchedulingState,
    target_retention: float,
    *,
    now: Optional[dt.datetime] = None,
) -> dt.datetime:
    """
    Point in time at which retention is expected to decay to `target_retention`.

    `target_retention` must be in (0, 1]; callers validate it. A value of
    zero or below makes `math.log` raise ValueError.
    """
    now = now or utcnow()
    optimal_days = -stability(scheduling) * math.log(target_retention)
    return now + dt.timedelta(days=optimal_days)


def retention_probability(
    scheduling: SchedulingState,
    *,
    now: Optional[dt.datetime] = None,
) -> float:
    """Estimated probability of recall right now."""
    s = stability(scheduling)
    if scheduling.last_review_date is None or s <= 0:
        return 1.0

    now = now or utcnow()
    elapsed_days = max(0.0, (now - scheduling.last_review_date).total_seconds() / 86400.0)
    return math.exp(-elapsed_days / s)
