"""
Review history bookkeeping.

History is a tuple ordered most recent first. Records are immutable; the
only rewrite allowed is attaching response latency to the newest record.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Tuple

from .models import ReviewRecord, SchedulingState
from .ratings import AssessmentRating


def record_review(
    *,
    previous: SchedulingState,
    rating: AssessmentRating,
    new_interval: int,
    new_ease_factor: float,
    now: dt.datetime,
) -> ReviewRecord:
    return ReviewRecord(
        date=now,
        rating=rating,
        previous_interval=previous.interval_days,
        new_interval=new_interval,
        previous_ease_factor=previous.ease_factor,
        new_ease_factor=new_ease_factor,
        time_to_answer=None,
    )


def prepend(
    history: Tuple[ReviewRecord, ...],
    record: ReviewRecord,
) -> Tuple[ReviewRecord, ...]:
    return (record,) + tuple(history)


def attach_latency(
    state: SchedulingState,
    time_to_answer: dt.timedelta,
) -> SchedulingState:
    """
    Return `state` with `time_to_answer` set on the most recent review record.

    Older records are left untouched. A state without history is returned as is.
    """
    if not state.review_history:
        return state

    latest = dataclasses.replace(state.review_history[0], time_to_answer=time_to_answer)
    return dataclasses.replace(
        state,
        review_history=(latest,) + state.review_history[1:],
    )
