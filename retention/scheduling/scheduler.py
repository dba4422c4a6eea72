from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import InvalidRatingError
from .history import attach_latency, prepend, record_review
from .models import (
    DEFAULT_EASE_FACTOR,
    MAX_EASE_FACTOR,
    MIN_EASE_FACTOR,
    SchedulingState,
    utcnow,
)
from .ratings import AssessmentRating, to_quality


logger = logging.getLogger(__name__)

Clock = Callable[[], dt.datetime]


@dataclass
class SM2Config:
    """Config values for the SM-2 scheduler."""

    min_ease_factor: float = MIN_EASE_FACTOR
    max_ease_factor: float = MAX_EASE_FACTOR
    initial_ease_factor: float = DEFAULT_EASE_FACTOR
    hard_interval_multiplier: float = 1.2
    easy_bonus: float = 1.3


def calculate_ease_factor(
    current_ease_factor: float,
    quality: int,
    *,
    min_ease_factor: float = MIN_EASE_FACTOR,
    max_ease_factor: float = MAX_EASE_FACTOR,
) -> float:
    """Standard SM-2 ease factor update, clamped to [min, max]."""
    q_delta = 5 - quality
    ef = current_ease_factor + (0.1 - q_delta * (0.08 + q_delta * 0.02))
    return max(min_ease_factor, min(max_ease_factor, ef))


def calculate_repetitions(current_repetitions: int, rating: AssessmentRating) -> int:
    if rating is AssessmentRating.AGAIN:
        return 0
    return current_repetitions + 1


def calculate_interval(
    current_interval: int,
    repetitions: int,
    ease_factor: float,
    rating: AssessmentRating,
    *,
    hard_interval_multiplier: float = 1.2,
    easy_bonus: float = 1.3,
) -> int:
    """
    Next interval in days.

    `repetitions` is the count *before* this review: 0 is the first
    exposure, 1 the second, anything higher an established card.
    `ease_factor` is the value already updated for this review.
    """
    if rating is AssessmentRating.AGAIN:
        return 1

    if rating is AssessmentRating.HARD:
        if repetitions <= 1:
            return 1
        return max(1, round(current_interval * hard_interval_multiplier))

    if rating is AssessmentRating.GOOD:
        if repetitions == 0:
            return 1
        if repetitions == 1:
            return 6
        return max(1, round(current_interval * ease_factor))

    if rating is AssessmentRating.EASY:
        if repetitions == 0:
            return 4
        if repetitions == 1:
            return 7
        return max(1, round(current_interval * ease_factor * easy_bonus))

    raise InvalidRatingError(f"Unhandled assessment rating: {rating!r}")


class SM2Scheduler:
    """
    SM-2 spaced repetition scheduler over immutable SchedulingState values.

        - ratings map to quality scores 0/3/4/5
        - ease factor is updated first and clamped to [1.3, 3.0]
        - the interval uses the pre-review repetition count
        - every review prepends one record to the history

    The current time comes from `now=` when given, otherwise from the
    injected clock.
    """

    def __init__(
        self,
        config: Optional[SM2Config] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or SM2Config()
        self.clock = clock or utcnow

    def new_state(self, *, now: Optional[dt.datetime] = None) -> SchedulingState:
        now = now or self.clock()
        return SchedulingState(
            next_review_date=now,
            ease_factor=self.config.initial_ease_factor,
        )

    def advance(
        self,
        state: SchedulingState,
        rating: AssessmentRating,
        *,
        now: Optional[dt.datetime] = None,
    ) -> SchedulingState:
        """
        Apply one review and return the new scheduling state.
        """
        quality = to_quality(rating)
        ease_factor = calculate_ease_factor(
            state.ease_factor,
            quality,
            min_ease_factor=self.config.min_ease_factor,
            max_ease_factor=self.config.max_ease_factor,
        )
        repetitions = calculate_repetitions(state.repetitions, rating)
        interval = calculate_interval(
            state.interval_days,
            state.repetitions,
            ease_factor,
            rating,
            hard_interval_multiplier=self.config.hard_interval_multiplier,
            easy_bonus=self.config.easy_bonus,
        )
        now = now or self.clock()

        record = record_review(
            previous=state,
            rating=rating,
            new_interval=interval,
            new_ease_factor=ease_factor,
            now=now,
        )

        logger.debug(
            "SM-2 review rating=%s reps %s->%s interval %s->%s ef %.2f->%.2f",
            rating.value,
            state.repetitions,
            repetitions,
            state.interval_days,
            interval,
            state.ease_factor,
            ease_factor,
        )

        return SchedulingState(
            next_review_date=now + dt.timedelta(days=interval),
            interval_days=interval,
            repetitions=repetitions,
            ease_factor=ease_factor,
            last_review_date=now,
            review_history=prepend(state.review_history, record),
        )

    def advance_with_latency(
        self,
        state: SchedulingState,
        rating: AssessmentRating,
        time_to_answer: dt.timedelta,
        *,
        now: Optional[dt.datetime] = None,
    ) -> SchedulingState:
        """Like `advance`, also recording how long the learner took to answer."""
        return attach_latency(self.advance(state, rating, now=now), time_to_answer)
