from __future__ import annotations

import dataclasses
import datetime as dt
import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .ratings import AssessmentRating, DifficultyLevel


DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 3.0


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclass(frozen=True)
class ReviewRecord:
    """One entry of a card's review history. Never mutated after creation."""

    date: dt.datetime
    rating: AssessmentRating
    previous_interval: int
    new_interval: int
    previous_ease_factor: float
    new_ease_factor: float
    time_to_answer: Optional[dt.timedelta] = None


@dataclass(frozen=True)
class SchedulingState:
    """
    SM-2 scheduling data for a single flashcard.

    Instances are replaced as a whole on every review. `review_history`
    is ordered most recent first.
    """

    next_review_date: dt.datetime
    interval_days: int = 0
    repetitions: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    last_review_date: Optional[dt.datetime] = None
    review_history: Tuple[ReviewRecord, ...] = ()

    @classmethod
    def create(cls, now: Optional[dt.datetime] = None) -> SchedulingState:
        """Scheduling state for a card that has never been reviewed; due immediately."""
        return cls(next_review_date=now or utcnow())

    def is_due(self, now: Optional[dt.datetime] = None) -> bool:
        now = now or utcnow()
        return self.next_review_date <= now

    @property
    def latest_review(self) -> Optional[ReviewRecord]:
        if not self.review_history:
            return None
        return self.review_history[0]


@dataclass(frozen=True)
class ScheduledCard:
    """A scheduling state paired with the difficulty of the card it belongs to."""

    scheduling: SchedulingState
    difficulty: DifficultyLevel = DifficultyLevel.INTERMEDIATE
    card_id: Optional[str] = None


@dataclass(frozen=True)
class Flashcard:
    deck_id: uuid.UUID
    question: str
    answer: str
    scheduling: SchedulingState
    difficulty: DifficultyLevel = DifficultyLevel.INTERMEDIATE
    tags: Tuple[str, ...] = ()
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: dt.datetime = field(default_factory=utcnow)
    updated_at: dt.datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        deck_id: uuid.UUID,
        question: str,
        answer: str,
        *,
        difficulty: DifficultyLevel = DifficultyLevel.INTERMEDIATE,
        tags: Tuple[str, ...] = (),
        now: Optional[dt.datetime] = None,
    ) -> Flashcard:
        """
        Build a new flashcard with fresh scheduling data.

        Raises ValueError if the question or answer is blank.
        """
        if not question or not question.strip():
            raise ValueError("Question cannot be empty")
        if not answer or not answer.strip():
            raise ValueError("Answer cannot be empty")

        now = now or utcnow()
        return cls(
            deck_id=deck_id,
            question=question,
            answer=answer,
            scheduling=SchedulingState.create(now),
            difficulty=difficulty,
            tags=tuple(tags),
            created_at=now,
            updated_at=now,
        )

    def is_due(self, now: Optional[dt.datetime] = None) -> bool:
        return self.scheduling.is_due(now)

    def with_scheduling(
        self,
        scheduling: SchedulingState,
        *,
        now: Optional[dt.datetime] = None,
    ) -> Flashcard:
        return dataclasses.replace(self, scheduling=scheduling, updated_at=now or utcnow())
