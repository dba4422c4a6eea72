from __future__ import annotations

import datetime as dt
import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from retention.scheduling.models import Flashcard, SchedulingState
from retention.scheduling.queries import RetentionStats, calculate_retention_stats
from retention.scheduling.ratings import AssessmentRating, DifficultyLevel
from retention.scheduling.scheduler import SM2Scheduler


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    """Summary of a single review, for callers that log quiz results."""

    card_id: uuid.UUID
    deck_id: uuid.UUID
    rating: AssessmentRating
    is_correct: bool
    difficulty: DifficultyLevel
    reviewed_at: dt.datetime
    previous_interval: int
    new_interval: int
    next_review_date: dt.datetime
    time_to_answer: Optional[dt.timedelta] = None


class ReviewService:
    """
    Card-level review workflow on top of the SM-2 scheduler.

    This service is storage-agnostic: it takes flashcards or scheduling
    states from the caller and returns new values. Callers persist them.
    """

    def __init__(self, scheduler: Optional[SM2Scheduler] = None) -> None:
        self.scheduler = scheduler or SM2Scheduler()

    def review_state(
        self,
        state: Optional[SchedulingState],
        rating: AssessmentRating,
        *,
        time_to_answer: Optional[dt.timedelta] = None,
        now: Optional[dt.datetime] = None,
    ) -> SchedulingState:
        """
        Compute the next scheduling state. A missing state is treated as a
        card that has never been reviewed.
        """
        now = now or self.scheduler.clock()
        if state is None:
            state = self.scheduler.new_state(now=now)

        if time_to_answer is None:
            updated = self.scheduler.advance(state, rating, now=now)
        else:
            updated = self.scheduler.advance_with_latency(state, rating, time_to_answer, now=now)

        if rating is AssessmentRating.AGAIN and state.repetitions > 0:
            logger.info(
                "Lapse after %s consecutive successes; ease factor %.2f->%.2f",
                state.repetitions,
                state.ease_factor,
                updated.ease_factor,
            )
        return updated

    def record_review(
        self,
        card: Flashcard,
        rating: AssessmentRating,
        *,
        time_to_answer: Optional[dt.timedelta] = None,
        now: Optional[dt.datetime] = None,
    ) -> tuple[Flashcard, ReviewOutcome]:
        """
        Apply a rating to a flashcard.

        Returns the updated card and a ReviewOutcome describing the review.
        Nothing is persisted.
        """
        now = now or self.scheduler.clock()
        updated_state = self.review_state(
            card.scheduling,
            rating,
            time_to_answer=time_to_answer,
            now=now,
        )
        updated_card = card.with_scheduling(updated_state, now=now)

        outcome = ReviewOutcome(
            card_id=card.id,
            deck_id=card.deck_id,
            rating=rating,
            is_correct=rating.is_correct,
            difficulty=card.difficulty,
            reviewed_at=now,
            previous_interval=card.scheduling.interval_days,
            new_interval=updated_state.interval_days,
            next_review_date=updated_state.next_review_date,
            time_to_answer=time_to_answer,
        )
        return updated_card, outcome

    def get_stats_by_deck(
        self,
        cards: Iterable[Flashcard],
        *,
        now: Optional[dt.datetime] = None,
    ) -> Dict[uuid.UUID, RetentionStats]:
        """Retention statistics for each deck present in `cards`."""
        now = now or self.scheduler.clock()

        cards_by_deck: Dict[uuid.UUID, list[Flashcard]] = {}
        for card in cards:
            cards_by_deck.setdefault(card.deck_id, []).append(card)

        return {
            deck_id: calculate_retention_stats(deck_cards, now)
            for deck_id, deck_cards in cards_by_deck.items()
        }
