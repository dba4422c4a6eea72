"""
Read-only queries over collections of scheduled cards.

Every function accepts any object exposing `.scheduling` (a SchedulingState)
and, where needed, `.difficulty` (a DifficultyLevel): Flashcard and
ScheduledCard both qualify.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
from dataclasses import dataclass
from statistics import mean
from typing import Iterable, List, Optional, Protocol, Tuple, TypeVar, runtime_checkable

from .models import SchedulingState, utcnow
from .ratings import DifficultyLevel, difficulty_multiplier


MATURE_INTERVAL_DAYS = 21
NEW_CARD_PRIORITY = 5.0
OVERDUE_PRIORITY_WEIGHT = 10.0

_SECONDS_PER_DAY = 86400.0


@runtime_checkable
class SupportsScheduling(Protocol):
    scheduling: SchedulingState
    difficulty: DifficultyLevel


CardT = TypeVar("CardT", bound=SupportsScheduling)


@dataclass(frozen=True)
class RetentionStats:
    total_cards: int = 0
    due_cards: int = 0
    new_cards: int = 0
    mature_cards: int = 0
    average_ease_factor: float = 0.0
    retention_rate: float = 0.0

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def get_due_cards(cards: Iterable[CardT], now: Optional[dt.datetime] = None) -> List[CardT]:
    """Cards due at or before `now`, earliest due first (stable on ties)."""
    now = now or utcnow()
    due = [card for card in cards if card.scheduling.next_review_date <= now]
    return sorted(due, key=lambda card: card.scheduling.next_review_date)


def get_new_cards(cards: Iterable[CardT]) -> List[CardT]:
    """
    Cards with zero consecutive successes.

    A card pushed back to zero repetitions by an `again` rating counts as
    new here even though it has review history.
    """
    return [card for card in cards if card.scheduling.repetitions == 0]


def get_cards_by_difficulty(
    cards: Iterable[CardT],
    difficulty: DifficultyLevel,
) -> List[CardT]:
    return [card for card in cards if card.difficulty is difficulty]


def calculate_retention_stats(
    cards: Iterable[CardT],
    now: Optional[dt.datetime] = None,
) -> RetentionStats:
    cards = list(cards)
    total = len(cards)
    if total == 0:
        return RetentionStats()

    now = now or utcnow()
    due = sum(1 for card in cards if card.scheduling.next_review_date <= now)
    new = sum(1 for card in cards if card.scheduling.repetitions == 0)
    mature = sum(1 for card in cards if card.scheduling.interval_days >= MATURE_INTERVAL_DAYS)
    avg_ef = mean(card.scheduling.ease_factor for card in cards)

    return RetentionStats(
        total_cards=total,
        due_cards=due,
        new_cards=new,
        mature_cards=mature,
        average_ease_factor=avg_ef,
        retention_rate=(total - due) / total * 100.0,
    )


def overdue_days(scheduling: SchedulingState, now: Optional[dt.datetime] = None) -> float:
    """Signed days past due: positive when overdue, negative when due in the future."""
    now = now or utcnow()
    return (now - scheduling.next_review_date).total_seconds() / _SECONDS_PER_DAY


def get_learning_priority(card: SupportsScheduling, now: Optional[dt.datetime] = None) -> float:
    """
    Urgency score for reviewing `card`; higher is more urgent.

    Overdue cards score 10 per day overdue. Cards not yet due score a flat
    5.0 if they have no repetitions, otherwise the number of days until
    they are due. The base is scaled by difficulty and divided by ease factor.
    Scores are only meaningful for ordering.
    """
    scheduling = card.scheduling
    overdue = overdue_days(scheduling, now)

    if overdue > 0.0:
        base = overdue * OVERDUE_PRIORITY_WEIGHT
    elif scheduling.repetitions == 0:
        base = NEW_CARD_PRIORITY
    else:
        base = -overdue

    return base * difficulty_multiplier(card.difficulty) / scheduling.ease_factor


def rank_by_priority(
    cards: Iterable[CardT],
    now: Optional[dt.datetime] = None,
) -> List[Tuple[CardT, float]]:
    """Cards paired with their priority, most urgent first."""
    now = now or utcnow()
    scored = [(card, get_learning_priority(card, now)) for card in cards]
    return sorted(scored, key=lambda item: item[1], reverse=True)
