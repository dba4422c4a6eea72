from __future__ import annotations

import datetime as dt
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from retention.scheduling.models import ReviewRecord, ScheduledCard, SchedulingState
from retention.scheduling.queries import RetentionStats
from retention.scheduling.ratings import AssessmentRating, DifficultyLevel


# Upper bound on incoming interval_days, roughly a century.
MAX_INTERVAL_DAYS = 36500


def _as_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    # Naive timestamps are taken to be UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


def _timedelta_to_ms(value: Optional[dt.timedelta]) -> Optional[int]:
    if value is None:
        return None
    return value // dt.timedelta(milliseconds=1)


def _check_interval(state: Optional[SchedulingStateModel]) -> Optional[SchedulingStateModel]:
    if state is not None and state.interval_days > MAX_INTERVAL_DAYS:
        raise ValueError(f"interval_days must be at most {MAX_INTERVAL_DAYS}")
    return state


class ReviewRecordModel(BaseModel):
    """One review in a card's history."""

    date: dt.datetime
    rating: AssessmentRating
    previous_interval: int = Field(ge=0)
    new_interval: int = Field(ge=0)
    previous_ease_factor: float
    new_ease_factor: float
    time_to_answer_ms: Optional[int] = Field(
        default=None,
        ge=0,
        description="How long the learner took to answer, in milliseconds",
    )

    @field_validator("date")
    @classmethod
    def _date_utc(cls, value: dt.datetime) -> dt.datetime:
        return _as_utc(value)

    @field_validator("rating", mode="before")
    @classmethod
    def _parse_rating(cls, value: Any) -> Any:
        if isinstance(value, str):
            return AssessmentRating.from_string(value)
        return value

    def to_domain(self) -> ReviewRecord:
        time_to_answer = None
        if self.time_to_answer_ms is not None:
            time_to_answer = dt.timedelta(milliseconds=self.time_to_answer_ms)
        return ReviewRecord(
            date=self.date,
            rating=self.rating,
            previous_interval=self.previous_interval,
            new_interval=self.new_interval,
            previous_ease_factor=self.previous_ease_factor,
            new_ease_factor=self.new_ease_factor,
            time_to_answer=time_to_answer,
        )

    @classmethod
    def from_domain(cls, record: ReviewRecord) -> ReviewRecordModel:
        return cls(
            date=record.date,
            rating=record.rating,
            previous_interval=record.previous_interval,
            new_interval=record.new_interval,
            previous_ease_factor=record.previous_ease_factor,
            new_ease_factor=record.new_ease_factor,
            time_to_answer_ms=_timedelta_to_ms(record.time_to_answer),
        )


class SchedulingStateModel(BaseModel):
    """SM-2 scheduling state of one card."""

    next_review_date: dt.datetime
    interval_days: int = Field(default=0, ge=0)
    repetitions: int = Field(default=0, ge=0)
    ease_factor: float = Field(default=2.5, ge=1.3, le=3.0)
    last_review_date: Optional[dt.datetime] = None
    review_history: List[ReviewRecordModel] = Field(
        default_factory=list,
        description="Review records, most recent first",
    )

    @field_validator("next_review_date", "last_review_date")
    @classmethod
    def _dates_utc(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        return _as_utc(value)

    def to_domain(self) -> SchedulingState:
        return SchedulingState(
            next_review_date=self.next_review_date,
            interval_days=self.interval_days,
            repetitions=self.repetitions,
            ease_factor=self.ease_factor,
            last_review_date=self.last_review_date,
            review_history=tuple(r.to_domain() for r in self.review_history),
        )

    @classmethod
    def from_domain(cls, state: SchedulingState) -> SchedulingStateModel:
        return cls(
            next_review_date=state.next_review_date,
            interval_days=state.interval_days,
            repetitions=state.repetitions,
            ease_factor=state.ease_factor,
            last_review_date=state.last_review_date,
            review_history=[ReviewRecordModel.from_domain(r) for r in state.review_history],
        )


class ScheduledCardModel(BaseModel):
    """A card's scheduling state plus its difficulty level."""

    card_id: Optional[str] = None
    difficulty: DifficultyLevel = DifficultyLevel.INTERMEDIATE
    state: SchedulingStateModel

    @field_validator("difficulty", mode="before")
    @classmethod
    def _parse_difficulty(cls, value: Any) -> Any:
        if isinstance(value, str):
            return DifficultyLevel.from_string(value)
        return value

    def to_domain(self) -> ScheduledCard:
        return ScheduledCard(
            scheduling=self.state.to_domain(),
            difficulty=self.difficulty,
            card_id=self.card_id,
        )

    @classmethod
    def from_domain(cls, card: ScheduledCard) -> ScheduledCardModel:
        return cls(
            card_id=card.card_id,
            difficulty=card.difficulty,
            state=SchedulingStateModel.from_domain(card.scheduling),
        )


class AdvanceRequest(BaseModel):
    """Request body for applying a rating to a scheduling state."""

    state: Optional[SchedulingStateModel] = Field(
        default=None,
        description="Current state; omit for a card that has never been reviewed",
    )
    rating: AssessmentRating
    time_to_answer_ms: Optional[int] = Field(
        default=None,
        ge=0,
        description="Optional response time in milliseconds",
    )
    now: Optional[dt.datetime] = None

    @field_validator("rating", mode="before")
    @classmethod
    def _parse_rating(cls, value: Any) -> Any:
        if isinstance(value, str):
            return AssessmentRating.from_string(value)
        return value

    @field_validator("state")
    @classmethod
    def _state_interval(cls, value: Optional[SchedulingStateModel]) -> Optional[SchedulingStateModel]:
        return _check_interval(value)

    @field_validator("now")
    @classmethod
    def _now_utc(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        return _as_utc(value)


class CardsRequest(BaseModel):
    """Request body for queries over a collection of cards."""

    cards: List[ScheduledCardModel] = Field(default_factory=list)
    now: Optional[dt.datetime] = Field(
        default=None,
        description="Evaluation time; defaults to the current UTC time",
    )

    @field_validator("now")
    @classmethod
    def _now_utc(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        return _as_utc(value)


class CardsResponse(BaseModel):
    cards: List[ScheduledCardModel] = Field(default_factory=list)


class RetentionStatsResponse(BaseModel):
    total_cards: int = 0
    due_cards: int = 0
    new_cards: int = 0
    mature_cards: int = 0
    average_ease_factor: float = 0.0
    retention_rate: float = Field(
        default=0.0,
        description="Percentage of cards not currently due",
    )

    @classmethod
    def from_domain(cls, stats: RetentionStats) -> RetentionStatsResponse:
        return cls(**stats.to_dict())


class PriorityEntry(BaseModel):
    card: ScheduledCardModel
    priority: float


class PriorityResponse(BaseModel):
    cards: List[PriorityEntry] = Field(default_factory=list)


class OptimalReviewRequest(BaseModel):
    """Request body for predicting the best time to review a card."""

    state: SchedulingStateModel
    target_retention: Optional[float] = Field(
        default=None,
        gt=0.0,
        le=1.0,
        description="Recall probability to aim for, in (0, 1]",
    )
    now: Optional[dt.datetime] = None

    @field_validator("state")
    @classmethod
    def _state_interval(cls, value: SchedulingStateModel) -> SchedulingStateModel:
        return _check_interval(value)

    @field_validator("now")
    @classmethod
    def _now_utc(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        return _as_utc(value)


class OptimalReviewResponse(BaseModel):
    optimal_review_at: dt.datetime
    target_retention: float
    retention_now: float
