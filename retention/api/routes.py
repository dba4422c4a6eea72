from __future__ import annotations

import datetime as dt
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from retention.config import APIConfig
from retention.scheduling.models import ScheduledCard
from retention.scheduling.forgetting_curve import (
    predict_optimal_review_time,
    retention_probability,
)
from retention.scheduling.queries import (
    calculate_retention_stats,
    get_cards_by_difficulty,
    get_due_cards,
    get_new_cards,
    rank_by_priority,
)
from retention.scheduling.ratings import DifficultyLevel
from retention.skills.review_service import ReviewService
from .schemas import (
    AdvanceRequest,
    CardsRequest,
    CardsResponse,
    OptimalReviewRequest,
    OptimalReviewResponse,
    PriorityEntry,
    PriorityResponse,
    RetentionStatsResponse,
    ScheduledCardModel,
    SchedulingStateModel,
)


router = APIRouter(prefix="/api/scheduling", tags=["scheduling"])


def get_review_service(request: Request) -> ReviewService:
    return request.app.state.review_service


def get_api_config(request: Request) -> APIConfig:
    return request.app.state.config


def _now(value: Optional[dt.datetime]) -> dt.datetime:
    return value or dt.datetime.now(dt.timezone.utc)


def _filter_difficulty(
    cards: List[ScheduledCard],
    difficulty: Optional[str],
) -> List[ScheduledCard]:
    if not difficulty:
        return cards
    # Unknown values raise InvalidDifficultyError, mapped to 422 by the app.
    return get_cards_by_difficulty(cards, DifficultyLevel.from_string(difficulty))


@router.post("/advance", response_model=SchedulingStateModel)
async def advance_state(
    payload: AdvanceRequest,
    service: Annotated[ReviewService, Depends(get_review_service)],
) -> SchedulingStateModel:
    """
    Apply a rating to a card's scheduling state and return the new state.
    """
    state = payload.state.to_domain() if payload.state is not None else None
    try:
        time_to_answer = None
        if payload.time_to_answer_ms is not None:
            time_to_answer = dt.timedelta(milliseconds=payload.time_to_answer_ms)

        updated = service.review_state(
            state,
            payload.rating,
            time_to_answer=time_to_answer,
            now=payload.now,
        )
    except OverflowError:
        raise HTTPException(
            status_code=422,
            detail="Next review date is out of range",
        ) from None
    return SchedulingStateModel.from_domain(updated)


@router.post("/due", response_model=CardsResponse)
async def due_cards(
    payload: CardsRequest,
    difficulty: Annotated[Optional[str], Query()] = None,
) -> CardsResponse:
    """
    Return cards due at or before `now`, earliest due first.
    """
    cards = _filter_difficulty([c.to_domain() for c in payload.cards], difficulty)
    due = get_due_cards(cards, _now(payload.now))
    return CardsResponse(cards=[ScheduledCardModel.from_domain(c) for c in due])


@router.post("/new", response_model=CardsResponse)
async def new_cards(
    payload: CardsRequest,
    difficulty: Annotated[Optional[str], Query()] = None,
) -> CardsResponse:
    """
    Return cards with zero consecutive successful reviews.
    """
    cards = _filter_difficulty([c.to_domain() for c in payload.cards], difficulty)
    return CardsResponse(cards=[ScheduledCardModel.from_domain(c) for c in get_new_cards(cards)])


@router.post("/stats", response_model=RetentionStatsResponse)
async def retention_stats(payload: CardsRequest) -> RetentionStatsResponse:
    """
    Aggregate retention statistics over the given cards.
    """
    cards = [c.to_domain() for c in payload.cards]
    stats = calculate_retention_stats(cards, _now(payload.now))
    return RetentionStatsResponse.from_domain(stats)


@router.post("/priority", response_model=PriorityResponse)
async def prioritized_cards(payload: CardsRequest) -> PriorityResponse:
    """
    Rank cards by review urgency, most urgent first.
    """
    cards = [c.to_domain() for c in payload.cards]
    ranked = rank_by_priority(cards, _now(payload.now))
    return PriorityResponse(
        cards=[
            PriorityEntry(card=ScheduledCardModel.from_domain(card), priority=score)
            for card, score in ranked
        ]
    )


@router.post("/optimal-review", response_model=OptimalReviewResponse)
async def optimal_review(
    payload: OptimalReviewRequest,
    config: Annotated[APIConfig, Depends(get_api_config)],
) -> OptimalReviewResponse:
    """
    Predict when recall probability decays to the target retention.
    """
    target = payload.target_retention or config.default_target_retention
    state = payload.state.to_domain()
    now = _now(payload.now)

    try:
        optimal_review_at = predict_optimal_review_time(state, target, now=now)
    except OverflowError:
        raise HTTPException(
            status_code=422,
            detail="Optimal review time is out of range",
        ) from None

    return OptimalReviewResponse(
        optimal_review_at=optimal_review_at,
        target_retention=target,
        retention_now=retention_probability(state, now=now),
    )
