from __future__ import annotations

import datetime as dt

import pytest

from retention.scheduling.errors import InvalidRatingError
from retention.scheduling.models import SchedulingState
from retention.scheduling.ratings import AssessmentRating
from retention.scheduling.scheduler import (
    SM2Config,
    SM2Scheduler,
    calculate_ease_factor,
    calculate_interval,
    calculate_repetitions,
)


NOW = dt.datetime(2025, 1, 1, tzinfo=dt.timezone.utc)


def _make_state(**overrides) -> SchedulingState:
    fields = dict(
        next_review_date=NOW,
        interval_days=0,
        repetitions=0,
        ease_factor=2.5,
        last_review_date=None,
        review_history=(),
    )
    fields.update(overrides)
    return SchedulingState(**fields)


def _review_many(scheduler: SM2Scheduler, state: SchedulingState, *ratings: AssessmentRating):
    for rating in ratings:
        state = scheduler.advance(state, rating, now=NOW)
    return state


def test_ease_factor_formula_per_quality():
    assert calculate_ease_factor(2.5, 5) == pytest.approx(2.6)
    assert calculate_ease_factor(2.5, 4) == pytest.approx(2.5)
    assert calculate_ease_factor(2.5, 3) == pytest.approx(2.36)
    assert calculate_ease_factor(2.5, 0) == pytest.approx(1.7)


def test_ease_factor_is_clamped():
    assert calculate_ease_factor(1.4, 0) == 1.3
    assert calculate_ease_factor(2.95, 5) == 3.0


def test_repetitions_reset_only_on_again():
    assert calculate_repetitions(4, AssessmentRating.AGAIN) == 0
    assert calculate_repetitions(4, AssessmentRating.HARD) == 5
    assert calculate_repetitions(0, AssessmentRating.GOOD) == 1
    assert calculate_repetitions(2, AssessmentRating.EASY) == 3


@pytest.mark.parametrize(
    "rating, repetitions, expected",
    [
        (AssessmentRating.AGAIN, 0, 1),
        (AssessmentRating.AGAIN, 7, 1),
        (AssessmentRating.HARD, 0, 1),
        (AssessmentRating.HARD, 1, 1),
        (AssessmentRating.HARD, 2, 12),
        (AssessmentRating.GOOD, 0, 1),
        (AssessmentRating.GOOD, 1, 6),
        (AssessmentRating.GOOD, 2, 20),
        (AssessmentRating.EASY, 0, 4),
        (AssessmentRating.EASY, 1, 7),
        (AssessmentRating.EASY, 2, 26),
    ],
)
def test_interval_branches(rating, repetitions, expected):
    assert calculate_interval(10, repetitions, 2.0, rating) == expected


def test_interval_never_rounds_below_one_day():
    assert calculate_interval(0, 5, 1.3, AssessmentRating.GOOD) == 1
    assert calculate_interval(0, 5, 1.3, AssessmentRating.HARD) == 1
    assert calculate_interval(0, 5, 1.3, AssessmentRating.EASY) == 1


def test_interval_rejects_unknown_rating():
    with pytest.raises(InvalidRatingError):
        calculate_interval(10, 2, 2.5, "bogus")  # type: ignore[arg-type]


def test_every_rating_has_an_interval_rule():
    for rating in AssessmentRating:
        assert calculate_interval(10, 2, 2.5, rating) >= 1


def test_three_good_reviews_follow_sm2_progression():
    scheduler = SM2Scheduler()
    state = _make_state()

    first = scheduler.advance(state, AssessmentRating.GOOD, now=NOW)
    second = scheduler.advance(first, AssessmentRating.GOOD, now=NOW)
    third = scheduler.advance(second, AssessmentRating.GOOD, now=NOW)

    assert first.interval_days == 1
    assert second.interval_days == 6
    # Quality 4 leaves the ease factor at 2.5, so 6 * 2.5 = 15.
    assert third.ease_factor == pytest.approx(2.5)
    assert third.interval_days == round(6 * third.ease_factor) == 15
    assert third.repetitions == 3


def test_easy_fast_path():
    scheduler = SM2Scheduler()
    state = _make_state()

    first = scheduler.advance(state, AssessmentRating.EASY, now=NOW)
    second = scheduler.advance(first, AssessmentRating.EASY, now=NOW)
    third = scheduler.advance(second, AssessmentRating.EASY, now=NOW)

    assert first.interval_days == 4
    assert second.interval_days == 7
    assert third.ease_factor == pytest.approx(2.8)
    # 7 * 2.8 * 1.3 = 25.48
    assert third.interval_days == 25


def test_hard_on_established_card_grows_by_twenty_percent():
    scheduler = SM2Scheduler()
    state = _review_many(
        scheduler,
        _make_state(),
        AssessmentRating.GOOD,
        AssessmentRating.GOOD,
        AssessmentRating.HARD,
    )

    assert state.interval_days == 7
    assert state.repetitions == 3
    assert state.ease_factor == pytest.approx(2.36)


def test_interval_uses_repetitions_before_the_review():
    scheduler = SM2Scheduler()
    # One success so far: the second GOOD must take the "second exposure" branch.
    state = _make_state(repetitions=1, interval_days=1)

    updated = scheduler.advance(state, AssessmentRating.GOOD, now=NOW)

    assert updated.interval_days == 6
    assert updated.repetitions == 2


def test_again_resets_any_state():
    scheduler = SM2Scheduler()
    state = _make_state(interval_days=40, repetitions=6, ease_factor=2.9)

    updated = scheduler.advance(state, AssessmentRating.AGAIN, now=NOW)

    assert updated.repetitions == 0
    assert updated.interval_days == 1
    assert updated.ease_factor == pytest.approx(2.1)
    assert updated.next_review_date == NOW + dt.timedelta(days=1)
    assert updated.last_review_date == NOW


def test_ease_factor_stays_in_bounds_after_many_reviews():
    scheduler = SM2Scheduler()

    low = _review_many(scheduler, _make_state(), *([AssessmentRating.AGAIN] * 5))
    high = _review_many(scheduler, _make_state(), *([AssessmentRating.EASY] * 8))

    assert low.ease_factor == 1.3
    assert high.ease_factor == 3.0
    for state in (low, high):
        for record in state.review_history:
            assert 1.3 <= record.new_ease_factor <= 3.0
            assert record.new_interval >= 1


def test_advance_prepends_one_history_record():
    scheduler = SM2Scheduler()
    state = _review_many(scheduler, _make_state(), AssessmentRating.GOOD, AssessmentRating.GOOD)
    later = NOW + dt.timedelta(days=6)

    updated = scheduler.advance(state, AssessmentRating.HARD, now=later)

    assert len(updated.review_history) == len(state.review_history) + 1
    head = updated.review_history[0]
    assert head.date == later
    assert head.rating is AssessmentRating.HARD
    assert head.previous_interval == state.interval_days
    assert head.new_interval == updated.interval_days
    assert head.previous_ease_factor == state.ease_factor
    assert head.new_ease_factor == updated.ease_factor
    assert head.time_to_answer is None
    assert updated.review_history[1:] == state.review_history


def test_advance_does_not_modify_input_state():
    scheduler = SM2Scheduler()
    state = _make_state()

    scheduler.advance(state, AssessmentRating.EASY, now=NOW)

    assert state == _make_state()


def test_advance_uses_injected_clock():
    fixed = dt.datetime(2025, 3, 4, 12, 0, tzinfo=dt.timezone.utc)
    scheduler = SM2Scheduler(clock=lambda: fixed)

    updated = scheduler.advance(_make_state(), AssessmentRating.GOOD)

    assert updated.last_review_date == fixed
    assert updated.next_review_date == fixed + dt.timedelta(days=1)


def test_advance_with_latency_sets_time_on_latest_record_only():
    scheduler = SM2Scheduler()
    state = scheduler.advance(_make_state(), AssessmentRating.GOOD, now=NOW)

    updated = scheduler.advance_with_latency(
        state,
        AssessmentRating.GOOD,
        dt.timedelta(seconds=8),
        now=NOW,
    )

    assert updated.review_history[0].time_to_answer == dt.timedelta(seconds=8)
    assert updated.review_history[1].time_to_answer is None
    assert updated.interval_days == 6


def test_new_state_uses_configured_initial_ease_factor():
    scheduler = SM2Scheduler(SM2Config(initial_ease_factor=2.0))

    state = scheduler.new_state(now=NOW)

    assert state.ease_factor == 2.0
    assert state.interval_days == 0
    assert state.repetitions == 0
    assert state.next_review_date == NOW
    assert state.review_history == ()
