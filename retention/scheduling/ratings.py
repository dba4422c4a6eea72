from __future__ import annotations

from enum import Enum

from .errors import InvalidDifficultyError, InvalidRatingError


class AssessmentRating(str, Enum):
    """
    Learner's self-assessment after seeing the answer.

    Each rating maps to a fixed SM-2 quality score:
    again=0, hard=3, good=4, easy=5.
    """

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @property
    def quality(self) -> int:
        return _QUALITY_BY_RATING[self]

    @property
    def is_correct(self) -> bool:
        return self is not AssessmentRating.AGAIN

    @classmethod
    def from_string(cls, value: str) -> AssessmentRating:
        normalized = (value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidRatingError(f"Invalid assessment rating: {value}") from None


class DifficultyLevel(str, Enum):
    """Content difficulty, owned by the card's metadata."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @property
    def multiplier(self) -> float:
        return _MULTIPLIER_BY_DIFFICULTY[self]

    @classmethod
    def from_string(cls, value: str) -> DifficultyLevel:
        normalized = (value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidDifficultyError(f"Invalid difficulty level: {value}") from None


_QUALITY_BY_RATING = {
    AssessmentRating.AGAIN: 0,
    AssessmentRating.HARD: 3,
    AssessmentRating.GOOD: 4,
    AssessmentRating.EASY: 5,
}

# Harder content is pushed up the review queue.
_MULTIPLIER_BY_DIFFICULTY = {
    DifficultyLevel.BEGINNER: 0.8,
    DifficultyLevel.INTERMEDIATE: 1.0,
    DifficultyLevel.ADVANCED: 1.2,
    DifficultyLevel.EXPERT: 1.5,
}


def to_quality(rating: AssessmentRating) -> int:
    """Map a rating to its 0-5 quality score."""
    return _QUALITY_BY_RATING[rating]


def difficulty_multiplier(difficulty: DifficultyLevel) -> float:
    return _MULTIPLIER_BY_DIFFICULTY[difficulty]
