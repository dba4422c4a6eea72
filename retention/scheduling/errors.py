"""Errors raised at the edges of the scheduling engine."""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for scheduling errors."""


class InvalidRatingError(SchedulingError, ValueError):
    """Raised when a string cannot be parsed into an AssessmentRating."""


class InvalidDifficultyError(SchedulingError, ValueError):
    """Raised when a string cannot be parsed into a DifficultyLevel."""
