"""
SM-2 scheduling engine.

Pure computations over immutable scheduling state:
- Rating to quality mapping and ease factor updates
- Interval and repetition calculation
- Review history tracking
- Due/new card selection, retention statistics and priority scoring
- Forgetting-curve based review time prediction
"""

from .errors import InvalidDifficultyError, InvalidRatingError, SchedulingError
from .forgetting_curve import predict_optimal_review_time, retention_probability
from .history import attach_latency
from .models import Flashcard, ReviewRecord, ScheduledCard, SchedulingState
from .queries import (
    RetentionStats,
    calculate_retention_stats,
    get_cards_by_difficulty,
    get_due_cards,
    get_learning_priority,
    get_new_cards,
    rank_by_priority,
)
from .ratings import AssessmentRating, DifficultyLevel, to_quality
from .scheduler import SM2Config, SM2Scheduler

__all__ = [
    "AssessmentRating",
    "DifficultyLevel",
    "to_quality",
    "SchedulingState",
    "ReviewRecord",
    "ScheduledCard",
    "Flashcard",
    "SM2Config",
    "SM2Scheduler",
    "attach_latency",
    "RetentionStats",
    "get_due_cards",
    "get_new_cards",
    "get_cards_by_difficulty",
    "calculate_retention_stats",
    "get_learning_priority",
    "rank_by_priority",
    "predict_optimal_review_time",
    "retention_probability",
    "SchedulingError",
    "InvalidRatingError",
    "InvalidDifficultyError",
]
