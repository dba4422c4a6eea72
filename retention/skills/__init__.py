from .review_service import ReviewOutcome, ReviewService

__all__ = ["ReviewOutcome", "ReviewService"]
