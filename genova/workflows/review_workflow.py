"""Seeker reviews of experts."""

import logging
from typing import Optional

from ..backend import Backend
from ..errors import NotFoundError, ValidationError
from ..models.identity import CallerIdentity
from ..models.moderation import ContentType, ModerationItem
from ..models.review import MAX_RATING, MIN_RATING, Review
from .moderation_queue import ModerationQueue

logger = logging.getLogger(__name__)

TABLE = "reviews"


class ReviewWorkflow:
    """Submission, display, flagging and statistics of reviews."""

    def __init__(self, backend: Backend, moderation: Optional[ModerationQueue] = None):
        self.backend = backend
        self.store = backend.store
        self.moderation = moderation or ModerationQueue(backend)

    def get(self, review_id: str) -> Review:
        """Get a review by ID."""
        row = self.store.get(TABLE, review_id)
        if row is None:
            raise NotFoundError(f"Review not found: {review_id}")
        return Review.from_dict(row)

    def submit(
        self,
        caller: CallerIdentity,
        expert_id: str,
        rating: int,
        feedback: Optional[str] = None,
        inquiry_id: Optional[str] = None,
    ) -> Review:
        """Leave a 1-5 star review for an expert."""
        if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}", fields=["rating"]
            )
        if caller.user_id == expert_id:
            raise ValidationError("Experts cannot review themselves", fields=["expert_id"])

        review = Review(
            expert_id=expert_id,
            reviewer_id=caller.user_id,
            inquiry_id=inquiry_id,
            rating=rating,
            feedback=(feedback or "").strip() or None,
        )
        self.store.insert(TABLE, review.to_dict())
        logger.info("Review %s submitted for %s", review.id, expert_id)
        return review

    def list_for_expert(self, expert_id: str, limit: Optional[int] = None) -> list[Review]:
        """Visible (unflagged) reviews of an expert, newest first."""
        rows = self.store.select(
            TABLE,
            {"expert_id": expert_id, "is_flagged": False},
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        return [Review.from_dict(r) for r in rows]

    def flag(
        self,
        caller: CallerIdentity,
        review_id: str,
        reason: str = "Flagged by user",
    ) -> ModerationItem:
        """Send a review to the moderation queue."""
        self.get(review_id)
        return self.moderation.flag(caller, ContentType.REVIEW, review_id, reason)

    def stats(self, expert_id: str) -> dict:
        """Average rating and count over an expert's visible reviews."""
        reviews = self.list_for_expert(expert_id)
        if not reviews:
            return {"average_rating": 0.0, "total_reviews": 0}
        average = sum(r.rating for r in reviews) / len(reviews)
        return {"average_rating": round(average, 1), "total_reviews": len(reviews)}
