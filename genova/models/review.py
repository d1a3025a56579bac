"""Expert review left by a seeker."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .common import from_iso, new_id, to_iso, utcnow

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class Review:
    """Star rating and optional feedback for an expert."""

    id: str = field(default_factory=new_id)
    expert_id: str = ""
    reviewer_id: str = ""
    inquiry_id: Optional[str] = None

    rating: int = 0
    feedback: Optional[str] = None

    # Moderation
    is_flagged: bool = False
    flagged_reason: Optional[str] = None
    moderated_by: Optional[str] = None
    moderated_at: Optional[datetime] = None

    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        """Serialize review to dictionary."""
        return {
            "id": self.id,
            "expert_id": self.expert_id,
            "reviewer_id": self.reviewer_id,
            "inquiry_id": self.inquiry_id,
            "rating": self.rating,
            "feedback": self.feedback,
            "is_flagged": self.is_flagged,
            "flagged_reason": self.flagged_reason,
            "moderated_by": self.moderated_by,
            "moderated_at": to_iso(self.moderated_at),
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Review":
        """Deserialize review from dictionary."""
        review = cls(
            id=data.get("id", new_id()),
            expert_id=data.get("expert_id", ""),
            reviewer_id=data.get("reviewer_id", ""),
            inquiry_id=data.get("inquiry_id"),
            rating=data.get("rating", 0),
            feedback=data.get("feedback"),
            is_flagged=data.get("is_flagged", False),
            flagged_reason=data.get("flagged_reason"),
            moderated_by=data.get("moderated_by"),
            moderated_at=from_iso(data.get("moderated_at")),
        )
        if data.get("created_at"):
            review.created_at = from_iso(data["created_at"])
        return review
