"""Moderation items for flagged reviews and forum content."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..errors import AlreadyModerated
from .common import from_iso, new_id, to_iso, utcnow

DEFAULT_REMOVAL_NOTE = "Removed by moderator"


class ContentType(Enum):
    """Kinds of content that can be flagged."""

    REVIEW = "review"
    POST = "post"
    REPLY = "reply"

    @property
    def is_forum(self) -> bool:
        return self in (ContentType.POST, ContentType.REPLY)


class ModerationStatus(Enum):
    """Moderation decision status."""

    PENDING = "pending"
    APPROVED = "approved"
    REMOVED = "removed"


class ModerationAction(Enum):
    """Decision a moderator can take."""

    APPROVE = "approve"
    REMOVE = "remove"

    @property
    def resulting_status(self) -> ModerationStatus:
        if self == ModerationAction.APPROVE:
            return ModerationStatus.APPROVED
        return ModerationStatus.REMOVED


@dataclass
class ModerationItem:
    """A piece of flagged content awaiting, or carrying, a moderator decision."""

    id: str = field(default_factory=new_id)
    content_type: ContentType = ContentType.REVIEW
    content_ref: str = ""
    content_preview: str = ""

    status: ModerationStatus = ModerationStatus.PENDING
    flagged_reason: Optional[str] = None
    flagged_by: Optional[str] = None
    flagged_at: datetime = field(default_factory=utcnow)

    # Audit trail
    moderated_by: Optional[str] = None
    moderated_at: Optional[datetime] = None

    @property
    def is_moderated(self) -> bool:
        return self.moderated_at is not None

    def moderate(
        self,
        moderator_id: str,
        action: ModerationAction,
        note: Optional[str] = None,
    ) -> None:
        """Record a decision. Each item can be moderated exactly once."""
        if self.is_moderated:
            raise AlreadyModerated(
                f"Item {self.id} was already moderated at {self.moderated_at.isoformat()}",
                current=self.status.value,
            )

        self.status = action.resulting_status
        self.moderated_by = moderator_id
        self.moderated_at = utcnow()
        if action == ModerationAction.APPROVE:
            self.flagged_reason = None
        else:
            self.flagged_reason = (note or "").strip() or DEFAULT_REMOVAL_NOTE

    def to_dict(self) -> dict:
        """Serialize item to dictionary."""
        return {
            "id": self.id,
            "content_type": self.content_type.value,
            "content_ref": self.content_ref,
            "content_preview": self.content_preview,
            "status": self.status.value,
            "flagged_reason": self.flagged_reason,
            "flagged_by": self.flagged_by,
            "flagged_at": to_iso(self.flagged_at),
            "moderated_by": self.moderated_by,
            "moderated_at": to_iso(self.moderated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ModerationItem":
        """Deserialize item from dictionary."""
        item = cls(
            id=data.get("id", new_id()),
            content_type=ContentType(data.get("content_type", "review")),
            content_ref=data.get("content_ref", ""),
            content_preview=data.get("content_preview", ""),
            status=ModerationStatus(data.get("status", "pending")),
            flagged_reason=data.get("flagged_reason"),
            flagged_by=data.get("flagged_by"),
            moderated_by=data.get("moderated_by"),
            moderated_at=from_iso(data.get("moderated_at")),
        )
        if data.get("flagged_at"):
            item.flagged_at = from_iso(data["flagged_at"])
        return item
