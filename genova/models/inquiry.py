"""Inquiry model: a seeker's proposal to engage an expert."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..errors import InvalidTransition
from .common import from_iso, new_id, to_iso, utcnow


class InquiryStatus(Enum):
    """Inquiry lifecycle status."""

    PENDING = "pending"      # Awaiting the expert's answer
    ACCEPTED = "accepted"    # Expert took the engagement
    DECLINED = "declined"    # Expert turned it down

    @property
    def is_terminal(self) -> bool:
        return self != InquiryStatus.PENDING


@dataclass
class Inquiry:
    """A seeker's request for an expert's services on a project."""

    # Identity
    id: str = field(default_factory=new_id)
    seeker_id: str = ""
    expert_id: str = ""

    # Project details
    project_title: str = ""
    description: str = ""
    budget_range: str = ""
    timeline: str = ""

    status: InquiryStatus = InquiryStatus.PENDING

    # Timestamps
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    responded_at: Optional[datetime] = None

    def accept(self) -> None:
        """Mark the inquiry accepted."""
        self._respond(InquiryStatus.ACCEPTED)

    def decline(self) -> None:
        """Mark the inquiry declined."""
        self._respond(InquiryStatus.DECLINED)

    def _respond(self, status: InquiryStatus) -> None:
        if self.status != InquiryStatus.PENDING:
            raise InvalidTransition(
                f"Inquiry {self.id} is {self.status.value}, cannot change to {status.value}",
                current=self.status.value,
            )
        now = utcnow()
        self.status = status
        self.responded_at = now
        self.updated_at = now

    def to_dict(self) -> dict:
        """Serialize inquiry to dictionary."""
        return {
            "id": self.id,
            "seeker_id": self.seeker_id,
            "expert_id": self.expert_id,
            "project_title": self.project_title,
            "description": self.description,
            "budget_range": self.budget_range,
            "timeline": self.timeline,
            "status": self.status.value,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
            "responded_at": to_iso(self.responded_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Inquiry":
        """Deserialize inquiry from dictionary."""
        inquiry = cls(
            id=data.get("id", new_id()),
            seeker_id=data.get("seeker_id", ""),
            expert_id=data.get("expert_id", ""),
            project_title=data.get("project_title", ""),
            description=data.get("description", ""),
            budget_range=data.get("budget_range", ""),
            timeline=data.get("timeline", ""),
            status=InquiryStatus(data.get("status", "pending")),
        )
        for field_name in ["created_at", "updated_at", "responded_at"]:
            if data.get(field_name):
                setattr(inquiry, field_name, from_iso(data[field_name]))
        return inquiry
