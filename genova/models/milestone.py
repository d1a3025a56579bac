"""Project milestone model."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .common import from_iso, new_id, to_iso, utcnow


class MilestoneStatus(Enum):
    """Milestone lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


@dataclass
class Milestone:
    """A tracked deliverable within a project."""

    id: str = field(default_factory=new_id)
    project_id: str = ""
    title: str = ""
    description: str = ""
    due_date: Optional[str] = None  # YYYY-MM-DD
    status: MilestoneStatus = MilestoneStatus.PENDING
    completed_at: Optional[datetime] = None

    def set_status(self, status: MilestoneStatus) -> None:
        """Move to ``status``; completed_at tracks entry into and exit from completed."""
        if status == MilestoneStatus.COMPLETED:
            if self.status != MilestoneStatus.COMPLETED:
                self.completed_at = utcnow()
        else:
            self.completed_at = None
        self.status = status

    def toggle(self) -> MilestoneStatus:
        """Checkbox behaviour: completed goes back to pending, anything else completes."""
        if self.status == MilestoneStatus.COMPLETED:
            self.set_status(MilestoneStatus.PENDING)
        else:
            self.set_status(MilestoneStatus.COMPLETED)
        return self.status

    def to_dict(self) -> dict:
        """Serialize milestone to dictionary."""
        return {
            "id": self.id,
            "project_id": self.project_id,
            "title": self.title,
            "description": self.description,
            "due_date": self.due_date,
            "status": self.status.value,
            "completed_at": to_iso(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Milestone":
        """Deserialize milestone from dictionary."""
        return cls(
            id=data.get("id", new_id()),
            project_id=data.get("project_id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            due_date=data.get("due_date"),
            status=MilestoneStatus(data.get("status", "pending")),
            completed_at=from_iso(data.get("completed_at")),
        )
