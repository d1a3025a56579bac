"""Seeker bookmarks of experts and forum categories."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .common import from_iso, new_id, to_iso, utcnow


@dataclass
class SavedExpert:
    """An expert a seeker has saved for later."""

    id: str = field(default_factory=new_id)
    seeker_id: str = ""
    expert_id: str = ""
    created_at: datetime = field(default_factory=utcnow)

    # Joined from the expert's profile when listing
    profile: Optional[dict] = None

    def to_dict(self) -> dict:
        """Serialize saved expert to dictionary."""
        data = {
            "id": self.id,
            "seeker_id": self.seeker_id,
            "expert_id": self.expert_id,
            "created_at": to_iso(self.created_at),
        }
        if self.profile is not None:
            data["profile"] = dict(self.profile)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SavedExpert":
        """Deserialize saved expert from dictionary."""
        saved = cls(
            id=data.get("id", new_id()),
            seeker_id=data.get("seeker_id", ""),
            expert_id=data.get("expert_id", ""),
            profile=data.get("profile"),
        )
        if data.get("created_at"):
            saved.created_at = from_iso(data["created_at"])
        return saved


@dataclass
class ForumCategory:
    name: str
    id: str = field(default_factory=new_id)
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict) -> "ForumCategory":
        return cls(
            name=data.get("name", ""),
            id=data.get("id", new_id()),
            description=data.get("description"),
        )
