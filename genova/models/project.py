"""Engagement projects and their shared workspace records."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .common import from_iso, new_id, to_iso, utcnow
from .identity import CallerIdentity


class ProjectStatus(Enum):
    """Project lifecycle status."""

    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Project:
    """An engagement between a seeker and an expert."""

    id: str = field(default_factory=new_id)
    title: str = ""
    description: str = ""
    status: ProjectStatus = ProjectStatus.ACTIVE
    seeker_id: str = ""
    expert_id: str = ""
    inquiry_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def is_participant(self, caller: CallerIdentity) -> bool:
        return caller.user_id in (self.seeker_id, self.expert_id) or caller.is_admin

    def can_edit_milestones(self, caller: CallerIdentity) -> bool:
        """The delivering expert owns the milestone plan."""
        return caller.user_id == self.expert_id or caller.is_admin

    def to_dict(self) -> dict:
        """Serialize project to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "seeker_id": self.seeker_id,
            "expert_id": self.expert_id,
            "inquiry_id": self.inquiry_id,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        """Deserialize project from dictionary."""
        project = cls(
            id=data.get("id", new_id()),
            title=data.get("title", ""),
            description=data.get("description", ""),
            status=ProjectStatus(data.get("status", "active")),
            seeker_id=data.get("seeker_id", ""),
            expert_id=data.get("expert_id", ""),
            inquiry_id=data.get("inquiry_id"),
        )
        if data.get("created_at"):
            project.created_at = from_iso(data["created_at"])
        return project


@dataclass
class ProjectMessage:
    """A chat message inside a project workspace."""
    id: str = field(default_factory=new_id)
    project_id: str = ""
    sender_id: str = ""
    message: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "sender_id": self.sender_id,
            "message": self.message,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectMessage":
        message = cls(
            id=data.get("id", new_id()),
            project_id=data.get("project_id", ""),
            sender_id=data.get("sender_id", ""),
            message=data.get("message", ""),
        )
        if data.get("created_at"):
            message.created_at = from_iso(data["created_at"])
        return message


@dataclass
class ProjectFile:
    """Metadata for a file uploaded to a project workspace."""
    id: str = field(default_factory=new_id)
    project_id: str = ""
    filename: str = ""
    file_path: str = ""
    file_size: int = 0
    mime_type: str = ""
    uploaded_by: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "filename": self.filename,
            "file_path": self.file_path,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "uploaded_by": self.uploaded_by,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectFile":
        project_file = cls(
            id=data.get("id", new_id()),
            project_id=data.get("project_id", ""),
            filename=data.get("filename", ""),
            file_path=data.get("file_path", ""),
            file_size=data.get("file_size", 0),
            mime_type=data.get("mime_type", ""),
            uploaded_by=data.get("uploaded_by", ""),
        )
        if data.get("created_at"):
            project_file.created_at = from_iso(data["created_at"])
        return project_file
