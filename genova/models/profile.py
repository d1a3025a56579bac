"""Expert profile and profile completion derivation."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from .common import from_iso, new_id, to_iso, utcnow


@dataclass
class Profile:
    """Persisted expert profile, created when onboarding is submitted."""

    # Identity
    id: str = field(default_factory=new_id)
    user_id: str = ""

    # Personal details
    full_name: str = ""
    title: str = ""
    location: str = ""
    biography: str = ""
    photo_url: Optional[str] = None

    # Experience
    career_history: str = ""
    credential_refs: list[str] = field(default_factory=list)

    # Expertise
    expertise_areas: list[str] = field(default_factory=list)
    sectors: list[str] = field(default_factory=list)

    # Availability
    is_available: bool = False
    lead_time: Optional[str] = None

    # Timestamps
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def completion(self) -> "CompletionReport":
        """Completion report for this profile."""
        return profile_completion(self)

    def to_dict(self) -> dict:
        """Serialize profile to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "full_name": self.full_name,
            "title": self.title,
            "location": self.location,
            "biography": self.biography,
            "photo_url": self.photo_url,
            "career_history": self.career_history,
            "credential_refs": list(self.credential_refs),
            "expertise_areas": list(self.expertise_areas),
            "sectors": list(self.sectors),
            "is_available": self.is_available,
            "lead_time": self.lead_time,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Profile":
        """Deserialize profile from dictionary."""
        profile = cls(
            id=data.get("id", new_id()),
            user_id=data.get("user_id", ""),
            full_name=data.get("full_name") or "",
            title=data.get("title") or "",
            location=data.get("location") or "",
            biography=data.get("biography") or "",
            photo_url=data.get("photo_url"),
            career_history=data.get("career_history") or "",
            credential_refs=data.get("credential_refs", []),
            expertise_areas=data.get("expertise_areas", []),
            sectors=data.get("sectors", []),
            is_available=data.get("is_available", False),
            lead_time=data.get("lead_time"),
        )
        for field_name in ["created_at", "updated_at"]:
            if data.get(field_name):
                setattr(profile, field_name, from_iso(data[field_name]))
        return profile


@dataclass
class CompletionItem:
    """One checklist entry on the profile completion card."""
    label: str
    completed: bool


@dataclass
class CompletionReport:
    """Derived profile completion state."""
    items: list[CompletionItem]

    @property
    def completed(self) -> int:
        return sum(1 for item in self.items if item.completed)

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def percentage(self) -> float:
        if not self.items:
            return 0.0
        return self.completed / self.total * 100

    def to_dict(self) -> dict:
        """Serialize report to dictionary."""
        return {
            "items": [{"label": i.label, "completed": i.completed} for i in self.items],
            "completed": self.completed,
            "total": self.total,
            "percentage": self.percentage,
        }


def _present(value) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return bool(value)


def profile_completion(profile: Union[Profile, dict]) -> CompletionReport:
    """
    Derive profile completion from the presence of profile fields.

    Four items count equally: name and title together, location,
    biography and photo.
    """
    if isinstance(profile, Profile):
        profile = profile.to_dict()

    return CompletionReport(items=[
        CompletionItem(
            "Basic Info",
            _present(profile.get("full_name")) and _present(profile.get("title")),
        ),
        CompletionItem("Location", _present(profile.get("location"))),
        CompletionItem("Biography", _present(profile.get("biography"))),
        CompletionItem("Profile Photo", _present(profile.get("photo_url"))),
    ])
