"""Onboarding draft collected by the five-step expert wizard."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class OnboardingStep(Enum):
    """Wizard steps, in order."""

    PERSONAL_DETAILS = 1
    EXPERIENCE = 2
    EXPERTISE = 3
    AVAILABILITY = 4
    COMPLETION = 5

    @property
    def label(self) -> str:
        """Display name shown in the progress bar."""
        labels = {
            OnboardingStep.PERSONAL_DETAILS: "Personal Details",
            OnboardingStep.EXPERIENCE: "Experience",
            OnboardingStep.EXPERTISE: "Expertise",
            OnboardingStep.AVAILABILITY: "Availability",
            OnboardingStep.COMPLETION: "Complete",
        }
        return labels[self]

    @property
    def is_terminal(self) -> bool:
        return self == OnboardingStep.COMPLETION


class LeadTime(Enum):
    """How soon an expert can start new projects."""

    IMMEDIATELY = "immediately"
    ONE_TO_TWO_WEEKS = "1-2weeks"
    ONE_MONTH = "1month"
    FLEXIBLE = "flexible"

    @property
    def label(self) -> str:
        labels = {
            LeadTime.IMMEDIATELY: "Available Immediately",
            LeadTime.ONE_TO_TWO_WEEKS: "1-2 Weeks Notice",
            LeadTime.ONE_MONTH: "1 Month Notice",
            LeadTime.FLEXIBLE: "Flexible Timeline",
        }
        return labels[self]


EXPERTISE_AREAS = (
    "Strategic Planning", "Financial Management", "Operations Management",
    "Human Resources", "Marketing & Sales", "Technology & Digital",
    "Risk Management", "Compliance & Legal", "Mergers & Acquisitions",
    "International Business", "Supply Chain", "Customer Experience",
    "Innovation & R&D", "Change Management", "Leadership Development",
)

SECTORS = (
    "Healthcare & Pharmaceuticals", "Financial Services", "Technology",
    "Manufacturing", "Retail & Consumer Goods", "Energy & Utilities",
    "Real Estate", "Education", "Government & Public Sector",
    "Non-Profit", "Aerospace & Defense", "Automotive",
    "Media & Entertainment", "Telecommunications", "Agriculture",
)

# Credential uploads accept PDFs and images only
CREDENTIAL_MIME_PREFIXES = ("application/pdf", "image/")
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@dataclass
class Attachment:
    """A file picked during onboarding, held in memory until submission."""
    filename: str
    mime_type: str
    data: bytes = b""

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class PersonalDetails:
    full_name: str = ""
    title: str = ""
    location: str = ""
    biography: str = ""
    photo: Optional[Attachment] = None


@dataclass
class ExperienceDetails:
    career_history: str = ""
    credentials: list[Attachment] = field(default_factory=list)


@dataclass
class ExpertiseSelection:
    areas: set[str] = field(default_factory=set)
    sectors: set[str] = field(default_factory=set)


@dataclass
class AvailabilityPreference:
    is_available: bool = False
    lead_time: Optional[LeadTime] = None


def _blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


@dataclass
class OnboardingDraft:
    """In-memory state of one wizard session."""

    personal_details: PersonalDetails = field(default_factory=PersonalDetails)
    experience: ExperienceDetails = field(default_factory=ExperienceDetails)
    expertise: ExpertiseSelection = field(default_factory=ExpertiseSelection)
    availability: AvailabilityPreference = field(default_factory=AvailabilityPreference)

    def missing_fields(self, step: OnboardingStep) -> list[str]:
        """Required fields that block leaving ``step``."""
        missing = []

        if step == OnboardingStep.PERSONAL_DETAILS:
            details = self.personal_details
            for name in ("full_name", "title", "location", "biography"):
                if _blank(getattr(details, name)):
                    missing.append(name)

        elif step == OnboardingStep.EXPERIENCE:
            if _blank(self.experience.career_history):
                missing.append("career_history")

        elif step == OnboardingStep.EXPERTISE:
            if not self.expertise.areas:
                missing.append("areas")
            if not self.expertise.sectors:
                missing.append("sectors")

        return missing

    def summary(self) -> dict:
        """Read-only view shown on the completion step."""
        details = self.personal_details
        first_name = details.full_name.split(" ")[0] if details.full_name else ""
        return {
            "greeting": f"Welcome to GENOVA, {first_name}!",
            "full_name": details.full_name,
            "title": details.title,
            "location": details.location,
            "biography": details.biography,
            "has_photo": details.photo is not None,
            "career_history": self.experience.career_history,
            "credential_count": len(self.experience.credentials),
            "expertise_areas": sorted(self.expertise.areas),
            "sectors": sorted(self.expertise.sectors),
            "availability": "Available" if self.availability.is_available else "Not Available",
            "lead_time": self.availability.lead_time.value if self.availability.lead_time else None,
        }
