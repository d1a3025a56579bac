"""Marketplace data models: profiles, onboarding, inquiries, milestones, moderation and availability."""

from .identity import CallerIdentity, Role
from .profile import Profile, CompletionItem, CompletionReport, profile_completion
from .onboarding import (
    OnboardingDraft,
    OnboardingStep,
    LeadTime,
    Attachment,
    EXPERTISE_AREAS,
    SECTORS,
)
from .inquiry import Inquiry, InquiryStatus
from .milestone import Milestone, MilestoneStatus
from .moderation import ModerationItem, ModerationStatus, ModerationAction, ContentType
from .availability import AvailabilitySlot, EngagementType, DAYS
from .review import Review
from .project import Project, ProjectStatus, ProjectMessage, ProjectFile
from .saved_expert import SavedExpert, ForumCategory

__all__ = [
    # Identity & profile
    "CallerIdentity",
    "Role",
    "Profile",
    "CompletionItem",
    "CompletionReport",
    "profile_completion",
    # Onboarding
    "OnboardingDraft",
    "OnboardingStep",
    "LeadTime",
    "Attachment",
    "EXPERTISE_AREAS",
    "SECTORS",
    # Lifecycles
    "Inquiry",
    "InquiryStatus",
    "Milestone",
    "MilestoneStatus",
    "ModerationItem",
    "ModerationStatus",
    "ModerationAction",
    "ContentType",
    # Availability
    "AvailabilitySlot",
    "EngagementType",
    "DAYS",
    # Reviews & projects
    "Review",
    "Project",
    "ProjectStatus",
    "ProjectMessage",
    "ProjectFile",
    # Seeker shortlist & forum
    "SavedExpert",
    "ForumCategory",
]
