"""Workflow management for onboarding, inquiries, milestones, moderation, availability and projects."""

from .analytics import AnalyticsTracker
from .onboarding_flow import OnboardingFlow
from .profiles import ProfileService, ProfileCompletionTracker
from .inquiry_manager import InquiryManager
from .milestone_tracker import MilestoneTracker
from .moderation_queue import ModerationQueue
from .availability_calendar import AvailabilityCalendar
from .review_workflow import ReviewWorkflow
from .workspace import ProjectWorkspace
from .admin import AdminConsole
from .saved_experts import SavedExperts, forum_categories
from . import assistant

__all__ = [
    "AnalyticsTracker",
    "OnboardingFlow",
    "ProfileService",
    "ProfileCompletionTracker",
    "InquiryManager",
    "MilestoneTracker",
    "ModerationQueue",
    "AvailabilityCalendar",
    "ReviewWorkflow",
    "ProjectWorkspace",
    "AdminConsole",
    "SavedExperts",
    "forum_categories",
    "assistant",
]
