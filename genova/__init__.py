"""GENOVA: expert marketplace core (onboarding, inquiries, projects and moderation)."""

__version__ = "0.1.0"
