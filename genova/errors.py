"""Exception hierarchy shared by the models, workflows, API and CLI."""

from typing import Optional


class GenovaError(Exception):
    """Base class for all platform errors."""


class BackendError(GenovaError):
    """A record store, blob storage or named action call failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ValidationError(GenovaError, ValueError):
    """Required input is missing or malformed."""

    def __init__(self, message: str, fields: Optional[list[str]] = None):
        super().__init__(message)
        self.fields = fields or []


class InvalidTransition(GenovaError):
    """A status change was requested from a state that does not permit it."""

    def __init__(self, message: str, current: Optional[str] = None):
        super().__init__(message)
        self.current = current


class AlreadyModerated(InvalidTransition):
    """The moderation item already carries a decision."""


class AuthorizationError(GenovaError):
    """The caller's role or identity may not perform the action."""


class NotFoundError(GenovaError):
    """The referenced record does not exist."""
