"""Profile reads, edits and live completion tracking."""

import logging
import threading
from typing import Callable, Optional

from ..backend import Backend
from ..backend.changes import ChangeEvent, ChangeKind
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models.common import to_iso, utcnow
from ..models.identity import CallerIdentity
from ..models.profile import CompletionReport, Profile, profile_completion

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({
    "full_name",
    "title",
    "location",
    "biography",
    "photo_url",
    "career_history",
    "expertise_areas",
    "sectors",
    "is_available",
    "lead_time",
})


class ProfileService:
    """Reads and edits expert profiles."""

    def __init__(self, backend: Backend):
        self.backend = backend

    def get(self, user_id: str) -> Optional[Profile]:
        """Get the profile owned by a user."""
        rows = self.backend.store.select("profiles", {"user_id": user_id}, limit=1)
        return Profile.from_dict(rows[0]) if rows else None

    def update(self, caller: CallerIdentity, user_id: str, /, **fields) -> Profile:
        """Edit a profile. Only its owner or an admin may do so."""
        if caller.user_id != user_id and not caller.is_admin:
            raise AuthorizationError("Profiles can only be edited by their owner")

        unknown = sorted(set(fields) - EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(unknown)}", fields=unknown)

        profile = self.get(user_id)
        if profile is None:
            raise NotFoundError(f"No profile for user {user_id}")

        changes = dict(fields)
        changes["updated_at"] = to_iso(utcnow())
        row = self.backend.store.update("profiles", profile.id, changes)
        return Profile.from_dict(row)

    def completion(self, user_id: str) -> CompletionReport:
        """Completion report for a user's profile."""
        profile = self.get(user_id)
        if profile is None:
            raise NotFoundError(f"No profile for user {user_id}")
        return profile_completion(profile)


class ProfileCompletionTracker:
    """
    Keeps a completion report in step with one user's profile row.

    Subscribes, fetches once, then recomputes from every change
    notification for that row. Call ``close()`` (or use it as a context
    manager) to stop listening.
    """

    def __init__(
        self,
        backend: Backend,
        user_id: str,
        on_change: Optional[Callable[[Optional[CompletionReport]], None]] = None,
    ):
        self.user_id = user_id
        self.on_change = on_change
        self.snapshot: Optional[dict] = None
        self._lock = threading.Lock()
        self._received = False
        # Subscribe before the initial fetch so no change can fall between them
        self._subscription = backend.changes.subscribe(
            "profiles", self._handle, filters={"user_id": user_id}
        )
        rows = backend.store.select("profiles", {"user_id": user_id}, limit=1)
        with self._lock:
            # Keep a snapshot delivered by a notification during the fetch
            if not self._received:
                self.snapshot = rows[0] if rows else None

    @property
    def report(self) -> Optional[CompletionReport]:
        """Report for the latest snapshot, or None if the user has no profile."""
        if self.snapshot is None:
            return None
        return profile_completion(self.snapshot)

    @property
    def active(self) -> bool:
        return self._subscription.active

    def _handle(self, event: ChangeEvent) -> None:
        with self._lock:
            self._received = True
            self.snapshot = None if event.kind == ChangeKind.DELETE else event.new
        logger.debug("Profile %s changed (%s)", self.user_id, event.kind.value)
        if self.on_change is not None:
            self.on_change(self.report)

    def close(self) -> None:
        self._subscription.unsubscribe()

    def __enter__(self) -> "ProfileCompletionTracker":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
