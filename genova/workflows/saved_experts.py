"""Saved experts and the forum category directory."""

import logging

from ..backend import Backend
from ..errors import NotFoundError, ValidationError
from ..models.identity import CallerIdentity, Role
from ..models.saved_expert import ForumCategory, SavedExpert

logger = logging.getLogger(__name__)

TABLE = "saved_experts"

# Profile columns shown next to a saved expert
PROFILE_FIELDS = ("full_name", "title", "location", "photo_url", "is_available")


class SavedExperts:
    """A seeker's shortlist of experts."""

    def __init__(self, backend: Backend):
        self.backend = backend
        self.store = backend.store

    def save(self, caller: CallerIdentity, expert_id: str) -> SavedExpert:
        """
        Save an expert to the caller's list.

        Saving an expert twice returns the existing entry.
        """
        caller.require_role(Role.SEEKER)
        if not expert_id:
            raise ValidationError("Expert is required", fields=["expert_id"])

        existing = self.store.select(
            TABLE, {"seeker_id": caller.user_id, "expert_id": expert_id}, limit=1
        )
        if existing:
            return SavedExpert.from_dict(existing[0])

        saved = SavedExpert(seeker_id=caller.user_id, expert_id=expert_id)
        self.store.insert(TABLE, saved.to_dict())
        logger.info("Seeker %s saved expert %s", caller.user_id, expert_id)
        return saved

    def list(self, caller: CallerIdentity) -> list[SavedExpert]:
        """Saved experts, newest first, with their profile summary."""
        rows = self.store.select(
            TABLE, {"seeker_id": caller.user_id}, order_by="created_at", descending=True
        )
        saved = []
        for row in rows:
            entry = SavedExpert.from_dict(row)
            profiles = self.store.select("profiles", {"user_id": entry.expert_id}, limit=1)
            if profiles:
                entry.profile = {name: profiles[0].get(name) for name in PROFILE_FIELDS}
            saved.append(entry)
        return saved

    def remove(self, caller: CallerIdentity, expert_id: str) -> None:
        """Remove an expert from the caller's list."""
        rows = self.store.select(
            TABLE, {"seeker_id": caller.user_id, "expert_id": expert_id}, limit=1
        )
        if not rows:
            raise NotFoundError(f"Expert not saved: {expert_id}")
        self.store.delete(TABLE, rows[0]["id"])
        logger.info("Seeker %s removed saved expert %s", caller.user_id, expert_id)


def forum_categories(backend: Backend) -> list[ForumCategory]:
    """Forum categories by name."""
    rows = backend.store.select("forum_categories", order_by="name")
    return [ForumCategory.from_dict(r) for r in rows]
