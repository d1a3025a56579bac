"""Milestone tracking for project workspaces."""

import logging
from typing import Optional

from ..backend import Backend
from ..errors import AuthorizationError, InvalidTransition, NotFoundError, ValidationError
from ..models.identity import CallerIdentity
from ..models.milestone import Milestone, MilestoneStatus
from ..models.project import Project

logger = logging.getLogger(__name__)

TABLE = "project_milestones"


class MilestoneTracker:
    """Adds, lists and transitions milestones of a project."""

    def __init__(self, backend: Backend):
        self.backend = backend
        self.store = backend.store

    def _project(self, project_id: str) -> Project:
        row = self.store.get("projects", project_id)
        if row is None:
            raise NotFoundError(f"Project not found: {project_id}")
        return Project.from_dict(row)

    def can_edit(self, caller: CallerIdentity, project_id: str) -> bool:
        """Whether the caller may add or change milestones on the project."""
        return self._project(project_id).can_edit_milestones(caller)

    def _require_edit(self, caller: CallerIdentity, project_id: str) -> None:
        if not self.can_edit(caller, project_id):
            raise AuthorizationError(f"{caller.user_id} cannot edit milestones of {project_id}")

    def get(self, milestone_id: str) -> Milestone:
        """Get a milestone by ID."""
        row = self.store.get(TABLE, milestone_id)
        if row is None:
            raise NotFoundError(f"Milestone not found: {milestone_id}")
        return Milestone.from_dict(row)

    def list(self, project_id: str) -> list[Milestone]:
        """Milestones of a project, earliest due date first."""
        rows = self.store.select(TABLE, {"project_id": project_id}, order_by="due_date")
        return [Milestone.from_dict(r) for r in rows]

    def add(
        self,
        caller: CallerIdentity,
        project_id: str,
        title: str,
        description: str = "",
        due_date: Optional[str] = None,
    ) -> Milestone:
        """Add a pending milestone."""
        self._require_edit(caller, project_id)
        if not (title or "").strip():
            raise ValidationError("Milestone title is required", fields=["title"])

        milestone = Milestone(
            project_id=project_id,
            title=title.strip(),
            description=description or "",
            due_date=due_date or None,
        )
        self.store.insert(TABLE, milestone.to_dict())
        logger.info("Milestone %s added to project %s", milestone.id, project_id)
        return milestone

    def toggle_status(self, caller: CallerIdentity, milestone_id: str) -> Milestone:
        """Flip between pending and completed (checkbox affordance)."""
        milestone = self.get(milestone_id)
        self._require_edit(caller, milestone.project_id)
        previous = milestone.status
        milestone.toggle()
        return self._save_transition(milestone, previous)

    def set_status(
        self,
        caller: CallerIdentity,
        milestone_id: str,
        status: MilestoneStatus,
    ) -> Milestone:
        """Move a milestone to any status, including in_progress."""
        milestone = self.get(milestone_id)
        self._require_edit(caller, milestone.project_id)
        previous = milestone.status
        milestone.set_status(status)
        return self._save_transition(milestone, previous)

    def _save_transition(self, milestone: Milestone, previous: MilestoneStatus) -> Milestone:
        data = milestone.to_dict()
        updated = self.store.update(
            TABLE,
            milestone.id,
            {"status": data["status"], "completed_at": data["completed_at"]},
            expect={"status": previous.value},
        )
        if updated is None:
            current = self.get(milestone.id).status.value
            raise InvalidTransition(
                f"Milestone {milestone.id} changed concurrently and is now {current}",
                current=current,
            )
        logger.info("Milestone %s: %s -> %s", milestone.id, previous.value, milestone.status.value)
        return Milestone.from_dict(updated)
