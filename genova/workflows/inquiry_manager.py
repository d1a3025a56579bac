"""Inquiry lifecycle: seekers open inquiries, experts accept or decline them."""

import logging
from typing import Callable, Optional

from ..backend import Backend
from ..backend.changes import ChangeEvent, Subscription
from ..errors import AuthorizationError, InvalidTransition, NotFoundError, ValidationError
from ..models.identity import CallerIdentity, Role
from ..models.inquiry import Inquiry, InquiryStatus

logger = logging.getLogger(__name__)

TABLE = "inquiries"


class InquiryManager:
    """Manages inquiries between seekers and experts."""

    def __init__(self, backend: Backend):
        self.backend = backend
        self.store = backend.store

    def get(self, inquiry_id: str) -> Inquiry:
        """Get an inquiry by ID."""
        row = self.store.get(TABLE, inquiry_id)
        if row is None:
            raise NotFoundError(f"Inquiry not found: {inquiry_id}")
        return Inquiry.from_dict(row)

    def create(
        self,
        caller: CallerIdentity,
        expert_id: str,
        project_title: str,
        description: str = "",
        budget_range: str = "",
        timeline: str = "",
    ) -> Inquiry:
        """Open a pending inquiry with an expert."""
        caller.require_role(Role.SEEKER)

        missing = [name for name, value in (("expert_id", expert_id), ("project_title", project_title))
                   if not (value or "").strip()]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

        inquiry = Inquiry(
            seeker_id=caller.user_id,
            expert_id=expert_id,
            project_title=project_title.strip(),
            description=description.strip(),
            budget_range=budget_range,
            timeline=timeline,
        )
        self.store.insert(TABLE, inquiry.to_dict())
        logger.info("Inquiry %s opened by %s for %s", inquiry.id, caller.user_id, expert_id)
        return inquiry

    def list_for_expert(
        self,
        expert_id: str,
        status: Optional[InquiryStatus] = None,
    ) -> list[Inquiry]:
        """Inquiries addressed to an expert, newest first."""
        filters = {"expert_id": expert_id}
        if status:
            filters["status"] = status.value
        rows = self.store.select(TABLE, filters, order_by="created_at", descending=True)
        return [Inquiry.from_dict(r) for r in rows]

    def list_for_seeker(self, seeker_id: str) -> list[Inquiry]:
        """Inquiries sent by a seeker, newest first."""
        rows = self.store.select(
            TABLE, {"seeker_id": seeker_id}, order_by="created_at", descending=True
        )
        return [Inquiry.from_dict(r) for r in rows]

    def accept(self, caller: CallerIdentity, inquiry_id: str) -> Inquiry:
        """Accept a pending inquiry."""
        return self._respond(caller, inquiry_id, InquiryStatus.ACCEPTED)

    def decline(self, caller: CallerIdentity, inquiry_id: str) -> Inquiry:
        """Decline a pending inquiry."""
        return self._respond(caller, inquiry_id, InquiryStatus.DECLINED)

    def _respond(
        self,
        caller: CallerIdentity,
        inquiry_id: str,
        status: InquiryStatus,
    ) -> Inquiry:
        inquiry = self.get(inquiry_id)

        # Only the addressed expert answers an inquiry
        if caller.role != Role.EXPERT or caller.user_id != inquiry.expert_id:
            raise AuthorizationError(f"Only the addressed expert can {status.value} this inquiry")

        if status == InquiryStatus.ACCEPTED:
            inquiry.accept()
        else:
            inquiry.decline()

        updated = self.store.update(
            TABLE,
            inquiry_id,
            {
                "status": inquiry.status.value,
                "responded_at": inquiry.to_dict()["responded_at"],
                "updated_at": inquiry.to_dict()["updated_at"],
            },
            expect={"status": InquiryStatus.PENDING.value},
        )
        if updated is None:
            current = self.get(inquiry_id).status.value
            raise InvalidTransition(
                f"Inquiry {inquiry_id} changed concurrently and is now {current}",
                current=current,
            )

        logger.info("Inquiry %s %s by %s", inquiry_id, status.value, caller.user_id)
        return Inquiry.from_dict(updated)

    def subscribe(
        self,
        expert_id: str,
        callback: Callable[[list[Inquiry]], None],
    ) -> Subscription:
        """Re-fetch an expert's inquiries whenever one of them changes."""
        def refresh(_event: ChangeEvent) -> None:
            callback(self.list_for_expert(expert_id))

        return self.backend.changes.subscribe(TABLE, refresh, filters={"expert_id": expert_id})
