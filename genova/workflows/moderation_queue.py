"""Moderation of flagged reviews and forum content."""

import logging
from typing import Optional

from ..backend import Backend
from ..backend.actions import ModerateContentRequest
from ..errors import AlreadyModerated, AuthorizationError, BackendError, NotFoundError, ValidationError
from ..models.common import to_iso
from ..models.identity import CallerIdentity
from ..models.moderation import ContentType, ModerationAction, ModerationItem, ModerationStatus

logger = logging.getLogger(__name__)

TABLE = "moderation_items"


class ModerationQueue:
    """
    Flagging and moderator decisions.

    The pending queue is every item whose ``moderated_at`` is unset. A
    decision is written with a conditional update on that column, so two
    moderators racing on one item cannot both succeed.
    """

    def __init__(self, backend: Backend):
        self.backend = backend
        self.store = backend.store

    def get(self, item_id: str) -> ModerationItem:
        """Get a moderation item by ID."""
        row = self.store.get(TABLE, item_id)
        if row is None:
            raise NotFoundError(f"Moderation item not found: {item_id}")
        return ModerationItem.from_dict(row)

    def flag(
        self,
        caller: CallerIdentity,
        content_type: ContentType,
        content_ref: str,
        reason: str,
        content_preview: str = "",
    ) -> ModerationItem:
        """Flag content for moderator attention."""
        if not (content_ref or "").strip():
            raise ValidationError("content_ref is required", fields=["content_ref"])

        if content_type == ContentType.REVIEW:
            review = self.store.get("reviews", content_ref)
            if review is None:
                raise NotFoundError(f"Review not found: {content_ref}")
            content_preview = content_preview or (review.get("feedback") or "")

        # An item still awaiting a decision absorbs repeat flags
        open_items = self.store.select(
            TABLE, {"content_ref": content_ref, "moderated_at": None}, limit=1
        )
        if open_items:
            return ModerationItem.from_dict(open_items[0])

        item = ModerationItem(
            content_type=content_type,
            content_ref=content_ref,
            content_preview=content_preview[:500],
            flagged_reason=(reason or "").strip() or "Flagged by user",
            flagged_by=caller.user_id,
        )
        self.store.insert(TABLE, item.to_dict())

        if content_type == ContentType.REVIEW:
            self.store.update("reviews", content_ref, {
                "is_flagged": True,
                "flagged_reason": item.flagged_reason,
                "moderated_by": None,
                "moderated_at": None,
            })

        logger.info("%s %s flagged by %s", content_type.value, content_ref, caller.user_id)
        return item

    def pending(self, content_type: Optional[ContentType] = None) -> list[ModerationItem]:
        """Items awaiting a decision, newest flag first."""
        filters = {"moderated_at": None}
        if content_type:
            filters["content_type"] = content_type.value
        rows = self.store.select(TABLE, filters, order_by="flagged_at", descending=True)
        return [ModerationItem.from_dict(r) for r in rows]

    def history(self, limit: int = 50) -> list[ModerationItem]:
        """Decided items, most recent decision first."""
        rows = [
            r for r in self.store.select(TABLE, order_by="moderated_at", descending=True)
            if r.get("moderated_at")
        ]
        return [ModerationItem.from_dict(r) for r in rows[:limit]]

    def moderate(
        self,
        caller: CallerIdentity,
        item_id: str,
        action: ModerationAction,
        note: Optional[str] = None,
    ) -> ModerationItem:
        """Approve or remove a flagged item. Each item can be decided once."""
        if not caller.role.can_moderate:
            raise AuthorizationError(f"Role {caller.role.value} cannot moderate content")

        item = self.get(item_id)
        flagged_reason = item.flagged_reason
        item.moderate(caller.user_id, action, note=note)

        data = item.to_dict()
        updated = self.store.update(
            TABLE,
            item_id,
            {
                "status": data["status"],
                "flagged_reason": data["flagged_reason"],
                "moderated_by": data["moderated_by"],
                "moderated_at": data["moderated_at"],
            },
            expect={"moderated_at": None},
        )
        if updated is None:
            raise AlreadyModerated(f"Item {item_id} was moderated concurrently")

        if item.content_type == ContentType.REVIEW:
            self._apply_to_review(item)
        elif item.content_type.is_forum:
            try:
                self.backend.actions.invoke(ModerateContentRequest(
                    content_id=item.content_ref,
                    moderation_action=action.value,
                ))
            except BackendError:
                self._reopen(item_id, flagged_reason, data["moderated_at"])
                raise

        logger.info("Item %s %s by %s", item_id, item.status.value, caller.user_id)
        return ModerationItem.from_dict(updated)

    def _reopen(self, item_id: str, flagged_reason: Optional[str], moderated_at: str) -> None:
        """Put a decided item back in the pending queue so the decision can be retried."""
        reopened = self.store.update(
            TABLE,
            item_id,
            {
                "status": ModerationStatus.PENDING.value,
                "flagged_reason": flagged_reason,
                "moderated_by": None,
                "moderated_at": None,
            },
            expect={"moderated_at": moderated_at},
        )
        if reopened is not None:
            logger.warning("Forum decision on %s not delivered; item reopened", item_id)

    def _apply_to_review(self, item: ModerationItem) -> None:
        self.store.update("reviews", item.content_ref, {
            "is_flagged": item.status == ModerationStatus.REMOVED,
            "flagged_reason": item.flagged_reason,
            "moderated_by": item.moderated_by,
            "moderated_at": to_iso(item.moderated_at),
        })
