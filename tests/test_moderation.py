"""Tests for flagging and moderating content."""
import pytest

from genova.errors import AlreadyModerated, AuthorizationError, BackendError, NotFoundError
from genova.models.moderation import (
    ContentType,
    ModerationAction,
    ModerationItem,
    ModerationStatus,
)
from genova.workflows import ModerationQueue, ReviewWorkflow


class TestModerationItem:
    def test_remove_sets_audit_fields(self):
        item = ModerationItem()
        item.moderate("mod-1", ModerationAction.REMOVE)
        assert item.status == ModerationStatus.REMOVED
        assert item.moderated_by == "mod-1"
        assert item.moderated_at is not None
        assert item.flagged_reason == "Removed by moderator"

    def test_remove_keeps_note(self):
        item = ModerationItem()
        item.moderate("mod-1", ModerationAction.REMOVE, note="  Spam  ")
        assert item.flagged_reason == "Spam"

    def test_approve_clears_reason(self):
        item = ModerationItem(flagged_reason="Rude")
        item.moderate("mod-1", ModerationAction.APPROVE)
        assert item.status == ModerationStatus.APPROVED
        assert item.flagged_reason is None

    def test_second_decision_rejected(self):
        item = ModerationItem()
        item.moderate("mod-1", ModerationAction.REMOVE)
        with pytest.raises(AlreadyModerated):
            item.moderate("mod-2", ModerationAction.APPROVE)
        assert item.moderated_by == "mod-1"


class TestModerationQueue:
    @pytest.fixture
    def queue(self, backend):
        return ModerationQueue(backend)

    @pytest.fixture
    def review(self, backend, seeker, expert):
        return ReviewWorkflow(backend).submit(seeker, expert.user_id, 1, feedback="Terrible, avoid")

    @pytest.fixture
    def flagged(self, queue, review, expert):
        return queue.flag(expert, ContentType.REVIEW, review.id, "Abusive language")

    def test_flag_marks_review(self, backend, flagged, review):
        row = backend.store.get("reviews", review.id)
        assert row["is_flagged"] is True
        assert row["flagged_reason"] == "Abusive language"
        assert flagged.content_preview == "Terrible, avoid"

    def test_flag_missing_review(self, queue, expert):
        with pytest.raises(NotFoundError):
            queue.flag(expert, ContentType.REVIEW, "missing", "spam")

    def test_repeat_flag_reuses_open_item(self, queue, flagged, review, seeker):
        again = queue.flag(seeker, ContentType.REVIEW, review.id, "Me too")
        assert again.id == flagged.id
        assert len(queue.pending()) == 1

    def test_pending_lists_unmoderated(self, queue, flagged):
        assert [i.id for i in queue.pending()] == [flagged.id]
        assert queue.pending(ContentType.POST) == []

    def test_remove(self, queue, flagged, moderator):
        item = queue.moderate(moderator, flagged.id, ModerationAction.REMOVE)
        assert item.status == ModerationStatus.REMOVED
        assert item.moderated_at is not None
        assert item.moderated_by == moderator.user_id
        assert queue.pending() == []

    def test_second_decision_rejected(self, queue, flagged, moderator, admin):
        queue.moderate(moderator, flagged.id, ModerationAction.REMOVE)
        with pytest.raises(AlreadyModerated):
            queue.moderate(admin, flagged.id, ModerationAction.APPROVE)
        assert queue.get(flagged.id).status == ModerationStatus.REMOVED

    def test_removed_review_stays_hidden(self, backend, queue, flagged, review, moderator):
        queue.moderate(moderator, flagged.id, ModerationAction.REMOVE, note="Abuse")
        row = backend.store.get("reviews", review.id)
        assert row["is_flagged"] is True
        assert row["moderated_by"] == moderator.user_id
        assert row["flagged_reason"] == "Abuse"

    def test_approved_review_is_restored(self, backend, queue, flagged, review, moderator, expert):
        queue.moderate(moderator, flagged.id, ModerationAction.APPROVE)
        row = backend.store.get("reviews", review.id)
        assert row["is_flagged"] is False
        assert row["flagged_reason"] is None
        assert [r.id for r in ReviewWorkflow(backend).list_for_expert(expert.user_id)] == [review.id]

    def test_experts_cannot_moderate(self, queue, flagged, expert):
        with pytest.raises(AuthorizationError):
            queue.moderate(expert, flagged.id, ModerationAction.REMOVE)
        assert queue.get(flagged.id).moderated_at is None

    def test_concurrent_decision_loses(self, backend, queue, flagged, moderator, admin):
        stale = queue.get(flagged.id)
        queue.moderate(admin, flagged.id, ModerationAction.APPROVE)
        queue.get = lambda _id: stale
        with pytest.raises(AlreadyModerated):
            queue.moderate(moderator, flagged.id, ModerationAction.REMOVE)
        assert backend.store.get("moderation_items", flagged.id)["status"] == "approved"

    def test_forum_decision_forwarded(self, queue, actions, seeker, moderator):
        actions.reply("forum-actions", {"success": True})
        item = queue.flag(seeker, ContentType.POST, "post-42", "Off topic", content_preview="Buy now!")
        queue.moderate(moderator, item.id, ModerationAction.REMOVE)
        assert actions.calls[-1]["url"].endswith("/forum-actions")
        assert actions.last_body == {
            "action": "moderate_content",
            "content_id": "post-42",
            "moderation_action": "remove",
        }

    def test_failed_forum_decision_can_be_retried(self, queue, actions, seeker, moderator):
        item = queue.flag(seeker, ContentType.REPLY, "reply-7", "Spam")
        actions.reply("forum-actions", {"message": "unavailable"}, status_code=500)
        with pytest.raises(BackendError):
            queue.moderate(moderator, item.id, ModerationAction.REMOVE, note="Spam")

        reopened = queue.get(item.id)
        assert reopened.status == ModerationStatus.PENDING
        assert reopened.moderated_by is None
        assert reopened.flagged_reason == "Spam"
        assert [i.id for i in queue.pending()] == [item.id]

        actions.reply("forum-actions", {"success": True})
        decided = queue.moderate(moderator, item.id, ModerationAction.REMOVE, note="Spam")
        assert decided.status == ModerationStatus.REMOVED
        assert queue.pending() == []

    def test_history(self, queue, flagged, moderator):
        queue.moderate(moderator, flagged.id, ModerationAction.REMOVE)
        assert [i.id for i in queue.history()] == [flagged.id]
