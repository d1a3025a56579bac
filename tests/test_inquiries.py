"""Tests for the inquiry lifecycle."""
import pytest

from genova.errors import AuthorizationError, InvalidTransition, ValidationError
from genova.models.inquiry import Inquiry, InquiryStatus
from genova.workflows import InquiryManager


class TestInquiryModel:
    def test_accept_pending(self):
        inquiry = Inquiry()
        inquiry.accept()
        assert inquiry.status == InquiryStatus.ACCEPTED
        assert inquiry.responded_at is not None

    def test_terminal_states_are_final(self):
        inquiry = Inquiry(status=InquiryStatus.DECLINED)
        with pytest.raises(InvalidTransition) as exc:
            inquiry.accept()
        assert exc.value.current == "declined"
        assert inquiry.status == InquiryStatus.DECLINED

    def test_round_trip(self):
        inquiry = Inquiry(seeker_id="s", expert_id="e", project_title="Audit")
        restored = Inquiry.from_dict(inquiry.to_dict())
        assert restored.project_title == "Audit"
        assert restored.created_at == inquiry.created_at


class TestInquiryManager:
    @pytest.fixture
    def manager(self, backend):
        return InquiryManager(backend)

    @pytest.fixture
    def inquiry(self, manager, seeker, expert):
        return manager.create(
            seeker,
            expert_id=expert.user_id,
            project_title="Supply chain review",
            budget_range="$5k-$10k",
            timeline="1 month",
        )

    def test_create_is_pending(self, inquiry, seeker):
        assert inquiry.status == InquiryStatus.PENDING
        assert inquiry.seeker_id == seeker.user_id

    def test_only_seekers_create(self, manager, expert, other_expert):
        with pytest.raises(AuthorizationError):
            manager.create(expert, expert_id=other_expert.user_id, project_title="x")

    def test_title_required(self, manager, seeker, expert):
        with pytest.raises(ValidationError) as exc:
            manager.create(seeker, expert_id=expert.user_id, project_title="  ")
        assert exc.value.fields == ["project_title"]

    def test_accept_pending(self, manager, inquiry, expert):
        accepted = manager.accept(expert, inquiry.id)
        assert accepted.status == InquiryStatus.ACCEPTED
        assert manager.get(inquiry.id).status == InquiryStatus.ACCEPTED

    def test_accept_declined_is_rejected(self, manager, inquiry, expert):
        manager.decline(expert, inquiry.id)
        with pytest.raises(InvalidTransition):
            manager.accept(expert, inquiry.id)
        assert manager.get(inquiry.id).status == InquiryStatus.DECLINED

    def test_only_addressed_expert_responds(self, manager, inquiry, other_expert):
        with pytest.raises(AuthorizationError):
            manager.accept(other_expert, inquiry.id)
        assert manager.get(inquiry.id).status == InquiryStatus.PENDING

    def test_seeker_cannot_accept(self, manager, inquiry, seeker):
        with pytest.raises(AuthorizationError):
            manager.accept(seeker, inquiry.id)

    def test_concurrent_response_loses(self, backend, manager, inquiry, expert):
        # Another session declined between our read and our write
        stale = manager.get(inquiry.id)
        backend.store.update("inquiries", inquiry.id, {"status": "declined"})
        manager.get = lambda _id: stale
        with pytest.raises(InvalidTransition):
            manager.accept(expert, inquiry.id)
        assert backend.store.get("inquiries", inquiry.id)["status"] == "declined"

    def test_list_for_expert_newest_first(self, backend, manager, seeker, expert):
        first = manager.create(seeker, expert_id=expert.user_id, project_title="First")
        second = manager.create(seeker, expert_id=expert.user_id, project_title="Second")
        backend.store.update("inquiries", first.id, {"created_at": "2024-01-01T00:00:00+00:00"})
        backend.store.update("inquiries", second.id, {"created_at": "2024-02-01T00:00:00+00:00"})
        titles = [i.project_title for i in manager.list_for_expert(expert.user_id)]
        assert titles == ["Second", "First"]

    def test_list_filters_by_status(self, manager, inquiry, expert):
        manager.accept(expert, inquiry.id)
        assert manager.list_for_expert(expert.user_id, status=InquiryStatus.PENDING) == []
        assert len(manager.list_for_expert(expert.user_id, status=InquiryStatus.ACCEPTED)) == 1

    def test_list_for_seeker(self, manager, inquiry, seeker):
        assert [i.id for i in manager.list_for_seeker(seeker.user_id)] == [inquiry.id]

    def test_subscribe_refetches(self, manager, seeker, expert):
        snapshots = []
        subscription = manager.subscribe(expert.user_id, snapshots.append)
        manager.create(seeker, expert_id=expert.user_id, project_title="Live")
        subscription.unsubscribe()
        manager.create(seeker, expert_id=expert.user_id, project_title="After")
        assert len(snapshots) == 1
        assert [i.project_title for i in snapshots[0]] == ["Live"]
