"""Tests for profile completion and live completion tracking."""
import pytest

from genova.errors import AuthorizationError, NotFoundError, ValidationError
from genova.models.profile import Profile, profile_completion
from genova.workflows import ProfileCompletionTracker, ProfileService


class TestProfileCompletion:
    def test_half_complete(self):
        report = profile_completion({
            "full_name": "Jane",
            "title": "CEO",
            "location": "",
            "biography": "x",
            "photo_url": None,
        })
        assert report.percentage == 50.0
        assert [i.completed for i in report.items] == [True, False, True, False]

    def test_empty_profile(self):
        report = profile_completion({})
        assert report.completed == 0
        assert report.total == 4
        assert report.percentage == 0.0

    def test_basic_info_needs_name_and_title(self):
        report = profile_completion({"full_name": "Jane", "title": ""})
        assert report.items[0].label == "Basic Info"
        assert report.items[0].completed is False

    def test_whitespace_is_missing(self):
        report = profile_completion({"location": "   "})
        assert report.items[1].completed is False

    def test_full_profile(self):
        profile = Profile(
            full_name="Jane Doe",
            title="CEO",
            location="Berlin",
            biography="Bio",
            photo_url="expert-1/1.jpg",
        )
        assert profile.completion().percentage == 100.0

    def test_to_dict(self):
        data = profile_completion({"full_name": "Jane", "title": "CEO"}).to_dict()
        assert data["completed"] == 1
        assert data["percentage"] == 25.0
        assert data["items"][0] == {"label": "Basic Info", "completed": True}


class TestProfileService:
    @pytest.fixture
    def service(self, backend, expert):
        backend.store.insert("profiles", Profile(user_id=expert.user_id, full_name="Jane").to_dict())
        return ProfileService(backend)

    def test_get(self, service, expert):
        assert service.get(expert.user_id).full_name == "Jane"

    def test_get_missing(self, service):
        assert service.get("nobody") is None

    def test_owner_can_update(self, service, expert):
        profile = service.update(expert, expert.user_id, title="CFO", location="Paris")
        assert profile.title == "CFO"
        assert service.completion(expert.user_id).percentage == 50.0

    def test_admin_can_update(self, service, expert, admin):
        assert service.update(admin, expert.user_id, biography="Bio").biography == "Bio"

    def test_other_user_cannot_update(self, service, expert, other_expert):
        with pytest.raises(AuthorizationError):
            service.update(other_expert, expert.user_id, title="Hacked")

    def test_unknown_field_rejected(self, service, expert):
        with pytest.raises(ValidationError) as exc:
            service.update(expert, expert.user_id, user_id="someone-else")
        assert exc.value.fields == ["user_id"]

    def test_completion_without_profile(self, service):
        with pytest.raises(NotFoundError):
            service.completion("nobody")


class TestProfileCompletionTracker:
    @pytest.fixture
    def profile_id(self, backend, expert):
        row = backend.store.insert("profiles", Profile(user_id=expert.user_id, full_name="Jane").to_dict())
        return row["id"]

    def test_initial_report(self, backend, expert, profile_id):
        tracker = ProfileCompletionTracker(backend, expert.user_id)
        assert tracker.report.percentage == 0.0
        tracker.close()

    def test_change_during_initial_fetch_is_kept(self, backend, expert, profile_id, monkeypatch):
        select = backend.store.select

        def select_then_change(*args, **kwargs):
            rows = select(*args, **kwargs)
            monkeypatch.setattr(backend.store, "select", select)
            backend.store.update("profiles", profile_id, {"title": "CEO", "location": "Berlin"})
            return rows

        monkeypatch.setattr(backend.store, "select", select_then_change)
        tracker = ProfileCompletionTracker(backend, expert.user_id)
        assert tracker.report.percentage == 50.0
        tracker.close()

    def test_recomputes_on_update(self, backend, expert, profile_id):
        reports = []
        with ProfileCompletionTracker(backend, expert.user_id, on_change=reports.append) as tracker:
            backend.store.update("profiles", profile_id, {"title": "CEO", "location": "Berlin"})
            assert tracker.report.percentage == 50.0
        assert [r.percentage for r in reports] == [50.0]

    def test_ignores_other_users(self, backend, expert, profile_id):
        reports = []
        tracker = ProfileCompletionTracker(backend, expert.user_id, on_change=reports.append)
        backend.store.insert("profiles", {"user_id": "someone-else", "full_name": "X", "title": "Y"})
        assert reports == []
        tracker.close()

    def test_delete_clears_report(self, backend, expert, profile_id):
        tracker = ProfileCompletionTracker(backend, expert.user_id)
        backend.store.delete("profiles", profile_id)
        assert tracker.report is None
        tracker.close()

    def test_close_stops_updates(self, backend, expert, profile_id):
        reports = []
        tracker = ProfileCompletionTracker(backend, expert.user_id, on_change=reports.append)
        tracker.close()
        tracker.close()
        backend.store.update("profiles", profile_id, {"title": "CEO"})
        assert reports == []
        assert not tracker.active
        assert backend.changes.subscriber_count("profiles") == 0
