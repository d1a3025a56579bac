"""Tests for named actions, the AI panels and the admin console."""
import pytest
import requests

from genova.backend.actions import (
    ActionClient,
    AnalyticsExportRequest,
    MatchExpertsRequest,
    SummarizeReviewsRequest,
)
from genova.errors import AuthorizationError, BackendError, ValidationError
from genova.workflows import AdminConsole, ReviewWorkflow, assistant

FUNCTIONS_URL = "http://functions.test/v1"


class TestActionClient:
    @pytest.fixture
    def client(self, fake_session):
        return ActionClient(FUNCTIONS_URL + "/", api_key="secret", timeout=5, session=fake_session)

    def test_posts_tagged_body(self, client, fake_session):
        fake_session.reply("ai-actions", {"experts": []})
        client.invoke(MatchExpertsRequest(project_description="ERP rollout"))
        call = fake_session.calls[0]
        assert call["url"] == FUNCTIONS_URL + "/ai-actions"
        assert call["json"] == {
            "action": "match_experts",
            "project_description": "ERP rollout",
            "search_query": "",
        }
        assert call["headers"]["Authorization"] == "Bearer secret"
        assert call["timeout"] == 5

    def test_export_uses_camel_case(self):
        body = AnalyticsExportRequest(format="json", date_range={"start": "2024-01-01"}, user_id="a1").to_body()
        assert body == {
            "action": "export",
            "type": "admin_report",
            "format": "json",
            "dateRange": {"start": "2024-01-01"},
            "userId": "a1",
        }

    def test_http_error(self, client, fake_session):
        fake_session.reply("ai-actions", {"message": "down"}, status_code=500)
        with pytest.raises(BackendError):
            client.invoke(MatchExpertsRequest())

    def test_error_payload(self, client, fake_session):
        fake_session.reply("ai-actions", {"error": "quota exceeded"})
        with pytest.raises(BackendError, match="quota exceeded"):
            client.invoke(MatchExpertsRequest())

    def test_non_json_body(self, client, fake_session):
        fake_session.reply("ai-actions", text="<html>")
        with pytest.raises(BackendError):
            client.invoke(MatchExpertsRequest())

    def test_schema_violation(self, client, fake_session):
        fake_session.reply("ai-actions", {"experts": [{"id": 7}]})
        with pytest.raises(BackendError) as exc:
            client.invoke(MatchExpertsRequest())
        assert exc.value.cause is not None

    def test_required_key_missing(self, client, fake_session):
        fake_session.reply("ai-actions", {})
        with pytest.raises(BackendError):
            client.invoke(SummarizeReviewsRequest(expert_id="e1"))

    def test_transport_failure(self, monkeypatch):
        def refuse(self, *args, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(requests.Session, "post", refuse)
        client = ActionClient(FUNCTIONS_URL)
        with pytest.raises(BackendError) as exc:
            client.invoke(MatchExpertsRequest())
        assert isinstance(exc.value.cause, requests.ConnectionError)

    def test_timeout(self, monkeypatch):
        def slow(self, *args, **kwargs):
            raise requests.Timeout()

        monkeypatch.setattr(requests.Session, "post", slow)
        with pytest.raises(BackendError, match="timed out"):
            ActionClient(FUNCTIONS_URL).invoke(MatchExpertsRequest())


class TestAssistant:
    def test_match_experts(self, backend, actions):
        actions.reply("ai-actions", {"experts": [{"id": "e1", "name": "Jane", "matchScore": 92}]})
        experts = assistant.match_experts(backend.actions, "Cold-chain logistics", "pharma")
        assert experts[0]["name"] == "Jane"
        assert actions.last_body["search_query"] == "pharma"

    def test_prompt_suggestions(self, backend, actions):
        actions.reply("ai-actions", {"suggestions": [{"category": "Scope", "suggestions": ["Add KPIs"]}]})
        groups = assistant.generate_prompt_suggestions(backend.actions, "strategy", "$10k", "3 months")
        assert groups == [{"category": "Scope", "suggestions": ["Add KPIs"]}]

    def test_enhance_prompt(self, backend, actions):
        actions.reply("ai-actions", {"enhanced_prompt": "A sharper brief"})
        assert assistant.enhance_prompt(backend.actions, "brief") == "A sharper brief"

    def test_enhance_prompt_keeps_original(self, backend, actions):
        actions.reply("ai-actions", {})
        assert assistant.enhance_prompt(backend.actions, "brief") == "brief"

    def test_chat_sends_last_five_turns(self, backend, actions):
        actions.reply("ai-actions", {"response": "Hello!"})
        history = [{"role": "user", "content": str(i)} for i in range(8)]
        reply = assistant.chat_response(backend.actions, "hi", context="search", user_id="u1", history=history)
        assert reply == "Hello!"
        sent = actions.last_body["conversation_history"]
        assert [turn["content"] for turn in sent] == ["3", "4", "5", "6", "7"]

    def test_summarize_reviews(self, backend, actions, seeker, expert):
        review = ReviewWorkflow(backend).submit(seeker, expert.user_id, 5, feedback="Great")
        actions.reply("ai-actions", {"summary": {"overall_rating": 5, "total_reviews": 1}})
        summary = assistant.summarize_reviews(backend.actions, expert.user_id, [review])
        assert summary["total_reviews"] == 1
        assert actions.last_body["reviews"][0]["feedback"] == "Great"

    def test_summarize_thread(self, backend, actions):
        actions.reply("ai-actions", {"summary": {"summary": "Short", "key_points": ["a"]}})
        summary = assistant.summarize_thread(backend.actions, "p1", "Post", ["r1", "r2"])
        assert summary["key_points"] == ["a"]
        assert actions.last_body["replies"] == ["r1", "r2"]

    def test_improve_reply(self, backend, actions):
        actions.reply("ai-actions", {"suggestions": ["Kinder wording"]})
        assert assistant.improve_reply(backend.actions, "no.") == ["Kinder wording"]
        assert actions.last_body["context"] == "forum_reply"


class TestAdminConsole:
    def test_admin_only(self, backend, moderator):
        with pytest.raises(AuthorizationError):
            AdminConsole(backend, moderator)

    def test_kpi_report(self, backend, actions, admin):
        actions.reply("admin-actions", {"success": True, "data": {"activeExperts": 12}})
        assert AdminConsole(backend, admin).kpi_report() == {"activeExperts": 12}
        assert actions.last_body == {"action": "generate_kpi_report"}

    def test_kpi_report_failure(self, backend, actions, admin):
        actions.reply("admin-actions", {"success": False})
        with pytest.raises(BackendError):
            AdminConsole(backend, admin).kpi_report()

    def test_export(self, backend, actions, admin):
        actions.reply("analytics-export", {"downloadUrl": "https://files.test/report.csv"})
        result = AdminConsole(backend, admin).export("csv", {"start": "2024-01-01", "end": "2024-01-31"})
        assert result["downloadUrl"].endswith(".csv")
        assert actions.last_body["userId"] == admin.user_id

    def test_pdf_export(self, backend, actions, admin):
        actions.reply("analytics-export", {"downloadUrl": "https://files.test/report.pdf"})
        result = AdminConsole(backend, admin).export("pdf")
        assert result["downloadUrl"].endswith(".pdf")
        assert actions.last_body["format"] == "pdf"

    def test_export_format_checked(self, backend, admin):
        with pytest.raises(ValidationError):
            AdminConsole(backend, admin).export("xlsx")

    def test_event_counts(self, backend, admin):
        from genova.workflows import AnalyticsTracker

        tracker = AnalyticsTracker(backend.store)
        tracker.track_page_view("home")
        tracker.track_page_view("search")
        tracker.track_signup("expert")
        assert AdminConsole(backend, admin).event_counts() == {"page_view": 2, "signup_started": 1}


class TestAnalyticsTracker:
    def test_failures_are_swallowed(self, backend, monkeypatch):
        from genova.workflows import AnalyticsTracker

        def broken(*args, **kwargs):
            raise BackendError("disk full")

        tracker = AnalyticsTracker(backend.store)
        monkeypatch.setattr(backend.store, "insert", broken)
        assert tracker.track("page_view") is None

    def test_session_id_shared(self, backend):
        from genova.workflows import AnalyticsTracker

        tracker = AnalyticsTracker(backend.store, session_id="s-1")
        tracker.track_conversion("inquiry_sent", 1.0)
        tracker.track_engagement("click", "cta")
        assert {e["session_id"] for e in backend.store.select("analytics_events")} == {"s-1"}
