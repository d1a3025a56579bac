"""
Flask REST API routes for the GENOVA marketplace.

This module provides HTTP endpoints for:
- Expert onboarding sessions and profile completion
- Inquiries between seekers and experts
- Project milestones, messages and files
- Availability calendars and reviews
- Saved experts and forum categories
- Content moderation, AI-assisted panels and admin reports

The caller is identified by the ``X-User-Id`` and ``X-User-Role`` headers.

To run the server:
    python -m genova.api.routes

Or with Flask:
    FLASK_APP=genova.api.routes:create_app flask run
"""

import logging
import threading
import time
from typing import Optional

try:
    from flask import Flask, request, jsonify, g
except ImportError:
    Flask = None

from .. import __version__
from ..backend import Backend
from ..config import Settings, build_backend, configure_logging, load_settings
from ..errors import (
    AuthorizationError,
    BackendError,
    GenovaError,
    InvalidTransition,
    NotFoundError,
    ValidationError,
)
from ..models.identity import CallerIdentity, Role

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (InvalidTransition, 409),
    (BackendError, 502),
)


def current_caller() -> CallerIdentity:
    """Identity of the request's caller, from the identity headers."""
    role = request.headers.get("X-User-Role", "").lower()
    try:
        parsed = Role(role)
    except ValueError:
        raise AuthorizationError(f"Unknown or missing role: {role or '<none>'}")
    return CallerIdentity(user_id=request.headers.get("X-User-Id", ""), role=parsed)


def _body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON object body required")
    return data


def _require(data: dict, *names: str) -> None:
    missing = [name for name in names if data.get(name) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)


def _flag(data: dict, name: str, default: Optional[bool] = None) -> bool:
    value = data.get(name, default)
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be true or false", fields=[name])
    return value


def create_app(backend: Optional[Backend] = None, settings: Optional[Settings] = None) -> "Flask":
    """Create and configure the Flask application."""
    if Flask is None:
        raise ImportError("Flask is required for the API. Install with: pip install genova-marketplace[api]")

    settings = settings or load_settings()
    app = Flask(__name__)
    app.config["BACKEND"] = backend or build_backend(settings)

    # Wizard drafts live in memory until submitted or abandoned: session id -> (owner, flow, last used)
    onboarding_sessions: dict = {}
    sessions_lock = threading.Lock()

    # Import here to avoid circular imports
    from ..models.availability import EngagementType
    from ..models.inquiry import InquiryStatus
    from ..models.milestone import MilestoneStatus
    from ..models.moderation import ContentType, ModerationAction
    from ..models.onboarding import Attachment, LeadTime
    from ..workflows import (
        AdminConsole,
        AvailabilityCalendar,
        InquiryManager,
        MilestoneTracker,
        ModerationQueue,
        OnboardingFlow,
        ProfileService,
        ProjectWorkspace,
        ReviewWorkflow,
        SavedExperts,
        assistant,
        forum_categories,
    )

    # Initialize services
    @app.before_request
    def init_services():
        g.backend = app.config["BACKEND"]
        g.profiles = ProfileService(g.backend)
        g.inquiries = InquiryManager(g.backend)
        g.milestones = MilestoneTracker(g.backend)
        g.moderation = ModerationQueue(g.backend)
        g.calendar = AvailabilityCalendar(g.backend)
        g.reviews = ReviewWorkflow(g.backend, moderation=g.moderation)
        g.workspace = ProjectWorkspace(g.backend)
        g.saved_experts = SavedExperts(g.backend)

    @app.errorhandler(GenovaError)
    def handle_error(error: GenovaError):
        status = next((code for cls, code in ERROR_STATUS if isinstance(error, cls)), 500)
        payload = {"error": str(error), "type": type(error).__name__}
        if isinstance(error, ValidationError) and error.fields:
            payload["fields"] = error.fields
        if isinstance(error, InvalidTransition) and error.current:
            payload["current"] = error.current
        if status >= 500:
            logger.error("Request %s %s failed: %s", request.method, request.path, error)
        return jsonify(payload), status

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        # Enum parsing of request values
        return jsonify({"error": str(error), "type": "ValidationError"}), 400

    # === Health Check ===

    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({"status": "healthy", "version": __version__})

    # === Onboarding ===

    def _evict_idle_sessions() -> None:
        cutoff = time.monotonic() - settings.onboarding_idle_timeout
        with sessions_lock:
            idle = [sid for sid, (_, _, seen) in onboarding_sessions.items() if seen < cutoff]
            for session_id in idle:
                del onboarding_sessions[session_id]
        for session_id in idle:
            logger.info("Discarded idle onboarding session %s", session_id)

    def _session(session_id: str, caller: CallerIdentity) -> OnboardingFlow:
        _evict_idle_sessions()
        with sessions_lock:
            entry = onboarding_sessions.get(session_id)
            if entry is None:
                raise NotFoundError(f"Onboarding session not found: {session_id}")
            owner, flow, _ = entry
            if owner != caller.user_id:
                raise AuthorizationError("Onboarding sessions are private to the user who started them")
            onboarding_sessions[session_id] = (owner, flow, time.monotonic())
        return flow

    def _session_state(flow: OnboardingFlow) -> dict:
        return {
            "id": flow.id,
            "step": flow.step.value,
            "step_name": flow.step.label,
            "progress": flow.progress(),
            "summary": flow.summary(),
            "profile_id": flow.profile_id,
        }

    @app.route("/api/v1/onboarding", methods=["POST"])
    def start_onboarding():
        """Start a wizard session for the calling expert."""
        caller = current_caller()
        caller.require_role(Role.EXPERT)
        flow = OnboardingFlow(g.backend)
        _evict_idle_sessions()
        with sessions_lock:
            onboarding_sessions[flow.id] = (caller.user_id, flow, time.monotonic())
        return jsonify(_session_state(flow)), 201

    @app.route("/api/v1/onboarding/<session_id>", methods=["GET"])
    def get_onboarding(session_id: str):
        """Current step, progress bar and draft summary."""
        return jsonify(_session_state(_session(session_id, current_caller())))

    @app.route("/api/v1/onboarding/<session_id>", methods=["DELETE"])
    def abandon_onboarding(session_id: str):
        """Discard an unsubmitted draft."""
        _session(session_id, current_caller())
        with sessions_lock:
            onboarding_sessions.pop(session_id, None)
        logger.info("Onboarding session %s abandoned", session_id)
        return jsonify({"success": True})

    @app.route("/api/v1/onboarding/<session_id>/sections/<section>", methods=["PATCH"])
    def update_onboarding_section(session_id: str, section: str):
        """
        Edit the draft.

        Sections:
            personal_details / experience: text fields to merge
            expertise: {"toggle_area": ..., "toggle_sector": ...}
            availability: {"is_available": bool, "lead_time": "1-2weeks"}
        """
        flow = _session(session_id, current_caller())
        data = _body()

        if section == "expertise":
            if data.get("toggle_area"):
                flow.toggle_area(data["toggle_area"])
            if data.get("toggle_sector"):
                flow.toggle_sector(data["toggle_sector"])
        elif section == "availability":
            lead_time = LeadTime(data["lead_time"]) if data.get("lead_time") else None
            flow.set_availability(_flag(data, "is_available", True), lead_time)
        else:
            flow.update(section, **data)

        return jsonify(_session_state(flow))

    @app.route("/api/v1/onboarding/<session_id>/photo", methods=["PUT"])
    def upload_onboarding_photo(session_id: str):
        """Attach the profile photo (multipart field ``file``)."""
        flow = _session(session_id, current_caller())
        upload = request.files.get("file")
        if upload is None:
            raise ValidationError("file is required", fields=["file"])
        flow.set_photo(Attachment(upload.filename, upload.mimetype, upload.read()))
        return jsonify(_session_state(flow))

    @app.route("/api/v1/onboarding/<session_id>/credentials", methods=["POST"])
    def upload_onboarding_credential(session_id: str):
        """Attach a credential document (multipart field ``file``)."""
        flow = _session(session_id, current_caller())
        upload = request.files.get("file")
        if upload is None:
            raise ValidationError("file is required", fields=["file"])
        flow.add_credential(Attachment(upload.filename, upload.mimetype, upload.read()))
        return jsonify(_session_state(flow)), 201

    @app.route("/api/v1/onboarding/<session_id>/credentials/<int:index>", methods=["DELETE"])
    def remove_onboarding_credential(session_id: str, index: int):
        flow = _session(session_id, current_caller())
        flow.remove_credential(index)
        return jsonify(_session_state(flow))

    @app.route("/api/v1/onboarding/<session_id>/next", methods=["POST"])
    def onboarding_next(session_id: str):
        flow = _session(session_id, current_caller())
        flow.next()
        return jsonify(_session_state(flow))

    @app.route("/api/v1/onboarding/<session_id>/prev", methods=["POST"])
    def onboarding_prev(session_id: str):
        flow = _session(session_id, current_caller())
        flow.prev()
        return jsonify(_session_state(flow))

    @app.route("/api/v1/onboarding/<session_id>/submit", methods=["POST"])
    def onboarding_submit(session_id: str):
        """Persist the draft as the caller's profile."""
        caller = current_caller()
        flow = _session(session_id, caller)
        profile = flow.submit(caller)
        with sessions_lock:
            onboarding_sessions.pop(session_id, None)
        return jsonify(profile.to_dict()), 201

    # === Profiles ===

    @app.route("/api/v1/profiles/<user_id>", methods=["GET"])
    def get_profile(user_id: str):
        profile = g.profiles.get(user_id)
        if profile is None:
            raise NotFoundError(f"No profile for user {user_id}")
        return jsonify(profile.to_dict())

    @app.route("/api/v1/profiles/<user_id>", methods=["PATCH"])
    def update_profile(user_id: str):
        profile = g.profiles.update(current_caller(), user_id, **_body())
        return jsonify(profile.to_dict())

    @app.route("/api/v1/profiles/<user_id>/completion", methods=["GET"])
    def get_profile_completion(user_id: str):
        """Completion checklist and percentage."""
        return jsonify(g.profiles.completion(user_id).to_dict())

    # === Inquiries ===

    @app.route("/api/v1/inquiries", methods=["GET"])
    def list_inquiries():
        """
        List inquiries.

        Query params:
            expert_id: Inquiries addressed to an expert
            seeker_id: Inquiries sent by a seeker
            status: Filter expert inquiries by status
        """
        expert_id = request.args.get("expert_id")
        seeker_id = request.args.get("seeker_id")
        if expert_id:
            status = request.args.get("status")
            inquiries = g.inquiries.list_for_expert(
                expert_id, status=InquiryStatus(status) if status else None
            )
        elif seeker_id:
            inquiries = g.inquiries.list_for_seeker(seeker_id)
        else:
            raise ValidationError("expert_id or seeker_id is required")
        return jsonify({"inquiries": [i.to_dict() for i in inquiries]})

    @app.route("/api/v1/inquiries", methods=["POST"])
    def create_inquiry():
        """
        Open an inquiry with an expert.

        Request body:
            expert_id: Addressed expert
            project_title: Short title
            description, budget_range, timeline: (optional)
        """
        data = _body()
        _require(data, "expert_id", "project_title")
        inquiry = g.inquiries.create(
            current_caller(),
            expert_id=data["expert_id"],
            project_title=data["project_title"],
            description=data.get("description", ""),
            budget_range=data.get("budget_range", ""),
            timeline=data.get("timeline", ""),
        )
        return jsonify(inquiry.to_dict()), 201

    @app.route("/api/v1/inquiries/<inquiry_id>", methods=["GET"])
    def get_inquiry(inquiry_id: str):
        return jsonify(g.inquiries.get(inquiry_id).to_dict())

    @app.route("/api/v1/inquiries/<inquiry_id>/accept", methods=["POST"])
    def accept_inquiry(inquiry_id: str):
        return jsonify(g.inquiries.accept(current_caller(), inquiry_id).to_dict())

    @app.route("/api/v1/inquiries/<inquiry_id>/decline", methods=["POST"])
    def decline_inquiry(inquiry_id: str):
        return jsonify(g.inquiries.decline(current_caller(), inquiry_id).to_dict())

    # === Projects ===

    @app.route("/api/v1/projects", methods=["GET"])
    def list_projects():
        projects = g.workspace.list_projects(current_caller())
        return jsonify({"projects": [p.to_dict() for p in projects]})

    @app.route("/api/v1/projects", methods=["POST"])
    def create_project():
        """
        Open a project.

        Request body:
            title: Project title
            seeker_id, expert_id: Participants
            description, inquiry_id: (optional)
        """
        data = _body()
        _require(data, "title", "seeker_id", "expert_id")
        project = g.workspace.create_project(
            current_caller(),
            title=data["title"],
            seeker_id=data["seeker_id"],
            expert_id=data["expert_id"],
            description=data.get("description", ""),
            inquiry_id=data.get("inquiry_id"),
        )
        return jsonify(project.to_dict()), 201

    def _require_participant(project_id: str) -> None:
        caller = current_caller()
        if not g.workspace.get_project(project_id).is_participant(caller):
            raise AuthorizationError(f"{caller.user_id} is not part of project {project_id}")

    @app.route("/api/v1/projects/<project_id>/milestones", methods=["GET"])
    def list_milestones(project_id: str):
        _require_participant(project_id)
        caller = current_caller()
        milestones = g.milestones.list(project_id)
        return jsonify({
            "milestones": [m.to_dict() for m in milestones],
            "can_edit": g.milestones.can_edit(caller, project_id),
        })

    @app.route("/api/v1/projects/<project_id>/milestones", methods=["POST"])
    def add_milestone(project_id: str):
        data = _body()
        _require(data, "title")
        milestone = g.milestones.add(
            current_caller(),
            project_id,
            title=data["title"],
            description=data.get("description", ""),
            due_date=data.get("due_date"),
        )
        return jsonify(milestone.to_dict()), 201

    @app.route("/api/v1/milestones/<milestone_id>/toggle", methods=["POST"])
    def toggle_milestone(milestone_id: str):
        return jsonify(g.milestones.toggle_status(current_caller(), milestone_id).to_dict())

    @app.route("/api/v1/milestones/<milestone_id>/status", methods=["PUT"])
    def set_milestone_status(milestone_id: str):
        data = _body()
        _require(data, "status")
        milestone = g.milestones.set_status(
            current_caller(), milestone_id, MilestoneStatus(data["status"])
        )
        return jsonify(milestone.to_dict())

    @app.route("/api/v1/projects/<project_id>/messages", methods=["GET"])
    def list_messages(project_id: str):
        _require_participant(project_id)
        return jsonify({"messages": [m.to_dict() for m in g.workspace.messages(project_id)]})

    @app.route("/api/v1/projects/<project_id>/messages", methods=["POST"])
    def send_message(project_id: str):
        data = _body()
        message = g.workspace.send_message(current_caller(), project_id, data.get("message", ""))
        return jsonify(message.to_dict()), 201

    @app.route("/api/v1/projects/<project_id>/files", methods=["GET"])
    def list_files(project_id: str):
        _require_participant(project_id)
        return jsonify({"files": [f.to_dict() for f in g.workspace.files(project_id)]})

    @app.route("/api/v1/projects/<project_id>/files", methods=["POST"])
    def upload_file(project_id: str):
        """Upload a project file (multipart field ``file``)."""
        upload = request.files.get("file")
        if upload is None:
            raise ValidationError("file is required", fields=["file"])
        record = g.workspace.upload_file(
            current_caller(),
            project_id,
            filename=upload.filename,
            data=upload.read(),
            mime_type=upload.mimetype or "application/octet-stream",
        )
        return jsonify(record.to_dict()), 201

    # === Availability ===

    @app.route("/api/v1/experts/<expert_id>/availability", methods=["GET"])
    def get_availability(expert_id: str):
        """Weekly calendar grouped by day name."""
        week = g.calendar.week(expert_id)
        return jsonify({
            "week": {day: [s.to_dict() for s in slots] for day, slots in week.items()}
        })

    @app.route("/api/v1/availability", methods=["POST"])
    def add_availability_slot():
        data = _body()
        _require(data, "day_of_week")
        slot = g.calendar.add_slot(current_caller(), data["day_of_week"])
        return jsonify(slot.to_dict()), 201

    @app.route("/api/v1/availability/<slot_id>", methods=["PATCH"])
    def update_availability_slot(slot_id: str):
        """
        Edit a slot.

        Request body (all optional):
            is_available: Toggle the slot
            start_time, end_time: HH:MM
            engagement_type: Consultation, Mentoring, Project Work, Strategy Session
        """
        caller = current_caller()
        data = _body()
        slot = None
        if "is_available" in data:
            slot = g.calendar.toggle_available(caller, slot_id, _flag(data, "is_available"))
        if any(k in data for k in ("start_time", "end_time", "engagement_type")):
            engagement = data.get("engagement_type")
            slot = g.calendar.update_slot(
                caller,
                slot_id,
                start_time=data.get("start_time"),
                end_time=data.get("end_time"),
                engagement_type=EngagementType(engagement) if engagement else None,
            )
        if slot is None:
            raise ValidationError("Nothing to update")
        return jsonify(slot.to_dict())

    @app.route("/api/v1/availability/<slot_id>", methods=["DELETE"])
    def remove_availability_slot(slot_id: str):
        g.calendar.remove_slot(current_caller(), slot_id)
        return jsonify({"success": True})

    # === Reviews ===

    @app.route("/api/v1/experts/<expert_id>/reviews", methods=["GET"])
    def list_reviews(expert_id: str):
        reviews = g.reviews.list_for_expert(expert_id)
        return jsonify({
            "reviews": [r.to_dict() for r in reviews],
            "stats": g.reviews.stats(expert_id),
        })

    @app.route("/api/v1/reviews", methods=["POST"])
    def submit_review():
        """
        Leave a review.

        Request body:
            expert_id: Reviewed expert
            rating: 1-5
            feedback, inquiry_id: (optional)
        """
        data = _body()
        _require(data, "expert_id", "rating")
        review = g.reviews.submit(
            current_caller(),
            expert_id=data["expert_id"],
            rating=data["rating"],
            feedback=data.get("feedback"),
            inquiry_id=data.get("inquiry_id"),
        )
        return jsonify(review.to_dict()), 201

    @app.route("/api/v1/reviews/<review_id>/flag", methods=["POST"])
    def flag_review(review_id: str):
        data = request.get_json(silent=True) or {}
        item = g.reviews.flag(current_caller(), review_id, data.get("reason") or "Flagged by user")
        return jsonify(item.to_dict()), 201

    # === Saved Experts ===

    @app.route("/api/v1/saved-experts", methods=["GET"])
    def list_saved_experts():
        saved = g.saved_experts.list(current_caller())
        return jsonify({"saved_experts": [s.to_dict() for s in saved]})

    @app.route("/api/v1/saved-experts", methods=["POST"])
    def save_expert():
        """Save an expert. Request body: expert_id."""
        data = _body()
        _require(data, "expert_id")
        saved = g.saved_experts.save(current_caller(), data["expert_id"])
        return jsonify(saved.to_dict()), 201

    @app.route("/api/v1/saved-experts/<expert_id>", methods=["DELETE"])
    def remove_saved_expert(expert_id: str):
        g.saved_experts.remove(current_caller(), expert_id)
        return jsonify({"success": True})

    # === Forum ===

    @app.route("/api/v1/forum/categories", methods=["GET"])
    def list_forum_categories():
        return jsonify({"categories": [c.to_dict() for c in forum_categories(g.backend)]})

    # === Moderation ===

    @app.route("/api/v1/moderation/pending", methods=["GET"])
    def list_pending_moderation():
        """Items awaiting a decision. Query param: content_type."""
        caller = current_caller()
        if not caller.role.can_moderate:
            raise AuthorizationError(f"Role {caller.role.value} cannot view the moderation queue")
        content_type = request.args.get("content_type")
        items = g.moderation.pending(ContentType(content_type) if content_type else None)
        return jsonify({"items": [i.to_dict() for i in items]})

    @app.route("/api/v1/moderation/flag", methods=["POST"])
    def flag_content():
        """
        Flag a forum post, reply or review.

        Request body:
            content_type: review, post, reply
            content_ref: ID of the flagged content
            reason: (optional)
            content_preview: (optional)
        """
        data = _body()
        _require(data, "content_type", "content_ref")
        item = g.moderation.flag(
            current_caller(),
            ContentType(data["content_type"]),
            data["content_ref"],
            data.get("reason", ""),
            content_preview=data.get("content_preview", ""),
        )
        return jsonify(item.to_dict()), 201

    @app.route("/api/v1/moderation/<item_id>", methods=["POST"])
    def moderate_item(item_id: str):
        """Approve or remove. Request body: action (approve/remove), note (optional)."""
        data = _body()
        _require(data, "action")
        item = g.moderation.moderate(
            current_caller(), item_id, ModerationAction(data["action"]), note=data.get("note")
        )
        return jsonify(item.to_dict())

    # === AI-assisted panels ===

    @app.route("/api/v1/ai/match-experts", methods=["POST"])
    def ai_match_experts():
        data = _body()
        _require(data, "project_description")
        experts = assistant.match_experts(
            g.backend.actions, data["project_description"], data.get("search_query", "")
        )
        return jsonify({"experts": experts})

    @app.route("/api/v1/ai/prompt-suggestions", methods=["POST"])
    def ai_prompt_suggestions():
        data = _body()
        suggestions = assistant.generate_prompt_suggestions(
            g.backend.actions,
            project_type=data.get("project_type", ""),
            budget=data.get("budget", ""),
            timeline=data.get("timeline", ""),
            current_prompt=data.get("current_prompt", ""),
        )
        return jsonify({"suggestions": suggestions})

    @app.route("/api/v1/ai/enhance-prompt", methods=["POST"])
    def ai_enhance_prompt():
        data = _body()
        _require(data, "prompt")
        enhanced = assistant.enhance_prompt(
            g.backend.actions,
            data["prompt"],
            project_type=data.get("project_type", ""),
            budget=data.get("budget", ""),
            timeline=data.get("timeline", ""),
        )
        return jsonify({"enhanced_prompt": enhanced})

    @app.route("/api/v1/ai/chat", methods=["POST"])
    def ai_chat():
        caller = current_caller()
        data = _body()
        _require(data, "message")
        reply = assistant.chat_response(
            g.backend.actions,
            data["message"],
            context=data.get("context", ""),
            user_id=caller.user_id,
            history=data.get("history", []),
        )
        return jsonify({"response": reply})

    @app.route("/api/v1/ai/summarize-reviews/<expert_id>", methods=["POST"])
    def ai_summarize_reviews(expert_id: str):
        reviews = g.reviews.list_for_expert(expert_id)
        summary = assistant.summarize_reviews(g.backend.actions, expert_id, reviews)
        return jsonify({"summary": summary})

    @app.route("/api/v1/ai/summarize-thread", methods=["POST"])
    def ai_summarize_thread():
        data = _body()
        _require(data, "post_id", "content")
        summary = assistant.summarize_thread(
            g.backend.actions, data["post_id"], data["content"], data.get("replies", [])
        )
        return jsonify({"summary": summary})

    @app.route("/api/v1/ai/improve-reply", methods=["POST"])
    def ai_improve_reply():
        data = _body()
        _require(data, "content")
        return jsonify({"suggestions": assistant.improve_reply(g.backend.actions, data["content"])})

    # === Admin ===

    @app.route("/api/v1/admin/kpis", methods=["GET"])
    def admin_kpis():
        console = AdminConsole(g.backend, current_caller())
        return jsonify({"kpis": console.kpi_report(), "events": console.event_counts()})

    @app.route("/api/v1/admin/export", methods=["POST"])
    def admin_export():
        """Request body: format (csv/pdf), date_range {start, end}."""
        console = AdminConsole(g.backend, current_caller())
        data = request.get_json(silent=True) or {}
        result = console.export(data.get("format", "csv"), data.get("date_range"))
        return jsonify(result)

    return app


def main():
    """Run the API server."""
    settings = load_settings()
    configure_logging(settings.log_level)
    app = create_app(settings=settings)

    logger.info("Starting GENOVA API on port %s", settings.port)
    app.run(host="0.0.0.0", port=settings.port, debug=settings.debug)


if __name__ == "__main__":
    main()
