"""
Named server actions.

Each action is a tagged request dataclass carrying the function it is
served by, its ``action`` discriminator, and a JSON schema for the
response. ActionClient POSTs the request body and validates the reply at
the boundary, so callers only ever see well-formed payloads.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Optional

import jsonschema
import requests

from ..errors import BackendError

logger = logging.getLogger(__name__)

_STRING_LIST = {"type": "array", "items": {"type": "string"}}


@dataclass
class ActionRequest:
    """Base for all named action requests."""

    function: ClassVar[str] = ""
    action: ClassVar[str] = ""
    response_schema: ClassVar[dict] = {"type": "object"}

    def to_body(self) -> dict:
        """JSON body sent to the function, including the action discriminator."""
        body = {"action": self.action}
        body.update(asdict(self))
        return body


# === ai-actions ===

@dataclass
class ChatResponseRequest(ActionRequest):
    function: ClassVar[str] = "ai-actions"
    action: ClassVar[str] = "chat_response"
    response_schema: ClassVar[dict] = {
        "type": "object",
        "properties": {"response": {"type": "string"}},
    }

    message: str = ""
    context: str = ""
    user_id: Optional[str] = None
    conversation_history: list[dict] = field(default_factory=list)


@dataclass
class MatchExpertsRequest(ActionRequest):
    function: ClassVar[str] = "ai-actions"
    action: ClassVar[str] = "match_experts"
    response_schema: ClassVar[dict] = {
        "type": "object",
        "properties": {
            "experts": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["id", "name"],
                    "properties": {
                        "id": {"type": "string"},
                        "name": {"type": "string"},
                        "expertise": _STRING_LIST,
                        "location": {"type": "string"},
                        "rating": {"type": "number"},
                        "hourlyRate": {"type": "number"},
                        "matchScore": {"type": "number"},
                        "availability": {"type": "string"},
                    },
                },
            },
        },
    }

    project_description: str = ""
    search_query: str = ""


@dataclass
class PromptSuggestionsRequest(ActionRequest):
    function: ClassVar[str] = "ai-actions"
    action: ClassVar[str] = "generate_prompt_suggestions"
    response_schema: ClassVar[dict] = {
        "type": "object",
        "properties": {
            "suggestions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["category", "suggestions"],
                    "properties": {
                        "category": {"type": "string"},
                        "suggestions": _STRING_LIST,
                    },
                },
            },
        },
    }

    project_type: str = ""
    budget: str = ""
    timeline: str = ""
    current_prompt: str = ""


@dataclass
class EnhancePromptRequest(ActionRequest):
    function: ClassVar[str] = "ai-actions"
    action: ClassVar[str] = "enhance_prompt"
    response_schema: ClassVar[dict] = {
        "type": "object",
        "properties": {"enhanced_prompt": {"type": "string"}},
    }

    prompt: str = ""
    project_type: str = ""
    budget: str = ""
    timeline: str = ""


@dataclass
class SummarizeReviewsRequest(ActionRequest):
    function: ClassVar[str] = "ai-actions"
    action: ClassVar[str] = "summarize_reviews"
    response_schema: ClassVar[dict] = {
        "type": "object",
        "required": ["summary"],
        "properties": {
            "summary": {
                "type": "object",
                "properties": {
                    "overall_rating": {"type": "number"},
                    "total_reviews": {"type": "integer"},
                    "sentiment_breakdown": {
                        "type": "object",
                        "properties": {
                            "positive": {"type": "number"},
                            "neutral": {"type": "number"},
                            "negative": {"type": "number"},
                        },
                    },
                    "key_strengths": _STRING_LIST,
                    "areas_for_improvement": _STRING_LIST,
                    "common_themes": _STRING_LIST,
                    "summary_text": {"type": "string"},
                },
            },
        },
    }

    expert_id: str = ""
    reviews: list[dict] = field(default_factory=list)


@dataclass
class SummarizeThreadRequest(ActionRequest):
    function: ClassVar[str] = "ai-actions"
    action: ClassVar[str] = "summarize_thread"
    response_schema: ClassVar[dict] = {
        "type": "object",
        "properties": {
            "summary": {
                "type": "object",
                "properties": {
                    "summary": {"type": "string"},
                    "key_points": _STRING_LIST,
                    "sentiment_score": {"type": "number"},
                    "participant_count": {"type": "integer"},
                    "main_topics": _STRING_LIST,
                },
            },
        },
    }

    post_id: str = ""
    content: str = ""
    replies: list[str] = field(default_factory=list)


@dataclass
class ImproveReplyRequest(ActionRequest):
    function: ClassVar[str] = "ai-actions"
    action: ClassVar[str] = "improve_reply"
    response_schema: ClassVar[dict] = {
        "type": "object",
        "properties": {"suggestions": _STRING_LIST},
    }

    content: str = ""
    context: str = "forum_reply"


# === forum-actions ===

@dataclass
class ModerateContentRequest(ActionRequest):
    function: ClassVar[str] = "forum-actions"
    action: ClassVar[str] = "moderate_content"
    response_schema: ClassVar[dict] = {
        "type": "object",
        "properties": {"success": {"type": "boolean"}},
    }

    content_id: str = ""
    moderation_action: str = ""


# === admin-actions / analytics-export ===

@dataclass
class KpiReportRequest(ActionRequest):
    function: ClassVar[str] = "admin-actions"
    action: ClassVar[str] = "generate_kpi_report"
    response_schema: ClassVar[dict] = {
        "type": "object",
        "required": ["success"],
        "properties": {
            "success": {"type": "boolean"},
            "data": {
                "type": "object",
                "properties": {
                    "totalRevenue": {"type": "number"},
                    "activeExperts": {"type": "integer"},
                    "totalInquiries": {"type": "integer"},
                    "totalReviews": {"type": "integer"},
                    "growthRate": {"type": "number"},
                },
            },
        },
    }


@dataclass
class AnalyticsExportRequest(ActionRequest):
    function: ClassVar[str] = "analytics-export"
    action: ClassVar[str] = "export"
    response_schema: ClassVar[dict] = {
        "type": "object",
        "properties": {
            "downloadUrl": {"type": "string"},
            "data": {"type": "string"},
        },
    }

    export_type: str = "admin_report"
    format: str = "csv"
    date_range: dict = field(default_factory=dict)
    user_id: Optional[str] = None

    def to_body(self) -> dict:
        """The export function takes camelCase keys."""
        return {
            "action": self.action,
            "type": self.export_type,
            "format": self.format,
            "dateRange": self.date_range,
            "userId": self.user_id,
        }


class ActionClient:
    """Invokes named server actions over HTTP."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Functions endpoint, e.g. https://<project>/functions/v1
            api_key: Bearer token sent with every call
            timeout: Per-request timeout in seconds
            session: Optional requests session to reuse connections
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def invoke(self, request: ActionRequest) -> dict[str, Any]:
        """Call the function serving ``request`` and return the validated response."""
        url = f"{self.base_url}/{request.function}"
        label = f"{request.function}:{request.action}"

        try:
            response = self.session.post(
                url,
                json=request.to_body(),
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.warning("Action %s timed out after %ss", label, self.timeout)
            raise BackendError(f"Action {label} timed out", cause=e) from e
        except requests.RequestException as e:
            logger.error("Action %s failed: %s", label, e)
            raise BackendError(f"Action {label} failed", cause=e) from e

        if not 200 <= response.status_code < 300:
            logger.error("Action %s returned HTTP %s", label, response.status_code)
            raise BackendError(f"Action {label} returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise BackendError(f"Action {label} returned non-JSON body", cause=e) from e

        if isinstance(payload, dict) and payload.get("error"):
            raise BackendError(f"Action {label} error: {payload['error']}")

        try:
            jsonschema.validate(payload, request.response_schema)
        except jsonschema.ValidationError as e:
            logger.error("Action %s returned malformed payload: %s", label, e.message)
            raise BackendError(f"Action {label} returned malformed payload", cause=e) from e

        logger.debug("Action %s succeeded", label)
        return payload
