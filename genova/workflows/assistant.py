"""
AI-assisted panels.

Thin, stateless wrappers around the ``ai-actions`` function. Each call
builds a request dataclass, lets ActionClient validate the reply, and
unwraps the part of the payload the caller cares about.
"""

import logging
from typing import Optional

from ..backend.actions import (
    ActionClient,
    ChatResponseRequest,
    EnhancePromptRequest,
    ImproveReplyRequest,
    MatchExpertsRequest,
    PromptSuggestionsRequest,
    SummarizeReviewsRequest,
    SummarizeThreadRequest,
)
from ..models.review import Review

logger = logging.getLogger(__name__)

# Conversation turns sent along with a chat message
CHAT_HISTORY_TURNS = 5


def match_experts(
    client: ActionClient,
    project_description: str,
    search_query: str = "",
) -> list[dict]:
    """Experts ranked for a project description."""
    payload = client.invoke(MatchExpertsRequest(
        project_description=project_description,
        search_query=search_query,
    ))
    return payload.get("experts", [])


def generate_prompt_suggestions(
    client: ActionClient,
    project_type: str = "",
    budget: str = "",
    timeline: str = "",
    current_prompt: str = "",
) -> list[dict]:
    """Suggestion groups (category plus suggestions) for a project brief."""
    payload = client.invoke(PromptSuggestionsRequest(
        project_type=project_type,
        budget=budget,
        timeline=timeline,
        current_prompt=current_prompt,
    ))
    return payload.get("suggestions", [])


def enhance_prompt(
    client: ActionClient,
    prompt: str,
    project_type: str = "",
    budget: str = "",
    timeline: str = "",
) -> str:
    """Rewrite a project brief. An empty reply keeps the original prompt."""
    payload = client.invoke(EnhancePromptRequest(
        prompt=prompt,
        project_type=project_type,
        budget=budget,
        timeline=timeline,
    ))
    return payload.get("enhanced_prompt") or prompt


def chat_response(
    client: ActionClient,
    message: str,
    context: str = "",
    user_id: Optional[str] = None,
    history: Optional[list[dict]] = None,
) -> str:
    """Assistant reply to a chat message."""
    payload = client.invoke(ChatResponseRequest(
        message=message,
        context=context,
        user_id=user_id,
        conversation_history=list(history or [])[-CHAT_HISTORY_TURNS:],
    ))
    return payload.get("response", "")


def summarize_reviews(client: ActionClient, expert_id: str, reviews: list) -> dict:
    """Sentiment breakdown, strengths and themes across an expert's reviews."""
    rows = [r.to_dict() if isinstance(r, Review) else r for r in reviews]
    payload = client.invoke(SummarizeReviewsRequest(expert_id=expert_id, reviews=rows))
    return payload["summary"]


def summarize_thread(
    client: ActionClient,
    post_id: str,
    content: str,
    replies: Optional[list[str]] = None,
) -> dict:
    """Summary and key points of a forum thread."""
    payload = client.invoke(SummarizeThreadRequest(
        post_id=post_id,
        content=content,
        replies=list(replies or []),
    ))
    return payload.get("summary", {})


def improve_reply(client: ActionClient, content: str) -> list[str]:
    """Improved phrasings of a draft forum reply."""
    payload = client.invoke(ImproveReplyRequest(content=content))
    return payload.get("suggestions", [])
