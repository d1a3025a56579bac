"""Fire-and-forget product analytics events."""

import logging
import uuid
from typing import Optional

from ..backend.store import RecordStore
from ..models.common import to_iso, utcnow

logger = logging.getLogger(__name__)


class AnalyticsTracker:
    """
    Records product events to the ``analytics_events`` table.

    Tracking never raises: a failed insert is logged and dropped so that
    callers (wizard navigation, page views) are not blocked by it.
    """

    def __init__(
        self,
        store: RecordStore,
        session_id: Optional[str] = None,
        user_agent: str = "genova-python",
    ):
        self.store = store
        self.session_id = session_id or uuid.uuid4().hex[:13]
        self.user_agent = user_agent

    def track(
        self,
        event_type: str,
        properties: Optional[dict] = None,
        page_url: Optional[str] = None,
    ) -> Optional[dict]:
        """Record an event. Returns the stored row, or None if tracking failed."""
        try:
            return self.store.insert("analytics_events", {
                "event_type": event_type,
                "session_id": self.session_id,
                "properties": properties or {},
                "page_url": page_url,
                "user_agent": self.user_agent,
                "created_at": to_iso(utcnow()),
            })
        except Exception:
            logger.warning("Analytics tracking failed for %s", event_type, exc_info=True)
            return None

    def track_page_view(self, page: str, page_url: Optional[str] = None) -> Optional[dict]:
        return self.track("page_view", {"page": page}, page_url=page_url)

    def track_signup(self, role: str) -> Optional[dict]:
        return self.track("signup_started", {"role": role})

    def track_conversion(self, conversion_type: str, value: Optional[float] = None) -> Optional[dict]:
        return self.track("conversion", {"conversion_type": conversion_type, "value": value})

    def track_engagement(self, action: str, target: Optional[str] = None) -> Optional[dict]:
        return self.track("engagement", {"action": action, "target": target})
