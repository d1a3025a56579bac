"""Admin console: KPI reports and analytics exports."""

import logging
from typing import Optional

from ..backend import Backend
from ..backend.actions import AnalyticsExportRequest, KpiReportRequest
from ..errors import BackendError, ValidationError
from ..models.identity import CallerIdentity, Role

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "pdf")


class AdminConsole:
    """Platform-wide reporting, restricted to admins."""

    def __init__(self, backend: Backend, caller: CallerIdentity):
        caller.require_role(Role.ADMIN)
        self.backend = backend
        self.caller = caller

    def kpi_report(self) -> dict:
        """Revenue, active experts, inquiry and review totals."""
        payload = self.backend.actions.invoke(KpiReportRequest())
        if not payload["success"]:
            raise BackendError("KPI report generation failed")
        return payload.get("data", {})

    def export(self, format: str = "csv", date_range: Optional[dict] = None) -> dict:
        """Request an analytics export; returns a download URL or inline data."""
        if format not in EXPORT_FORMATS:
            raise ValidationError(
                f"Unsupported export format: {format} (use {', '.join(EXPORT_FORMATS)})",
                fields=["format"],
            )
        payload = self.backend.actions.invoke(AnalyticsExportRequest(
            format=format,
            date_range=date_range or {},
            user_id=self.caller.user_id,
        ))
        logger.info("Analytics export (%s) requested by %s", format, self.caller.user_id)
        return payload

    def event_counts(self) -> dict[str, int]:
        """Locally recorded analytics events, counted by type."""
        counts: dict[str, int] = {}
        for row in self.backend.store.select("analytics_events"):
            counts[row["event_type"]] = counts.get(row["event_type"], 0) + 1
        return counts
