"""Timestamp and id helpers shared by the models."""

import uuid
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def from_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
