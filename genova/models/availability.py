"""Weekly availability slots."""

import re
from dataclasses import dataclass, field
from enum import Enum

from ..errors import ValidationError
from .common import new_id

DAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "17:00"

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class EngagementType(Enum):
    """Kinds of engagement a slot is offered for."""

    CONSULTATION = "Consultation"
    MENTORING = "Mentoring"
    PROJECT_WORK = "Project Work"
    STRATEGY_SESSION = "Strategy Session"


def validate_day(day: int) -> int:
    """Check a day-of-week index (0 = Sunday)."""
    if not isinstance(day, int) or isinstance(day, bool) or not 0 <= day <= 6:
        raise ValidationError(f"day_of_week must be 0-6, got {day!r}", fields=["day_of_week"])
    return day


def validate_time(value: str, field_name: str = "time") -> str:
    """Check an HH:MM 24-hour time string."""
    if not isinstance(value, str) or not _TIME_RE.match(value):
        raise ValidationError(f"{field_name} must be HH:MM, got {value!r}", fields=[field_name])
    return value


@dataclass
class AvailabilitySlot:
    """A time range on one weekday with its own availability toggle."""

    id: str = field(default_factory=new_id)
    expert_id: str = ""
    day_of_week: int = 0
    start_time: str = DEFAULT_START_TIME
    end_time: str = DEFAULT_END_TIME
    engagement_type: EngagementType = EngagementType.CONSULTATION
    is_available: bool = True

    @property
    def day_name(self) -> str:
        return DAYS[self.day_of_week]

    @property
    def label(self) -> str:
        return f"{self.start_time} - {self.end_time}"

    def to_dict(self) -> dict:
        """Serialize slot to dictionary."""
        return {
            "id": self.id,
            "expert_id": self.expert_id,
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "engagement_type": self.engagement_type.value,
            "is_available": self.is_available,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AvailabilitySlot":
        """Deserialize slot from dictionary."""
        return cls(
            id=data.get("id", new_id()),
            expert_id=data.get("expert_id", ""),
            day_of_week=data.get("day_of_week", 0),
            start_time=data.get("start_time", DEFAULT_START_TIME),
            end_time=data.get("end_time", DEFAULT_END_TIME),
            engagement_type=EngagementType(data.get("engagement_type", "Consultation")),
            is_available=data.get("is_available", True),
        )
