"""Weekly availability calendar editor for experts."""

import logging
from typing import Optional

from ..backend import Backend
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models.availability import (
    DAYS,
    AvailabilitySlot,
    EngagementType,
    validate_day,
    validate_time,
)
from ..models.identity import CallerIdentity, Role

logger = logging.getLogger(__name__)

TABLE = "availability"


class AvailabilityCalendar:
    """
    Adds, edits, toggles and removes an expert's weekly time slots.

    Slots may overlap; within a day they are always returned sorted by
    start time.
    """

    def __init__(self, backend: Backend):
        self.backend = backend
        self.store = backend.store

    def _owned_slot(self, caller: CallerIdentity, slot_id: str) -> AvailabilitySlot:
        row = self.store.get(TABLE, slot_id)
        if row is None:
            raise NotFoundError(f"Availability slot not found: {slot_id}")
        slot = AvailabilitySlot.from_dict(row)
        if slot.expert_id != caller.user_id and not caller.is_admin:
            raise AuthorizationError("Slots can only be changed by the expert who owns them")
        return slot

    def slots(self, expert_id: str) -> list[AvailabilitySlot]:
        """All slots of an expert ordered by day, then start time."""
        rows = self.store.select(
            TABLE, {"expert_id": expert_id}, order_by=["day_of_week", "start_time"]
        )
        return [AvailabilitySlot.from_dict(r) for r in rows]

    def slots_for_day(self, expert_id: str, day: int) -> list[AvailabilitySlot]:
        """Slots on one weekday, sorted by start time."""
        validate_day(day)
        return [s for s in self.slots(expert_id) if s.day_of_week == day]

    def week(self, expert_id: str) -> dict[str, list[AvailabilitySlot]]:
        """Slots grouped under every weekday name, Sunday first."""
        grouped = {name: [] for name in DAYS}
        for slot in self.slots(expert_id):
            grouped[slot.day_name].append(slot)
        return grouped

    def add_slot(self, caller: CallerIdentity, day: int) -> AvailabilitySlot:
        """Add a default 09:00-17:00 consultation slot on ``day``."""
        caller.require_role(Role.EXPERT)
        slot = AvailabilitySlot(expert_id=caller.user_id, day_of_week=validate_day(day))
        self.store.insert(TABLE, slot.to_dict())
        logger.info("Slot %s added on %s for %s", slot.id, slot.day_name, caller.user_id)
        return slot

    def toggle_available(
        self,
        caller: CallerIdentity,
        slot_id: str,
        value: bool,
    ) -> AvailabilitySlot:
        """Set a slot's availability flag; time bounds are left alone."""
        self._owned_slot(caller, slot_id)
        row = self.store.update(TABLE, slot_id, {"is_available": bool(value)})
        return AvailabilitySlot.from_dict(row)

    def update_slot(
        self,
        caller: CallerIdentity,
        slot_id: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        engagement_type: Optional[EngagementType] = None,
    ) -> AvailabilitySlot:
        """Change a slot's time range or engagement type. Start must precede end."""
        slot = self._owned_slot(caller, slot_id)

        start = validate_time(start_time, "start_time") if start_time is not None else slot.start_time
        end = validate_time(end_time, "end_time") if end_time is not None else slot.end_time
        # Zero-padded HH:MM compares correctly as text
        if start >= end:
            raise ValidationError(
                f"start_time {start} must be before end_time {end}",
                fields=["start_time", "end_time"],
            )

        changes = {"start_time": start, "end_time": end}
        if engagement_type is not None:
            changes["engagement_type"] = engagement_type.value

        row = self.store.update(TABLE, slot_id, changes)
        return AvailabilitySlot.from_dict(row)

    def remove_slot(self, caller: CallerIdentity, slot_id: str) -> None:
        """Delete exactly one slot."""
        self._owned_slot(caller, slot_id)
        self.store.delete(TABLE, slot_id)
        logger.info("Slot %s removed by %s", slot_id, caller.user_id)
