"""Tests for the weekly availability calendar."""
import pytest

from genova.errors import AuthorizationError, NotFoundError, ValidationError
from genova.models.availability import EngagementType, validate_time
from genova.workflows import AvailabilityCalendar


@pytest.fixture
def calendar(backend):
    return AvailabilityCalendar(backend)


class TestAddSlot:
    def test_default_slot(self, calendar, expert):
        slot = calendar.add_slot(expert, 1)
        assert slot.day_name == "Monday"
        assert (slot.start_time, slot.end_time) == ("09:00", "17:00")
        assert slot.engagement_type == EngagementType.CONSULTATION
        assert slot.is_available is True

    @pytest.mark.parametrize("day", [-1, 7, True, "1"])
    def test_day_out_of_range(self, calendar, expert, day):
        with pytest.raises(ValidationError):
            calendar.add_slot(expert, day)

    def test_seekers_have_no_calendar(self, calendar, seeker):
        with pytest.raises(AuthorizationError):
            calendar.add_slot(seeker, 1)


class TestEditSlots:
    @pytest.fixture
    def slot(self, calendar, expert):
        return calendar.add_slot(expert, 2)

    def test_toggle_keeps_times(self, calendar, slot, expert):
        toggled = calendar.toggle_available(expert, slot.id, False)
        assert toggled.is_available is False
        assert (toggled.start_time, toggled.end_time) == ("09:00", "17:00")

    def test_remove_only_that_slot(self, calendar, slot, expert):
        keep = calendar.add_slot(expert, 2)
        calendar.remove_slot(expert, slot.id)
        assert [s.id for s in calendar.slots_for_day(expert.user_id, 2)] == [keep.id]

    def test_remove_missing_slot(self, calendar, expert):
        with pytest.raises(NotFoundError):
            calendar.remove_slot(expert, "missing")

    def test_other_expert_cannot_edit(self, calendar, slot, other_expert):
        with pytest.raises(AuthorizationError):
            calendar.toggle_available(other_expert, slot.id, False)
        with pytest.raises(AuthorizationError):
            calendar.remove_slot(other_expert, slot.id)

    def test_update_times_and_type(self, calendar, slot, expert):
        updated = calendar.update_slot(
            expert, slot.id, start_time="10:30", end_time="12:00",
            engagement_type=EngagementType.MENTORING,
        )
        assert updated.label == "10:30 - 12:00"
        assert updated.engagement_type == EngagementType.MENTORING

    def test_start_must_precede_end(self, calendar, slot, expert):
        with pytest.raises(ValidationError):
            calendar.update_slot(expert, slot.id, start_time="18:00")
        assert calendar.slots_for_day(expert.user_id, 2)[0].start_time == "09:00"

    def test_bad_time_format(self, calendar, slot, expert):
        with pytest.raises(ValidationError):
            calendar.update_slot(expert, slot.id, end_time="5pm")


class TestCalendarViews:
    def test_slots_sorted_by_start(self, calendar, expert):
        late = calendar.add_slot(expert, 3)
        early = calendar.add_slot(expert, 3)
        calendar.update_slot(expert, late.id, start_time="14:00", end_time="16:00")
        calendar.update_slot(expert, early.id, start_time="08:00", end_time="10:00")
        assert [s.id for s in calendar.slots_for_day(expert.user_id, 3)] == [early.id, late.id]

    def test_overlapping_slots_allowed(self, calendar, expert):
        calendar.add_slot(expert, 4)
        calendar.add_slot(expert, 4)
        assert len(calendar.slots_for_day(expert.user_id, 4)) == 2

    def test_week_has_every_day(self, calendar, expert, other_expert):
        calendar.add_slot(expert, 0)
        calendar.add_slot(other_expert, 0)
        week = calendar.week(expert.user_id)
        assert list(week)[0] == "Sunday"
        assert len(week) == 7
        assert len(week["Sunday"]) == 1
        assert week["Monday"] == []


class TestValidateTime:
    @pytest.mark.parametrize("value", ["00:00", "09:05", "23:59"])
    def test_valid(self, value):
        assert validate_time(value) == value

    @pytest.mark.parametrize("value", ["24:00", "9:00", "12:60", "", None])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_time(value)
