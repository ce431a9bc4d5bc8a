"""Tests for weekday ordering."""

import pytest

from weekplan.domain.models import Weekday
from weekplan.domain.weekdays import (
    ordered_day_keys,
    ordered_weekdays,
    start_day_name,
    weekday_for_start_day,
)

SUNDAY_FIRST = [
    "sunday",
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
]


class TestOrderedWeekdays:
    """Tests for ordered_weekdays."""

    @pytest.mark.parametrize("start_day", range(1, 8))
    def test_is_rotation_starting_on_start_day(self, start_day):
        """Every valid start day yields all seven keys beginning with that day."""
        keys = ordered_day_keys(start_day)
        assert sorted(keys) == sorted(SUNDAY_FIRST)
        assert keys[0] == SUNDAY_FIRST[start_day - 1]

    def test_monday_start(self):
        """Monday start ends on Sunday."""
        days = ordered_weekdays(2)
        assert [d.name for d in days][:2] == ["Monday", "Tuesday"]
        assert days[-1].name == "Sunday"

    @pytest.mark.parametrize("start_day", [0, 8, -1, "3", None, 2.0])
    def test_invalid_start_day_is_saturday_first(self, start_day):
        """Out-of-range input falls back to the Saturday-first order."""
        keys = ordered_day_keys(start_day)
        assert keys[0] == "saturday"
        assert keys[1] == "sunday"
        assert len(keys) == 7

    def test_day_info_maps_to_weekday(self):
        """DayInfo exposes the matching Weekday."""
        assert ordered_weekdays(1)[0].weekday == Weekday.SUNDAY


class TestStartDayName:
    """Tests for start_day_name and weekday_for_start_day."""

    def test_names(self):
        """Start days map to names; invalid ones to Unknown."""
        assert start_day_name(1) == "Sunday"
        assert start_day_name(7) == "Saturday"
        assert start_day_name(0) == "Unknown"

    def test_weekday_for_start_day(self):
        """The 1=Sunday numbering maps onto ISO weekdays."""
        assert weekday_for_start_day(2) == Weekday.MONDAY
        assert weekday_for_start_day(1) == Weekday.SUNDAY
        assert weekday_for_start_day(42) == Weekday.SATURDAY
