"""Weekday ordering for template display and iteration.

The week start setting uses 1=Sunday ... 7=Saturday numbering. The
canonical Sunday-first list is rotated so that the configured day comes
first.
"""

from dataclasses import dataclass

from weekplan.domain.models import Weekday

DEFAULT_WEEK_START_DAY = 7  # Saturday


@dataclass(frozen=True)
class DayInfo:
    """A weekday as presented to callers."""

    name: str
    key: str

    @property
    def weekday(self) -> Weekday:
        return Weekday[self.key.upper()]


_SUNDAY_FIRST = [
    DayInfo("Sunday", "sunday"),
    DayInfo("Monday", "monday"),
    DayInfo("Tuesday", "tuesday"),
    DayInfo("Wednesday", "wednesday"),
    DayInfo("Thursday", "thursday"),
    DayInfo("Friday", "friday"),
    DayInfo("Saturday", "saturday"),
]

_SATURDAY_FIRST = _SUNDAY_FIRST[6:] + _SUNDAY_FIRST[:6]


def is_valid_week_start_day(week_start_day) -> bool:
    return (
        isinstance(week_start_day, int)
        and not isinstance(week_start_day, bool)
        and 1 <= week_start_day <= 7
    )


def ordered_weekdays(week_start_day: int) -> list[DayInfo]:
    """Order the seven weekdays starting from ``week_start_day``.

    Args:
        week_start_day: 1=Sunday ... 7=Saturday.

    Returns:
        Seven DayInfo items. Out-of-range input falls back to the
        Saturday-first order.
    """
    if not is_valid_week_start_day(week_start_day):
        return list(_SATURDAY_FIRST)
    offset = week_start_day - 1
    return _SUNDAY_FIRST[offset:] + _SUNDAY_FIRST[:offset]


def ordered_day_keys(week_start_day: int) -> list[str]:
    return [d.key for d in ordered_weekdays(week_start_day)]


def start_day_name(week_start_day: int) -> str:
    """Display name of a week start setting, or ``"Unknown"``."""
    if not is_valid_week_start_day(week_start_day):
        return "Unknown"
    return _SUNDAY_FIRST[week_start_day - 1].name


def weekday_for_start_day(week_start_day: int) -> Weekday:
    """Map the 1=Sunday numbering onto Weekday (Saturday when invalid)."""
    return ordered_weekdays(week_start_day)[0].weekday
