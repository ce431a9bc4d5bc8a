"""Domain models for the weekly template engine.

This module contains the core data structures shared by every part of the
engine: times of day, weekdays, record identities, template rows, the
per-day schedule templates derived from them, and the materialized schedule
entries produced by expansion.
"""

import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum, IntEnum
from typing import Optional, Union

DEFAULT_LUNCH_MINUTES = 30
MAX_LUNCH_MINUTES = 120
ZERO_TOTAL = "0h:00m"

_WEEK_RE = re.compile(r"Week\s+(\d+)", re.IGNORECASE)
_SHIFT_RE = re.compile(r"Shift\s+(\d+)", re.IGNORECASE)


class Weekday(IntEnum):
    """Day of the week in ISO numbering (Monday=1 ... Sunday=7).

    This is also the day numbering used by the record store when template
    tuples are grouped and looked up.
    """

    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @classmethod
    def from_date(cls, d: date) -> "Weekday":
        """Weekday of a calendar date."""
        return cls(d.isoweekday())

    @property
    def key(self) -> str:
        """Lower-case key, e.g. ``"monday"``."""
        return self.name.lower()

    @property
    def title(self) -> str:
        """Display name, e.g. ``"Monday"``."""
        return self.name.capitalize()


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """A wall-clock time stored as two small integers.

    Times are never kept as timestamps so nothing can reinterpret them
    through a time zone.

    Attributes:
        hours: Hour of day, 0-23.
        minutes: Minute of hour, 0-59.
    """

    hours: int = 0
    minutes: int = 0

    def __post_init__(self):
        if not 0 <= self.hours <= 23:
            raise ValueError(f"hours must be in 0..23, got {self.hours}")
        if not 0 <= self.minutes <= 59:
            raise ValueError(f"minutes must be in 0..59, got {self.minutes}")

    @classmethod
    def zero(cls) -> "TimeOfDay":
        return cls(0, 0)

    @classmethod
    def from_string(cls, text: str) -> "TimeOfDay":
        """Parse ``"HH:MM"``.

        Raises:
            ValueError: If the text is not a valid time.
        """
        parts = text.strip().split(":")
        if len(parts) != 2 or not all(p.strip().isdigit() for p in parts):
            raise ValueError(f"invalid time string: {text!r}")
        return cls(int(parts[0]), int(parts[1]))

    @property
    def total_minutes(self) -> int:
        """Minutes from midnight."""
        return self.hours * 60 + self.minutes

    @property
    def is_zero(self) -> bool:
        return self.hours == 0 and self.minutes == 0

    def __str__(self) -> str:
        return f"{self.hours:02d}:{self.minutes:02d}"


@dataclass(frozen=True)
class DayHours:
    """Start/end pair for one weekday of a template row."""

    start: TimeOfDay = field(default_factory=TimeOfDay.zero)
    end: TimeOfDay = field(default_factory=TimeOfDay.zero)

    @property
    def is_zero(self) -> bool:
        """True for a non-working day (00:00-00:00)."""
        return self.start.is_zero and self.end.is_zero


def empty_week() -> dict[Weekday, DayHours]:
    """All seven weekdays set to 00:00-00:00."""
    return {day: DayHours() for day in Weekday}


@dataclass(frozen=True)
class PersistedId:
    """Identity of a row the record store has assigned an id to."""

    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class PendingId:
    """Local placeholder identity for a row not yet created in the store."""

    token: str

    PREFIX = "new_"

    @classmethod
    def new(cls) -> "PendingId":
        return cls(f"{cls.PREFIX}{uuid.uuid4().hex[:12]}")

    def __str__(self) -> str:
        return self.token


RecordId = Union[PersistedId, PendingId]


def parse_record_id(raw: Union[int, str, PersistedId, PendingId]) -> RecordId:
    """Turn a raw id (int, digit string or ``new_`` token) into a RecordId.

    Raises:
        ValueError: If the value is neither numeric nor a pending token.
    """
    if isinstance(raw, (PersistedId, PendingId)):
        return raw
    if isinstance(raw, bool):
        raise ValueError(f"invalid record id: {raw!r}")
    if isinstance(raw, int):
        return PersistedId(raw)
    text = str(raw).strip()
    if text.startswith(PendingId.PREFIX):
        return PendingId(text)
    if text.isdigit():
        return PersistedId(int(text))
    raise ValueError(f"invalid record id: {raw!r}")


def is_pending(record_id: RecordId) -> bool:
    return isinstance(record_id, PendingId)


def extract_week_number(display_name: Optional[str], default: int = 1) -> int:
    """Parse the week number out of a ``"Week <n>"`` display name.

    Used for legacy records that carry no week number field.
    """
    if not display_name:
        return default
    match = _WEEK_RE.search(display_name)
    return int(match.group(1)) if match else default


def extract_shift_number(display_name: Optional[str], default: int = 1) -> int:
    """Parse the shift number out of a ``"Week <n> Shift <s>"`` display name."""
    if not display_name:
        return default
    match = _SHIFT_RE.search(display_name)
    return int(match.group(1)) if match else default


def build_display_name(week_number: int, shift_number: int) -> str:
    name = f"Week {week_number}"
    if shift_number > 1:
        name += f" Shift {shift_number}"
    return name


@dataclass(frozen=True)
class TemplateRow:
    """One persisted weekly-template record: a (week, shift) row.

    Rows are plain values. Every change goes through ``with_changes`` which
    returns a new row, so callers holding an older collection keep a
    consistent snapshot.

    Attributes:
        id: Persisted or pending record identity.
        week_number: 1-based week of the template cycle.
        shift_number: 1-based shift ordinal within the week.
        days: Start/end pair for each of the seven weekdays.
        lunch_minutes: Lunch duration subtracted from each working day.
        contract_number: Contract ordinal stored with the row.
        contract_reference: Id of the contract/template the row belongs to.
        creator_id: Identity of the manager who created the row.
        deleted: Soft-delete flag (stored as 0/1).
        total_hours: Worked time of this shift row, ``"<H>h:<MM>m"``.
        displayed_total_hours: Aggregate for the whole week, set only on the
            first row of each template.
    """

    id: RecordId
    week_number: int = 1
    shift_number: int = 1
    days: dict[Weekday, DayHours] = field(default_factory=empty_week)
    lunch_minutes: int = DEFAULT_LUNCH_MINUTES
    contract_number: int = 1
    contract_reference: str = ""
    creator_id: Optional[str] = None
    deleted: bool = False
    total_hours: str = ZERO_TOTAL
    displayed_total_hours: Optional[str] = None

    def __post_init__(self):
        if self.week_number < 1:
            raise ValueError(f"week_number must be >= 1, got {self.week_number}")
        if self.shift_number < 1:
            raise ValueError(f"shift_number must be >= 1, got {self.shift_number}")
        # Fill in missing weekdays so every row always has all seven.
        if set(self.days) != set(Weekday):
            full = empty_week()
            full.update(self.days)
            object.__setattr__(self, "days", full)

    @classmethod
    def new(
        cls,
        week_number: int,
        shift_number: int,
        contract_reference: str = "",
        creator_id: Optional[str] = None,
    ) -> "TemplateRow":
        """Provision a fresh row with a pending id and zeroed times."""
        return cls(
            id=PendingId.new(),
            week_number=week_number,
            shift_number=shift_number,
            lunch_minutes=DEFAULT_LUNCH_MINUTES,
            contract_number=1,
            contract_reference=contract_reference,
            creator_id=creator_id,
        )

    @property
    def display_name(self) -> str:
        """``"Week {n}"`` or ``"Week {n} Shift {s}"``."""
        return build_display_name(self.week_number, self.shift_number)

    @property
    def is_pending(self) -> bool:
        return is_pending(self.id)

    @property
    def deleted_flag(self) -> int:
        """Deleted state as the store encodes it."""
        return 1 if self.deleted else 0

    def day(self, weekday: Weekday) -> DayHours:
        return self.days[weekday]

    def with_day(self, weekday: Weekday, hours: DayHours) -> "TemplateRow":
        days = dict(self.days)
        days[weekday] = hours
        return replace(self, days=days)

    def with_changes(self, **changes) -> "TemplateRow":
        return replace(self, **changes)


@dataclass(frozen=True)
class ScheduleTemplate:
    """One (week, shift, weekday) tuple derived from a TemplateRow.

    Recomputed on every expansion pass and never persisted.
    """

    row_id: RecordId
    contract_reference: str
    week_number: int
    shift_number: int
    weekday: Weekday
    start: TimeOfDay
    end: TimeOfDay
    lunch_minutes: int

    @property
    def start_time(self) -> str:
        return str(self.start)

    @property
    def end_time(self) -> str:
        return str(self.end)

    @property
    def group_key(self) -> str:
        """Composite ``"{week}-{weekday}-{shift}"`` grouping key."""
        return f"{self.week_number}-{int(self.weekday)}-{self.shift_number}"

    @property
    def is_zero(self) -> bool:
        return self.start.is_zero and self.end.is_zero


@dataclass(frozen=True)
class ScheduleEntry:
    """A concrete, dated schedule record materialized from a template."""

    date: date
    weekday: Weekday
    week_number: int
    calendar_week: int
    shift_number: int
    start: TimeOfDay
    end: TimeOfDay
    lunch_minutes: int
    contract_reference: str = ""
    is_holiday: bool = False
    leave_type: Optional[str] = None
    template_title: str = ""

    @property
    def start_time(self) -> str:
        return str(self.start)

    @property
    def end_time(self) -> str:
        return str(self.end)

    @property
    def title(self) -> str:
        return (
            f"Template={self.contract_reference} "
            f"Week={self.week_number} Shift={self.shift_number}"
        )

    def to_record(self) -> dict:
        """Wire payload for a daily schedule record.

        The date is written as midnight UTC and times as numeric pairs.
        """
        record = {
            "Title": self.title,
            "Date": f"{self.date.isoformat()}T00:00:00Z",
            "ShiftDate1Hours": self.start.hours,
            "ShiftDate1Minutes": self.start.minutes,
            "ShiftDate2Hours": self.end.hours,
            "ShiftDate2Minutes": self.end.minutes,
            "TimeForLunch": self.lunch_minutes,
            "Contract": self.shift_number,
            "Holiday": 1 if self.is_holiday else 0,
            "WeeklyTimeTableID": self.contract_reference,
            "WeeklyTimeTableTitle": self.template_title,
            "Checked": 0,
            "Deleted": 0,
        }
        if self.leave_type is not None:
            record["TypeOfLeaveID"] = self.leave_type
        return record


@dataclass(frozen=True)
class WeekAnalysis:
    """Summary of the weeks present in a contract's rows."""

    week_numbers: list[int] = field(default_factory=list)
    max_week_number: int = 0
    fully_deleted_weeks: list[int] = field(default_factory=list)

    @property
    def has_fully_deleted_weeks(self) -> bool:
        return len(self.fully_deleted_weeks) > 0


@dataclass(frozen=True)
class AddWeekDecision:
    """Outcome of checking whether a new week may be provisioned."""

    can_add: bool
    week_number_to_add: int
    message: str
    fully_deleted_weeks: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class AddShiftDecision:
    """Outcome of checking whether a new shift may be added to a week."""

    can_add: bool
    week_number: int
    shift_number_to_add: int
    message: str
    blocking_shifts: list[int] = field(default_factory=list)


class MessageLevel(Enum):
    """Severity of a status message handed back to the caller."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class StatusMessage:
    level: MessageLevel
    text: str
