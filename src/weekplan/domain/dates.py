"""Calendar date and time-of-day normalization.

Every date that enters the engine is reduced to a civil day (a plain
``datetime.date``) so that two values for the same day compare equal no
matter which time zone produced them. When a day has to be written to the
record store it is encoded as midnight UTC of that day.

Times of day are handled in the two shapes the store uses:

- anchored timestamps (weekly templates): a full ISO timestamp on a fixed
  calendar date where only the hour and minute matter;
- numeric pairs (daily records): separate hours and minutes integers.
"""

import calendar
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Iterator, Optional, Union

from weekplan.domain.models import TimeOfDay
from weekplan.domain.weekdays import DEFAULT_WEEK_START_DAY, is_valid_week_start_day

logger = logging.getLogger(__name__)

TIME_ANCHOR_DATE = date(2025, 1, 1)

DateLike = Union[date, datetime, str]


@dataclass
class DateRangeConfig:
    """Settings for date-range filters sent to the record store.

    Attributes:
        boundary_slack_seconds: Seconds subtracted from the start boundary
            and added to the end boundary of range filters.
        field_name: Store field the range filter applies to.
    """

    boundary_slack_seconds: int = 1
    field_name: str = "Date"


def _parse_iso(text: str) -> Optional[date]:
    text = text.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def to_canonical_date(value: DateLike, today: Optional[date] = None) -> date:
    """Reduce any date-like value to its civil day.

    Datetimes keep the calendar day of their own wall clock. Invalid input
    never raises: it is logged and replaced by ``today``.

    Args:
        value: A date, datetime or ISO string.
        today: Fallback day (defaults to the current day).

    Returns:
        The civil day as a ``date``.
    """
    if isinstance(value, datetime):
        return date(value.year, value.month, value.day)
    if isinstance(value, date):
        return date(value.year, value.month, value.day)
    if isinstance(value, str):
        parsed = _parse_iso(value)
        if parsed is not None:
            return parsed
    fallback = today or date.today()
    logger.warning("Invalid date input %r, using %s", value, fallback.isoformat())
    return fallback


def format_for_display(d: date) -> str:
    """``DD.MM.YYYY``."""
    return f"{d.day:02d}.{d.month:02d}.{d.year:04d}"


def serialize_date_only(d: date) -> str:
    """``YYYY-MM-DD``."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def deserialize_date_only(text: Optional[str]) -> Optional[date]:
    """Strictly parse ``YYYY-MM-DD``.

    Returns:
        The date, or None when the value is not a string, has the wrong
        number of segments, non-numeric parts or names an impossible day.
    """
    if not text:
        logger.warning("Empty date-only string")
        return None
    if not isinstance(text, str):
        logger.warning("Date-only value %r is not a string", text)
        return None
    parts = text.strip().split("-")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        logger.warning("Malformed date-only string %r", text)
        return None
    try:
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError:
        logger.warning("Date-only string %r is not a valid day", text)
        return None


def same_day(a: Union[date, datetime], b: Union[date, datetime]) -> bool:
    return (a.year, a.month, a.day) == (b.year, b.month, b.day)


def start_of_month(d: date) -> date:
    return date(d.year, d.month, 1)


def end_of_month(d: date) -> date:
    return date(d.year, d.month, calendar.monthrange(d.year, d.month)[1])


def _week_start_weekday(week_start_day: int) -> int:
    """Python ``date.weekday()`` value (Monday=0) of a 1=Sunday setting."""
    if not is_valid_week_start_day(week_start_day):
        week_start_day = DEFAULT_WEEK_START_DAY
    return (week_start_day + 5) % 7


def start_of_week(d: date, week_start_day: int = DEFAULT_WEEK_START_DAY) -> date:
    """First day of the week containing ``d``.

    Args:
        d: Any day.
        week_start_day: 1=Sunday ... 7=Saturday.
    """
    first = _week_start_weekday(week_start_day)
    return d - timedelta(days=(d.weekday() - first) % 7)


def end_of_week(d: date, week_start_day: int = DEFAULT_WEEK_START_DAY) -> date:
    return start_of_week(d, week_start_day) + timedelta(days=6)


def to_storage_datetime(d: date) -> datetime:
    """Midnight UTC of the civil day."""
    return datetime.combine(d, time(0, 0), tzinfo=timezone.utc)


def filter_start_boundary(d: date, config: Optional[DateRangeConfig] = None) -> datetime:
    config = config or DateRangeConfig()
    return to_storage_datetime(d) - timedelta(seconds=config.boundary_slack_seconds)


def filter_end_boundary(d: date, config: Optional[DateRangeConfig] = None) -> datetime:
    config = config or DateRangeConfig()
    return to_storage_datetime(d) + timedelta(seconds=config.boundary_slack_seconds)


def _iso_z(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def build_date_range_filter(
    start: date,
    end: date,
    config: Optional[DateRangeConfig] = None,
) -> str:
    """Range filter expression for the record store."""
    config = config or DateRangeConfig()
    lower = _iso_z(filter_start_boundary(start, config))
    upper = _iso_z(filter_end_boundary(end, config))
    return (
        f"fields/{config.field_name} ge '{lower}' "
        f"and fields/{config.field_name} le '{upper}'"
    )


def time_from_anchored_timestamp(value: Optional[str]) -> TimeOfDay:
    """Hour and minute (UTC) of an anchored timestamp; date is discarded.

    Missing or unparsable values yield 00:00.
    """
    if not value:
        return TimeOfDay.zero()
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparsable time value %r, using 00:00", value)
        return TimeOfDay.zero()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return TimeOfDay(parsed.hour, parsed.minute)


def time_to_anchored_timestamp(t: TimeOfDay, anchor: date = TIME_ANCHOR_DATE) -> str:
    return f"{serialize_date_only(anchor)}T{t.hours:02d}:{t.minutes:02d}:00Z"


def time_from_numeric(hours, minutes) -> TimeOfDay:
    """Build a TimeOfDay from separate hour/minute values (ints or strings).

    Values that are missing, non-numeric or out of range yield 00:00.
    """
    try:
        h = int(hours) if hours not in (None, "") else 0
        m = int(minutes) if minutes not in (None, "") else 0
        return TimeOfDay(h, m)
    except (TypeError, ValueError):
        logger.warning("Invalid numeric time %r:%r, using 00:00", hours, minutes)
        return TimeOfDay.zero()


def time_to_numeric(t: TimeOfDay) -> tuple[int, int]:
    return t.hours, t.minutes


@dataclass(frozen=True)
class Period:
    """An inclusive range of civil days inside one month.

    Attributes:
        first_day: First day to generate (clipped to the contract start).
        last_day: Last day to generate (clipped to the contract finish).
        start_of_month: First day of the month.
        end_of_month: Last day of the month.
    """

    first_day: date
    last_day: date
    start_of_month: date
    end_of_month: date

    @property
    def total_days(self) -> int:
        return max(0, (self.last_day - self.first_day).days + 1)

    @property
    def days(self) -> Iterator[date]:
        for offset in range(self.total_days):
            yield self.first_day + timedelta(days=offset)


def month_period(
    selected: date,
    contract_start: Optional[date] = None,
    contract_finish: Optional[date] = None,
) -> Period:
    """Month containing ``selected``, clipped to the contract's dates."""
    month_start = start_of_month(selected)
    month_end = end_of_month(selected)
    first_day = month_start
    if contract_start is not None and contract_start > month_start:
        first_day = contract_start
    last_day = month_end
    if contract_finish is not None and contract_finish < month_end:
        last_day = contract_finish
    return Period(
        first_day=first_day,
        last_day=last_day,
        start_of_month=month_start,
        end_of_month=month_end,
    )


class SessionDateStore:
    """Last-used date range, kept per session id.

    Read once when a session starts and written only from the date-change
    handlers. Backed by a JSON file when ``path`` is given, otherwise by
    an in-memory dict.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None
        self._memory: dict[str, dict[str, str]] = {}

    def _read_all(self) -> dict:
        if self.path is None:
            return dict(self._memory)
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as exc:
            logger.warning("Could not read session date store %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        if self.path is None:
            self._memory = data
            return
        self.path.write_text(json.dumps(data, indent=2, sort_keys=True))

    def load(self, session_id: str) -> Optional[tuple[date, date]]:
        """Stored (start, end) for the session, or None."""
        entry = self._read_all().get(session_id)
        if not isinstance(entry, dict):
            return None
        start = deserialize_date_only(entry.get("start"))
        end = deserialize_date_only(entry.get("end"))
        if start is None or end is None:
            logger.warning("Ignoring malformed session date entry for %s", session_id)
            return None
        return start, end

    def save(self, session_id: str, start: date, end: date) -> None:
        data = self._read_all()
        data[session_id] = {
            "start": serialize_date_only(start),
            "end": serialize_date_only(end),
        }
        self._write_all(data)

    def clear(self, session_id: str) -> None:
        data = self._read_all()
        if data.pop(session_id, None) is not None:
            self._write_all(data)
