"""Expansion of weekly templates into dated schedule entries.

For every civil day of a period the expander works out the day's weekday
and which template week applies, looks up every shift defined for that
(week, weekday) and materializes one ScheduleEntry per shift. Holidays and
leave periods are flagged on the generated entries.

Week chaining maps the calendar week of the month onto the template
weeks a contract defines:
- 1 template week: 1, 1, 1, 1, ...
- 2 template weeks: 1, 2, 1, 2, ...
- 3 template weeks: 1, 2, 3, 1, 2, 3, ...
- 4 template weeks: 1, 2, 3, 4, 4
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Optional, Sequence, Union

from weekplan.domain.dates import Period, format_for_display, start_of_month
from weekplan.domain.models import ScheduleEntry, ScheduleTemplate, TemplateRow, Weekday
from weekplan.domain.weekdays import DEFAULT_WEEK_START_DAY, is_valid_week_start_day
from weekplan.scheduling.templates import TemplateSet

logger = logging.getLogger(__name__)

DateRange = Union[Period, tuple[date, date]]


def calendar_week_of_month(d: date, week_start_day: int = DEFAULT_WEEK_START_DAY) -> int:
    """1-based week of the month containing ``d``.

    Weeks break on the contract's week start day (1=Sunday ... 7=Saturday),
    so the first week of a month may be shorter than seven days. This is
    the same numbering ``ordered_weekdays`` uses, so 7 means Saturday here
    as well.
    """
    if not is_valid_week_start_day(week_start_day):
        week_start_day = DEFAULT_WEEK_START_DAY
    first_sunday_based = (start_of_month(d).weekday() + 1) % 7
    offset = (first_sunday_based - (week_start_day - 1)) % 7
    return (d.day - 1 + offset) // 7 + 1


def template_week_for(calendar_week: int, number_of_week_templates: int) -> int:
    """Template week used for a calendar week of the month."""
    if number_of_week_templates <= 1:
        return 1
    if number_of_week_templates == 4:
        return min(calendar_week, 4)
    return (calendar_week - 1) % number_of_week_templates + 1


def week_chaining_description(number_of_week_templates: int) -> str:
    if number_of_week_templates == 1:
        return "Single week template - repeat for all weeks (1,1,1,1)"
    if number_of_week_templates == 2:
        return "Two week templates - alternate pattern (1,2,1,2)"
    if number_of_week_templates == 3:
        return "Three week templates - cycle pattern (1,2,3,1,2,3,...)"
    if number_of_week_templates == 4:
        return "Four week templates - full month cycle (1,2,3,4)"
    return f"{number_of_week_templates} week templates - custom cycle pattern"


@dataclass(frozen=True)
class LeavePeriod:
    """An inclusive range of days a staff member is on leave."""

    start: date
    end: date
    leave_type: str
    title: str = ""

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end


@dataclass
class ExpansionConfig:
    """Configuration for schedule expansion.

    Attributes:
        week_start_day: Contract week start, 1=Sunday ... 7=Saturday.
        number_of_week_templates: Template weeks to chain through. None
            derives it from the template set.
        holidays: Days flagged as holidays.
        leaves: Leave periods; a day inside one carries its leave type.
        week_index: Optional callable returning the template week for a
            day. Replaces week chaining when set.
        template_title: Contract template name written to each record.
    """

    week_start_day: int = DEFAULT_WEEK_START_DAY
    number_of_week_templates: Optional[int] = None
    holidays: set[date] = field(default_factory=set)
    leaves: list[LeavePeriod] = field(default_factory=list)
    week_index: Optional[Callable[[date], int]] = None
    template_title: str = ""


@dataclass
class DayExpansionInfo:
    """What happened to one day of the period."""

    date: date
    weekday: Weekday
    calendar_week: int
    template_week: int
    template_found: bool
    shifts: int = 0
    is_holiday: bool = False
    leave_type: Optional[str] = None
    working_hours: Optional[str] = None
    skip_reason: Optional[str] = None


@dataclass
class ExpansionAnalysis:
    """Per-day and per-week statistics of an expansion run."""

    total_days: int = 0
    days_generated: int = 0
    days_skipped: int = 0
    holidays_detected: int = 0
    leaves_detected: int = 0
    number_of_week_templates: int = 0
    daily: list[DayExpansionInfo] = field(default_factory=list)
    weekly_stats: dict[int, dict[str, int]] = field(default_factory=dict)

    def record(self, info: DayExpansionInfo) -> None:
        self.daily.append(info)
        self.total_days += 1
        stats = self.weekly_stats.setdefault(
            info.calendar_week, {"total": 0, "generated": 0, "skipped": 0}
        )
        stats["total"] += 1
        if info.template_found:
            self.days_generated += 1
            stats["generated"] += 1
        else:
            self.days_skipped += 1
            stats["skipped"] += 1
        if info.is_holiday:
            self.holidays_detected += 1
        if info.leave_type is not None:
            self.leaves_detected += 1

    @property
    def chaining(self) -> str:
        return week_chaining_description(self.number_of_week_templates)


@dataclass
class ExpansionResult:
    entries: list[ScheduleEntry] = field(default_factory=list)
    analysis: ExpansionAnalysis = field(default_factory=ExpansionAnalysis)


def _days_between(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


class ScheduleExpander:
    """Materializes schedule entries from a TemplateSet.

    Example:
        expander = ScheduleExpander(ExpansionConfig(week_start_day=2))
        result = expander.expand(template_set, date(2025, 3, 1), date(2025, 3, 31))
    """

    def __init__(self, config: Optional[ExpansionConfig] = None):
        self.config = config or ExpansionConfig()

    def template_week(self, d: date, number_of_week_templates: int) -> tuple[int, int]:
        """(calendar week, template week) for a day."""
        calendar_week = calendar_week_of_month(d, self.config.week_start_day)
        if self.config.week_index is not None:
            return calendar_week, self.config.week_index(d)
        return calendar_week, template_week_for(calendar_week, number_of_week_templates)

    def _leave_for(self, d: date) -> Optional[LeavePeriod]:
        for leave in self.config.leaves:
            if leave.contains(d):
                return leave
        return None

    def expand(self, template_set: TemplateSet, start: date, end: date) -> ExpansionResult:
        """Expand templates over the inclusive range ``start``..``end``.

        Args:
            template_set: Loaded templates of one contract.
            start: First day.
            end: Last day.

        Returns:
            ExpansionResult with entries in date order, shifts ascending
            within a day.
        """
        number_of_weeks = self.config.number_of_week_templates
        if number_of_weeks is None:
            number_of_weeks = template_set.number_of_week_templates
        analysis = ExpansionAnalysis(number_of_week_templates=number_of_weeks)
        entries: list[ScheduleEntry] = []
        logger.debug(
            "Expanding %s..%s with %s",
            start.isoformat(),
            end.isoformat(),
            week_chaining_description(number_of_weeks),
        )

        for day in _days_between(start, end):
            weekday = Weekday.from_date(day)
            calendar_week, template_week = self.template_week(day, number_of_weeks)
            templates = template_set.templates_for_day(template_week, weekday)
            leave = self._leave_for(day)
            info = DayExpansionInfo(
                date=day,
                weekday=weekday,
                calendar_week=calendar_week,
                template_week=template_week,
                template_found=bool(templates),
                shifts=len(templates),
                is_holiday=day in self.config.holidays,
                leave_type=leave.leave_type if leave else None,
            )
            if templates:
                first = templates[0]
                info.working_hours = f"{first.start_time}-{first.end_time}"
                entries.extend(
                    self._entry(day, calendar_week, t, info.is_holiday, info.leave_type)
                    for t in templates
                )
            else:
                info.skip_reason = (
                    f"No template found for week {template_week}, day {int(weekday)} combination"
                )
                logger.debug("%s: %s", format_for_display(day), info.skip_reason)
            analysis.record(info)

        return ExpansionResult(entries, analysis)

    def expand_period(self, template_set: TemplateSet, period: Period) -> ExpansionResult:
        return self.expand(template_set, period.first_day, period.last_day)

    def _entry(
        self,
        day: date,
        calendar_week: int,
        template: ScheduleTemplate,
        is_holiday: bool,
        leave_type: Optional[str],
    ) -> ScheduleEntry:
        return ScheduleEntry(
            date=day,
            weekday=template.weekday,
            week_number=template.week_number,
            calendar_week=calendar_week,
            shift_number=template.shift_number,
            start=template.start,
            end=template.end,
            lunch_minutes=template.lunch_minutes,
            contract_reference=template.contract_reference,
            is_holiday=is_holiday,
            leave_type=leave_type,
            template_title=self.config.template_title,
        )


def expand(
    templates: Union[TemplateSet, Sequence[TemplateRow]],
    date_range: DateRange,
    week_start_day: int = DEFAULT_WEEK_START_DAY,
) -> list[ScheduleEntry]:
    """Expand templates over a date range.

    Args:
        templates: A TemplateSet, or template rows (deleted rows are
            left out).
        date_range: A Period or an inclusive (start, end) pair.
        week_start_day: Contract week start, 1=Sunday ... 7=Saturday.

    Returns:
        Schedule entries in date order.
    """
    if not isinstance(templates, TemplateSet):
        templates = TemplateSet.from_rows(list(templates))
    if isinstance(date_range, Period):
        start, end = date_range.first_day, date_range.last_day
    else:
        start, end = date_range
    expander = ScheduleExpander(ExpansionConfig(week_start_day=week_start_day))
    return expander.expand(templates, start, end).entries
