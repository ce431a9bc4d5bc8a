"""Loading and grouping of weekly templates.

Raw store records pass through a fixed pipeline:

1. creator filter (only the active manager's rows are kept)
2. deleted filter
3. per-day decomposition into ScheduleTemplate tuples
4. grouping by ``"{week}-{weekday}-{shift}"``
5. lookup by (week, weekday) with a fallback to week 1

Every drop is counted in LoadDiagnostics so callers can report it.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from weekplan.domain.fields import (
    is_deleted,
    missing_day_fields,
    record_fields,
    resolve_creator,
    resolve_field,
    row_from_record,
)
from weekplan.domain.models import ScheduleTemplate, TemplateRow, Weekday
from weekplan.domain.policies import WorkTimePolicy
from weekplan.domain.weekdays import DEFAULT_WEEK_START_DAY, start_day_name
from weekplan.scheduling.totals import recalculate_all

logger = logging.getLogger(__name__)

TemplateGroups = dict[str, list[ScheduleTemplate]]


@dataclass
class LoaderConfig:
    """Configuration for the template loading pipeline.

    Attributes:
        manager_id: Creator identity whose rows are kept. None disables
            the creator filter.
        week_start_day: Contract week start, 1=Sunday ... 7=Saturday.
        fallback_to_week_one: Reuse week 1 templates for weeks that have
            none of their own.
    """

    manager_id: Optional[str] = None
    week_start_day: int = DEFAULT_WEEK_START_DAY
    fallback_to_week_one: bool = True


@dataclass
class LoadDiagnostics:
    """Counts retained while loading templates."""

    total: int = 0
    dropped_by_creator: int = 0
    dropped_deleted: int = 0
    dropped_malformed: int = 0
    skipped_days: int = 0
    templates_emitted: int = 0
    duplicate_keys: int = 0
    details: list[str] = field(default_factory=list)

    @property
    def after_creator_filter(self) -> int:
        return self.total - self.dropped_by_creator

    @property
    def after_deleted_filter(self) -> int:
        return self.after_creator_filter - self.dropped_deleted

    def note(self, message: str) -> None:
        logger.debug(message)
        self.details.append(message)


def decompose_row(row: TemplateRow, skip: Iterable[Weekday] = ()) -> list[ScheduleTemplate]:
    """Split a row into one ScheduleTemplate per weekday.

    All-zero days are emitted as well; they stand for a non-working day.
    """
    skipped = set(skip)
    return [
        ScheduleTemplate(
            row_id=row.id,
            contract_reference=row.contract_reference,
            week_number=row.week_number,
            shift_number=row.shift_number,
            weekday=weekday,
            start=row.days[weekday].start,
            end=row.days[weekday].end,
            lunch_minutes=row.lunch_minutes,
        )
        for weekday in Weekday
        if weekday not in skipped
    ]


def group_templates(templates: Iterable[ScheduleTemplate]) -> TemplateGroups:
    """Group tuples by ``"{week}-{weekday}-{shift}"``.

    Duplicate keys are kept side by side in the same list.
    """
    groups: TemplateGroups = defaultdict(list)
    for template in templates:
        groups[template.group_key].append(template)
    return dict(groups)


def _lookup(groups: TemplateGroups, week_number: int, weekday: Weekday) -> list[ScheduleTemplate]:
    found = [
        t
        for bucket in groups.values()
        for t in bucket
        if t.week_number == week_number and t.weekday == weekday
    ]
    return sorted(found, key=lambda t: t.shift_number)


def find_templates_for_day(
    groups: TemplateGroups,
    week_number: int,
    weekday: Weekday,
    fallback_to_week_one: bool = True,
) -> list[ScheduleTemplate]:
    """All shifts for (week, weekday), ordered by shift number.

    Args:
        groups: Output of ``group_templates``.
        week_number: Template week to look up.
        weekday: Day to look up.
        fallback_to_week_one: Retry with week 1 when a later week has
            nothing defined.

    Returns:
        The matching tuples, or an empty list.
    """
    found = _lookup(groups, week_number, weekday)
    if not found and week_number > 1 and fallback_to_week_one:
        logger.debug(
            "No templates for week %d %s, falling back to week 1",
            week_number,
            weekday.title,
        )
        found = _lookup(groups, 1, weekday)
    return found


class TemplateSet:
    """Grouped templates of one contract, ready for expansion."""

    def __init__(
        self,
        templates: Sequence[ScheduleTemplate],
        diagnostics: Optional[LoadDiagnostics] = None,
        fallback_to_week_one: bool = True,
    ):
        self.templates = list(templates)
        self.groups = group_templates(self.templates)
        self.diagnostics = diagnostics or LoadDiagnostics(templates_emitted=len(self.templates))
        self.fallback_to_week_one = fallback_to_week_one

    @classmethod
    def from_rows(cls, rows: Sequence[TemplateRow]) -> "TemplateSet":
        """Build a set from rows, leaving out deleted ones."""
        diagnostics = LoadDiagnostics(total=len(rows))
        templates = []
        for row in rows:
            if row.deleted:
                diagnostics.dropped_deleted += 1
                continue
            templates.extend(decompose_row(row))
        diagnostics.templates_emitted = len(templates)
        return cls(templates, diagnostics)

    def templates_for_day(self, week_number: int, weekday: Weekday) -> list[ScheduleTemplate]:
        return find_templates_for_day(
            self.groups, week_number, weekday, self.fallback_to_week_one
        )

    @property
    def week_numbers(self) -> list[int]:
        return sorted({t.week_number for t in self.templates})

    @property
    def number_of_week_templates(self) -> int:
        return len(self.week_numbers)

    @property
    def shift_numbers(self) -> list[int]:
        return sorted({t.shift_number for t in self.templates})

    @property
    def days_covered(self) -> list[Weekday]:
        return sorted({t.weekday for t in self.templates if not t.is_zero})

    def stats(self) -> dict:
        """Template statistics for reporting."""
        return {
            "total_templates": len(self.templates),
            "week_count": self.number_of_week_templates,
            "shift_count": len(self.shift_numbers),
            "days_covered": len(self.days_covered),
        }

    def __len__(self) -> int:
        return len(self.templates)


class TemplateLoader:
    """Runs the loading pipeline over raw store records.

    Example:
        loader = TemplateLoader(LoaderConfig(manager_id="12"))
        template_set = loader.load(records)
        template_set.templates_for_day(2, Weekday.MONDAY)
    """

    def __init__(self, config: Optional[LoaderConfig] = None):
        self.config = config or LoaderConfig()

    def load(self, records: Sequence[dict]) -> TemplateSet:
        diagnostics = LoadDiagnostics(total=len(records))
        diagnostics.note(f"Week starts on {start_day_name(self.config.week_start_day)}")
        templates: list[ScheduleTemplate] = []

        for item in records:
            fields = record_fields(item)
            if not self._creator_matches(fields):
                diagnostics.dropped_by_creator += 1
                continue
            if is_deleted(fields):
                diagnostics.dropped_deleted += 1
                continue
            try:
                row = row_from_record(item)
            except ValueError as exc:
                diagnostics.dropped_malformed += 1
                logger.warning("Skipping malformed template record: %s", exc)
                continue

            missing = missing_day_fields(fields)
            for weekday in missing:
                diagnostics.skipped_days += 1
                diagnostics.note(
                    f"Record {row.id}: missing {weekday.title} times, day skipped"
                )
            templates.extend(decompose_row(row, skip=missing))

        diagnostics.templates_emitted = len(templates)
        template_set = TemplateSet(templates, diagnostics, self.config.fallback_to_week_one)
        diagnostics.duplicate_keys = sum(
            1 for bucket in template_set.groups.values() if len(bucket) > 1
        )
        diagnostics.note(
            f"Loaded {diagnostics.total} records: "
            f"{diagnostics.after_creator_filter} after creator filter, "
            f"{diagnostics.after_deleted_filter} after deleted filter, "
            f"{diagnostics.templates_emitted} day templates"
        )
        return template_set

    def _creator_matches(self, fields: dict) -> bool:
        if self.config.manager_id is None:
            return True
        return resolve_creator(fields) == str(self.config.manager_id)


def _belongs_to_contract(item: dict, contract_id: Optional[str]) -> bool:
    if contract_id is None:
        return True
    reference = resolve_field(record_fields(item), "contract_reference")
    return reference is not None and str(reference) == str(contract_id)


def rows_from_records(
    records: Sequence[dict],
    policy: Optional[WorkTimePolicy] = None,
) -> list[TemplateRow]:
    """Decode records into rows with totals computed, sorted by (week, shift).

    Records without an id are skipped with a warning.
    """
    rows = []
    for item in records:
        try:
            rows.append(row_from_record(item))
        except ValueError as exc:
            logger.warning("Skipping malformed template record: %s", exc)
    rows.sort(key=lambda r: (r.week_number, r.shift_number))
    return recalculate_all(rows, policy)


def load_templates(
    records: Sequence[dict],
    contract_id: Optional[str],
    week_start_day: int = DEFAULT_WEEK_START_DAY,
    creator_id: Optional[str] = None,
    include_deleted: bool = True,
) -> list[TemplateRow]:
    """Template rows of one contract as the editing surface sees them.

    Args:
        records: Raw store records.
        contract_id: Contract whose rows are returned; None keeps all.
        week_start_day: Contract week start, 1=Sunday ... 7=Saturday.
        creator_id: Active manager; None disables the creator filter.
        include_deleted: Keep soft-deleted rows so they can be restored.

    Returns:
        Rows sorted by (week, shift) with totals and displayed totals set.
    """
    logger.debug(
        "Loading templates for contract %s (week starts on %s)",
        contract_id,
        start_day_name(week_start_day),
    )
    selected = []
    for item in records:
        fields = record_fields(item)
        if not _belongs_to_contract(item, contract_id):
            continue
        if creator_id is not None and resolve_creator(fields) != str(creator_id):
            continue
        if not include_deleted and is_deleted(fields):
            continue
        selected.append(item)
    return rows_from_records(selected)
