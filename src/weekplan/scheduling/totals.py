"""Total-hours aggregation for weekly templates.

Each template row stores its own worked time in ``total_hours``. The
aggregate for a whole week (all shift rows sharing a week number) is shown
once, on the first row of that week, through ``displayed_total_hours``.
Deleted rows do not contribute to the aggregate.
"""

import logging
import re
from typing import Optional, Sequence

from weekplan.domain.models import ZERO_TOTAL, TemplateRow
from weekplan.domain.policies import DefaultWorkTimePolicy, WorkTimePolicy

logger = logging.getLogger(__name__)

# Accepts "8h:30m" and the legacy "8ч:30м" spelling.
_HOURS_RE = re.compile(r"(\d+)\s*[hч]")
_MINUTES_RE = re.compile(r":\s*(\d+)\s*[mм]")


def parse_total_hours(text: Optional[str]) -> int:
    """Parse a stored total into minutes.

    Args:
        text: ``"<H>h:<MM>m"`` or ``"<H>ч:<MM>м"``.

    Returns:
        Total minutes, 0 when nothing can be parsed.
    """
    if not text:
        return 0
    hours = _HOURS_RE.search(text)
    minutes = _MINUTES_RE.search(text)
    if hours is None and minutes is None:
        logger.debug("Unparsable total hours %r", text)
        return 0
    total = 0
    if hours is not None:
        total += int(hours.group(1)) * 60
    if minutes is not None:
        total += int(minutes.group(1))
    return total


def format_total_hours(minutes: int) -> str:
    """Format minutes as ``"<H>h:<MM>m"``."""
    minutes = max(0, minutes)
    return f"{minutes // 60}h:{minutes % 60:02d}m"


def calculate_total_hours_for_template(rows: Sequence[TemplateRow]) -> str:
    """Sum the worked time of a template's rows, skipping deleted ones."""
    total = sum(parse_total_hours(row.total_hours) for row in rows if not row.deleted)
    return format_total_hours(total)


def get_unique_templates(rows: Sequence[TemplateRow]) -> dict[int, list[TemplateRow]]:
    """Group rows by week number, each group ordered by shift number.

    Returns:
        Mapping of week number to its rows, keys in ascending order.
    """
    groups: dict[int, list[TemplateRow]] = {}
    for row in rows:
        groups.setdefault(row.week_number, []).append(row)
    return {
        week: sorted(groups[week], key=lambda r: r.shift_number)
        for week in sorted(groups)
    }


def update_displayed_total_hours(rows: Sequence[TemplateRow]) -> list[TemplateRow]:
    """Write each template's aggregate onto its first row.

    Non-first rows have ``displayed_total_hours`` cleared. Per-row
    ``total_hours`` is never touched. The input is left unchanged; the
    result keeps the input order.

    Args:
        rows: All rows of a contract.

    Returns:
        A new list of rows.
    """
    first_ids = {}
    aggregates = {}
    for week, group in get_unique_templates(rows).items():
        first_ids[week] = group[0].id
        aggregates[week] = calculate_total_hours_for_template(group)

    updated = []
    for row in rows:
        if row.id == first_ids[row.week_number]:
            displayed = aggregates[row.week_number]
        else:
            displayed = None
        if displayed != row.displayed_total_hours:
            row = row.with_changes(displayed_total_hours=displayed)
        updated.append(row)
    return updated


def is_first_row_in_template(rows: Sequence[TemplateRow], index: int) -> bool:
    """True when the row at ``index`` has the lowest shift number of its week."""
    if not 0 <= index < len(rows):
        return False
    row = rows[index]
    group = get_unique_templates(rows)[row.week_number]
    return group[0].id == row.id


def is_last_row_in_template(rows: Sequence[TemplateRow], index: int) -> bool:
    """True when the row at ``index`` has the highest shift number of its week."""
    if not 0 <= index < len(rows):
        return False
    row = rows[index]
    group = get_unique_templates(rows)[row.week_number]
    return group[-1].id == row.id


def row_total_minutes(row: TemplateRow, policy: Optional[WorkTimePolicy] = None) -> int:
    policy = policy or DefaultWorkTimePolicy()
    return policy.row_worked_minutes(row)


def recalculate_row_total(
    row: TemplateRow,
    policy: Optional[WorkTimePolicy] = None,
) -> TemplateRow:
    """Return the row with ``total_hours`` recomputed from its day times."""
    total = format_total_hours(row_total_minutes(row, policy))
    if total == row.total_hours:
        return row
    return row.with_changes(total_hours=total)


def recalculate_all(
    rows: Sequence[TemplateRow],
    policy: Optional[WorkTimePolicy] = None,
) -> list[TemplateRow]:
    """Recompute every row total, then the displayed aggregates."""
    return update_displayed_total_hours([recalculate_row_total(r, policy) for r in rows])


def week_total(rows: Sequence[TemplateRow], week_number: int) -> str:
    """Aggregate for one week, ``ZERO_TOTAL`` when the week has no rows."""
    group = get_unique_templates(rows).get(week_number)
    if not group:
        return ZERO_TOTAL
    return calculate_total_hours_for_template(group)
