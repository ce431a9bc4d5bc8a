"""Provisioning of new weeks and shifts.

A new week is only added once every fully deleted week has been restored,
and a new shift only once no deleted shift leaves a gap below the
highest shift of the week.
"""

import logging
from typing import Optional, Sequence

from weekplan.domain.models import (
    AddShiftDecision,
    AddWeekDecision,
    TemplateRow,
    WeekAnalysis,
)

logger = logging.getLogger(__name__)


def _join(numbers: Sequence[int]) -> str:
    return ", ".join(str(n) for n in numbers)


def analyze_weeks(rows: Sequence[TemplateRow]) -> WeekAnalysis:
    """Summarize the weeks present in a contract's rows.

    A week is fully deleted when every one of its shift rows is deleted.
    """
    by_week: dict[int, list[TemplateRow]] = {}
    for row in rows:
        by_week.setdefault(row.week_number, []).append(row)

    week_numbers = sorted(by_week)
    fully_deleted = [w for w in week_numbers if all(r.deleted for r in by_week[w])]
    return WeekAnalysis(
        week_numbers=week_numbers,
        max_week_number=week_numbers[-1] if week_numbers else 0,
        fully_deleted_weeks=fully_deleted,
    )


def check_can_add_new_week(analysis: WeekAnalysis) -> AddWeekDecision:
    """Decide whether a new week may be added."""
    if not analysis.week_numbers:
        return AddWeekDecision(
            can_add=True,
            week_number_to_add=1,
            message="The first week (1 week) will be added.",
        )
    if analysis.has_fully_deleted_weeks:
        weeks = list(analysis.fully_deleted_weeks)
        return AddWeekDecision(
            can_add=False,
            week_number_to_add=0,
            message=(
                f"Fully deleted weeks detected: {_join(weeks)}. "
                "Before adding a new week, you need to restore the deleted weeks."
            ),
            fully_deleted_weeks=weeks,
        )
    next_week = analysis.max_week_number + 1
    return AddWeekDecision(
        can_add=True,
        week_number_to_add=next_week,
        message=f"New week {next_week} has been added.",
    )


def check_can_add_new_week_from_rows(rows: Sequence[TemplateRow]) -> AddWeekDecision:
    return check_can_add_new_week(analyze_weeks(rows))


def next_shift_number(rows: Sequence[TemplateRow], week_number: int) -> int:
    """Highest shift number of the week (deleted rows included) plus one."""
    shifts = [r.shift_number for r in rows if r.week_number == week_number]
    return max(shifts) + 1 if shifts else 1


def check_can_add_shift(rows: Sequence[TemplateRow], week_number: int) -> AddShiftDecision:
    """Decide whether a shift may be added to ``week_number``.

    Every shift number from 1 up to the current maximum that has no active
    row but is held by a deleted row blocks the add. A week without rows
    is a new week and follows the same rules as adding one.
    """
    week_rows = [r for r in rows if r.week_number == week_number]
    next_shift = next_shift_number(rows, week_number)
    if not week_rows:
        week_decision = check_can_add_new_week_from_rows(rows)
        if not week_decision.can_add:
            return AddShiftDecision(
                can_add=False,
                week_number=week_number,
                shift_number_to_add=0,
                message=week_decision.message,
            )
        if week_number != week_decision.week_number_to_add:
            return AddShiftDecision(
                can_add=False,
                week_number=week_number,
                shift_number_to_add=0,
                message=(
                    f"Week {week_number} cannot be added: "
                    f"the next week is {week_decision.week_number_to_add}."
                ),
            )
        return AddShiftDecision(
            can_add=True,
            week_number=week_number,
            shift_number_to_add=1,
            message=f"Shift 1 will be added to week {week_number}.",
        )

    active = {r.shift_number for r in week_rows if not r.deleted}
    deleted = {r.shift_number for r in week_rows if r.deleted}
    blocking = [s for s in range(1, next_shift) if s not in active and s in deleted]
    if blocking:
        return AddShiftDecision(
            can_add=False,
            week_number=week_number,
            shift_number_to_add=0,
            message=(
                f"Fully deleted shifts detected: {_join(blocking)}. "
                "Before adding a new shift, you need to restore the deleted shifts."
            ),
            blocking_shifts=blocking,
        )
    return AddShiftDecision(
        can_add=True,
        week_number=week_number,
        shift_number_to_add=next_shift,
        message=f"Shift {next_shift} has been added to week {week_number}.",
    )


def new_week_rows(
    rows: Sequence[TemplateRow],
    contract_reference: str = "",
    creator_id: Optional[str] = None,
) -> tuple[AddWeekDecision, list[TemplateRow]]:
    """Provision shift 1 of the next week when allowed.

    Returns:
        The decision and the rows with the new pending row appended (the
        input rows unchanged when refused).
    """
    decision = check_can_add_new_week_from_rows(rows)
    if not decision.can_add:
        logger.debug(decision.message)
        return decision, list(rows)
    row = TemplateRow.new(decision.week_number_to_add, 1, contract_reference, creator_id)
    return decision, list(rows) + [row]


def new_shift_row(
    rows: Sequence[TemplateRow],
    week_number: int,
    contract_reference: str = "",
    creator_id: Optional[str] = None,
) -> tuple[AddShiftDecision, list[TemplateRow]]:
    """Provision the next shift of ``week_number`` when allowed.

    The new row is inserted right after the last row of its week so the
    list stays grouped by week.
    """
    decision = check_can_add_shift(rows, week_number)
    if not decision.can_add:
        logger.debug(decision.message)
        return decision, list(rows)
    row = TemplateRow.new(week_number, decision.shift_number_to_add, contract_reference, creator_id)
    updated = list(rows)
    positions = [i for i, r in enumerate(updated) if r.week_number <= week_number]
    updated.insert(positions[-1] + 1 if positions else len(updated), row)
    return decision, updated
