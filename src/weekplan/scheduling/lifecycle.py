"""Soft-delete lifecycle of template shift rows.

A row is either ACTIVE or DELETED. Shifts within a week are removed from
the top down and restored from the bottom up, so a week never ends up with
an active shift sitting above a deleted one.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from weekplan.domain.models import TemplateRow
from weekplan.scheduling.totals import update_displayed_total_hours

logger = logging.getLogger(__name__)


class ShiftState(Enum):
    ACTIVE = "active"
    DELETED = "deleted"


def state_of(row: TemplateRow) -> ShiftState:
    return ShiftState.DELETED if row.deleted else ShiftState.ACTIVE


@dataclass
class TransitionResult:
    """Outcome of a delete or restore request.

    Attributes:
        rows: The rows after the transition (the input rows when rejected).
        success: Whether the transition was applied.
        message: Human-readable outcome naming the week and shift.
    """

    rows: list[TemplateRow] = field(default_factory=list)
    success: bool = False
    message: str = ""


def _week_rows(rows: Sequence[TemplateRow], week_number: int) -> list[TemplateRow]:
    return [r for r in rows if r.week_number == week_number]


def _row_at(rows: Sequence[TemplateRow], index: int) -> Optional[TemplateRow]:
    if not 0 <= index < len(rows):
        return None
    return rows[index]


def can_delete_row(rows: Sequence[TemplateRow], index: int) -> bool:
    """Check whether the row at ``index`` may be soft-deleted.

    The row must be active and hold the highest shift number among the
    active rows of its week. It must also either belong to the last week
    of the contract or share its week with another active shift.
    """
    row = _row_at(rows, index)
    if row is None or row.deleted:
        return False
    active = [r for r in _week_rows(rows, row.week_number) if not r.deleted]
    if row.shift_number != max(r.shift_number for r in active):
        return False
    last_week = max(r.week_number for r in rows)
    return row.week_number == last_week or len(active) > 1


def can_restore_row(rows: Sequence[TemplateRow], index: int) -> bool:
    """Check whether the row at ``index`` may be restored.

    The row must be deleted and hold the lowest shift number among the
    deleted rows of its week.
    """
    row = _row_at(rows, index)
    if row is None or not row.deleted:
        return False
    deleted = [r for r in _week_rows(rows, row.week_number) if r.deleted]
    return row.shift_number == min(r.shift_number for r in deleted)


def _delete_refusal(rows: Sequence[TemplateRow], row: TemplateRow) -> str:
    if row.deleted:
        return f"Week {row.week_number} shift {row.shift_number} is already deleted."
    active = [r for r in _week_rows(rows, row.week_number) if not r.deleted]
    highest = max(r.shift_number for r in active)
    if row.shift_number != highest:
        return (
            f"Cannot delete week {row.week_number} shift {row.shift_number}: "
            f"delete shift {highest} first."
        )
    return (
        f"Cannot delete week {row.week_number} shift {row.shift_number}: "
        "it is the only active shift of a week that is not the last week."
    )


def _restore_refusal(rows: Sequence[TemplateRow], row: TemplateRow) -> str:
    if not row.deleted:
        return f"Week {row.week_number} shift {row.shift_number} is not deleted."
    deleted = [r for r in _week_rows(rows, row.week_number) if r.deleted]
    lowest = min(r.shift_number for r in deleted)
    return (
        f"Cannot restore week {row.week_number} shift {row.shift_number}: "
        f"restore shift {lowest} first."
    )


def _apply(rows: Sequence[TemplateRow], index: int, deleted: bool) -> list[TemplateRow]:
    updated = list(rows)
    updated[index] = updated[index].with_changes(deleted=deleted)
    return update_displayed_total_hours(updated)


def delete_row(rows: Sequence[TemplateRow], index: int) -> TransitionResult:
    """Soft-delete the row at ``index`` when allowed.

    Returns:
        TransitionResult with a new row list on success. The input list
        is never modified.
    """
    row = _row_at(rows, index)
    if row is None:
        return TransitionResult(list(rows), False, f"No row at index {index}.")
    if not can_delete_row(rows, index):
        message = _delete_refusal(rows, row)
        logger.debug(message)
        return TransitionResult(list(rows), False, message)
    return TransitionResult(
        _apply(rows, index, True),
        True,
        f"Week {row.week_number} shift {row.shift_number} deleted.",
    )


def restore_row(rows: Sequence[TemplateRow], index: int) -> TransitionResult:
    """Restore the row at ``index`` when allowed."""
    row = _row_at(rows, index)
    if row is None:
        return TransitionResult(list(rows), False, f"No row at index {index}.")
    if not can_restore_row(rows, index):
        message = _restore_refusal(rows, row)
        logger.debug(message)
        return TransitionResult(list(rows), False, message)
    return TransitionResult(
        _apply(rows, index, False),
        True,
        f"Week {row.week_number} shift {row.shift_number} restored.",
    )


def toggle_row(rows: Sequence[TemplateRow], index: int) -> TransitionResult:
    row = _row_at(rows, index)
    if row is not None and row.deleted:
        return restore_row(rows, index)
    return delete_row(rows, index)
