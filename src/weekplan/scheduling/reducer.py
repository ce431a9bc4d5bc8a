"""Reducer core for editing a contract's template rows.

All edits are expressed as actions applied by ``reduce(state, action)``,
which returns a new TimetableState and never modifies its input. The state
tracks which rows changed since the last save so the persistence layer
knows what to push.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Union

from weekplan.domain.models import (
    MessageLevel,
    PendingId,
    PersistedId,
    RecordId,
    StatusMessage,
    TemplateRow,
    TimeOfDay,
    Weekday,
)
from weekplan.domain.policies import DefaultWorkTimePolicy, WorkTimePolicy
from weekplan.scheduling.lifecycle import delete_row, restore_row
from weekplan.scheduling.provisioning import new_shift_row, new_week_rows
from weekplan.scheduling.totals import recalculate_row_total, update_displayed_total_hours

logger = logging.getLogger(__name__)

DELETED_EDIT_MESSAGE = "Cannot edit deleted items. Restore the item first."
LUNCH_RANGE_MESSAGE = "Lunch time must be between 0 and 120 minutes"


@dataclass(frozen=True)
class TimetableState:
    """Rows of the open contract plus the ids changed since the last save."""

    rows: tuple[TemplateRow, ...] = ()
    changed: frozenset = frozenset()
    message: Optional[StatusMessage] = None

    @classmethod
    def from_rows(cls, rows: Sequence[TemplateRow]) -> "TimetableState":
        return cls(rows=tuple(update_displayed_total_hours(rows)))

    def index_of(self, row_id: RecordId) -> Optional[int]:
        for i, row in enumerate(self.rows):
            if row.id == row_id:
                return i
        return None

    def row(self, row_id: RecordId) -> Optional[TemplateRow]:
        index = self.index_of(row_id)
        return None if index is None else self.rows[index]

    @property
    def changed_rows(self) -> list[TemplateRow]:
        return [r for r in self.rows if r.id in self.changed]


@dataclass(frozen=True)
class EditTime:
    row_id: RecordId
    weekday: Weekday
    boundary: str  # "start" or "end"
    time: TimeOfDay


@dataclass(frozen=True)
class EditLunch:
    row_id: RecordId
    minutes: int


@dataclass(frozen=True)
class EditContract:
    row_id: RecordId
    contract_number: int


@dataclass(frozen=True)
class DeleteShift:
    row_id: RecordId


@dataclass(frozen=True)
class RestoreShift:
    row_id: RecordId


@dataclass(frozen=True)
class AddWeek:
    contract_reference: str = ""
    creator_id: Optional[str] = None


@dataclass(frozen=True)
class AddShift:
    week_number: int
    contract_reference: str = ""
    creator_id: Optional[str] = None


@dataclass(frozen=True)
class MarkPersisted:
    """A pending row was created in the store and received an id."""

    pending: PendingId
    persisted: PersistedId


@dataclass(frozen=True)
class ReplaceRows:
    rows: tuple[TemplateRow, ...]


@dataclass(frozen=True)
class ClearChanged:
    """Forget changed ids after a save. None clears all of them."""

    ids: Optional[frozenset] = None


Action = Union[
    EditTime,
    EditLunch,
    EditContract,
    DeleteShift,
    RestoreShift,
    AddWeek,
    AddShift,
    MarkPersisted,
    ReplaceRows,
    ClearChanged,
]


def _message(level: MessageLevel, text: str) -> StatusMessage:
    return StatusMessage(level, text)


def _refuse(state: TimetableState, level: MessageLevel, text: str) -> TimetableState:
    logger.debug("Action refused: %s", text)
    return replace(state, message=_message(level, text))


def _unknown_row(state: TimetableState, row_id: RecordId) -> TimetableState:
    return _refuse(state, MessageLevel.ERROR, f"Row {row_id} not found.")


def _edit_row(
    state: TimetableState,
    row_id: RecordId,
    policy: WorkTimePolicy,
    **changes,
) -> TimetableState:
    index = state.index_of(row_id)
    if index is None:
        return _unknown_row(state, row_id)
    row = state.rows[index]
    if row.deleted:
        return _refuse(state, MessageLevel.WARNING, DELETED_EDIT_MESSAGE)

    if "day" in changes:
        weekday, hours = changes.pop("day")
        row = row.with_day(weekday, hours)
    row = recalculate_row_total(row.with_changes(**changes), policy)

    rows = list(state.rows)
    rows[index] = row
    return TimetableState(
        rows=tuple(update_displayed_total_hours(rows)),
        changed=state.changed | {row.id},
        message=None,
    )


def _edit_time(state: TimetableState, action: EditTime, policy: WorkTimePolicy) -> TimetableState:
    if action.boundary not in ("start", "end"):
        return _refuse(state, MessageLevel.ERROR, f"Unknown time boundary {action.boundary!r}.")
    row = state.row(action.row_id)
    if row is None:
        return _unknown_row(state, action.row_id)
    hours = row.day(action.weekday)
    if action.boundary == "start":
        hours = replace(hours, start=action.time)
    else:
        hours = replace(hours, end=action.time)
    return _edit_row(state, action.row_id, policy, day=(action.weekday, hours))


def _edit_lunch(state: TimetableState, action: EditLunch, policy: WorkTimePolicy) -> TimetableState:
    row = state.row(action.row_id)
    if row is None:
        return _unknown_row(state, action.row_id)
    if row.deleted:
        return _refuse(state, MessageLevel.WARNING, DELETED_EDIT_MESSAGE)
    if not policy.is_valid_lunch(action.minutes):
        return _refuse(state, MessageLevel.ERROR, LUNCH_RANGE_MESSAGE)
    return _edit_row(state, action.row_id, policy, lunch_minutes=action.minutes)


def _transition(state: TimetableState, row_id: RecordId, delete: bool) -> TimetableState:
    index = state.index_of(row_id)
    if index is None:
        return _unknown_row(state, row_id)
    transition = delete_row if delete else restore_row
    result = transition(list(state.rows), index)
    if not result.success:
        return _refuse(state, MessageLevel.WARNING, result.message)
    return TimetableState(
        rows=tuple(result.rows),
        changed=state.changed | {row_id},
        message=_message(MessageLevel.SUCCESS, result.message),
    )


def _add_week(state: TimetableState, action: AddWeek) -> TimetableState:
    decision, rows = new_week_rows(state.rows, action.contract_reference, action.creator_id)
    if not decision.can_add:
        return _refuse(state, MessageLevel.WARNING, decision.message)
    added = rows[-1]
    return TimetableState(
        rows=tuple(update_displayed_total_hours(rows)),
        changed=state.changed | {added.id},
        message=_message(MessageLevel.SUCCESS, decision.message),
    )


def _add_shift(state: TimetableState, action: AddShift) -> TimetableState:
    decision, rows = new_shift_row(
        state.rows, action.week_number, action.contract_reference, action.creator_id
    )
    if not decision.can_add:
        return _refuse(state, MessageLevel.WARNING, decision.message)
    existing = {r.id for r in state.rows}
    added = [r for r in rows if r.id not in existing]
    return TimetableState(
        rows=tuple(update_displayed_total_hours(rows)),
        changed=state.changed | {r.id for r in added},
        message=_message(MessageLevel.SUCCESS, decision.message),
    )


def _mark_persisted(state: TimetableState, action: MarkPersisted) -> TimetableState:
    index = state.index_of(action.pending)
    if index is None:
        return _unknown_row(state, action.pending)
    rows = list(state.rows)
    rows[index] = rows[index].with_changes(id=action.persisted)
    return replace(
        state,
        rows=tuple(rows),
        changed=state.changed - {action.pending},
    )


def reduce(
    state: TimetableState,
    action: Action,
    policy: Optional[WorkTimePolicy] = None,
) -> TimetableState:
    """Apply an action and return the resulting state.

    Refused actions return the same rows with a message explaining why.

    Args:
        state: Current state; never modified.
        action: One of the action dataclasses in this module.
        policy: Worked-time policy for row totals and lunch bounds.

    Returns:
        The new state.

    Raises:
        TypeError: If the action type is not recognised.
    """
    policy = policy or DefaultWorkTimePolicy()

    if isinstance(action, EditTime):
        return _edit_time(state, action, policy)
    if isinstance(action, EditLunch):
        return _edit_lunch(state, action, policy)
    if isinstance(action, EditContract):
        return _edit_row(state, action.row_id, policy, contract_number=action.contract_number)
    if isinstance(action, DeleteShift):
        return _transition(state, action.row_id, delete=True)
    if isinstance(action, RestoreShift):
        return _transition(state, action.row_id, delete=False)
    if isinstance(action, AddWeek):
        return _add_week(state, action)
    if isinstance(action, AddShift):
        return _add_shift(state, action)
    if isinstance(action, MarkPersisted):
        return _mark_persisted(state, action)
    if isinstance(action, ReplaceRows):
        return TimetableState.from_rows(action.rows)
    if isinstance(action, ClearChanged):
        if action.ids is None:
            return replace(state, changed=frozenset())
        return replace(state, changed=state.changed - action.ids)
    raise TypeError(f"Unknown action: {type(action).__name__}")
