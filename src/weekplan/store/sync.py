"""Pushing template rows to the record store and reading them back.

The in-memory state is never rolled back here. A failed write is reported
to the caller, who decides whether to retry or re-fetch.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from weekplan.domain.dates import DateRangeConfig, build_date_range_filter, serialize_date_only
from weekplan.domain.fields import FIELD_TABLE, row_to_fields, wire_name
from weekplan.domain.models import PendingId, PersistedId, RecordId, ScheduleEntry, TemplateRow
from weekplan.scheduling.reducer import ClearChanged, MarkPersisted, TimetableState, reduce
from weekplan.store.record_store import RecordStore, StoreError

logger = logging.getLogger(__name__)

TEMPLATE_LIST = "WeeklyTimeTables"
SCHEDULE_LIST = "StaffRecords"


class PersistenceError(Exception):
    """A store write for a specific row failed."""

    def __init__(self, message: str, record_id: Optional[RecordId] = None):
        super().__init__(message)
        self.message = message
        self.record_id = record_id

    def __str__(self) -> str:
        if self.record_id is None:
            return self.message
        return f"[{self.record_id}] {self.message}"


@dataclass
class SyncResult:
    """Outcome of saving the changed rows of a TimetableState.

    Attributes:
        actions: MarkPersisted actions for rows the store created.
        saved_ids: Ids (as known before the save) written successfully.
        failures: One PersistenceError per row that could not be written.
    """

    actions: list[MarkPersisted] = field(default_factory=list)
    saved_ids: set = field(default_factory=set)
    failures: list[PersistenceError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    def apply(self, state: TimetableState) -> TimetableState:
        """Fold the result into a state: assign new ids, clear saved ids."""
        for action in self.actions:
            state = reduce(state, action)
        persisted = {a.persisted for a in self.actions}
        return reduce(state, ClearChanged(frozenset(self.saved_ids | persisted)))


class TemplateSync:
    """Reads and writes weekly template rows of one list."""

    def __init__(self, store: RecordStore, list_name: str = TEMPLATE_LIST):
        self.store = store
        self.list_name = list_name

    def fetch(self, contract_id: str) -> list[dict]:
        """Raw records of one contract."""
        reference = FIELD_TABLE["contract_reference"][0]
        return self.store.get_items(self.list_name, f"fields/{reference} eq '{contract_id}'")

    def create(self, row: TemplateRow) -> PersistedId:
        """Create a pending row in the store.

        Raises:
            PersistenceError: If the store rejects the row.
        """
        try:
            new_id = self.store.create_item(self.list_name, row_to_fields(row))
        except StoreError as exc:
            raise PersistenceError(str(exc), row.id) from exc
        logger.info("Created template row %s as %d", row.id, new_id)
        return PersistedId(new_id)

    def set_deleted(self, row: TemplateRow, deleted: bool) -> None:
        """Write only the deleted flag of a persisted row.

        Raises:
            PersistenceError: If the row has no store id yet or the update
                is rejected.
        """
        if not isinstance(row.id, PersistedId):
            raise PersistenceError("Row has not been created in the store yet", row.id)
        try:
            self.store.update_item(
                self.list_name, row.id.value, {wire_name("deleted"): 1 if deleted else 0}
            )
        except StoreError as exc:
            raise PersistenceError(str(exc), row.id) from exc

    def save_changes(self, state: TimetableState) -> SyncResult:
        """Write every changed row of ``state``.

        Pending rows are created one by one; persisted rows go out in a
        single batch update. The state itself is not modified; pass the
        result to ``SyncResult.apply`` to obtain the saved state.
        """
        result = SyncResult()
        updates = []
        for row in state.changed_rows:
            if isinstance(row.id, PendingId):
                try:
                    persisted = self.create(row)
                except PersistenceError as exc:
                    logger.warning("Could not create row %s: %s", row.id, exc.message)
                    result.failures.append(exc)
                    continue
                result.actions.append(MarkPersisted(row.id, persisted))
                result.saved_ids.add(row.id)
            else:
                updates.append((row.id.value, row_to_fields(row, include_creator=False)))

        if updates:
            for outcome in self.store.batch_update(self.list_name, updates):
                record_id = PersistedId(outcome.id)
                if outcome.success:
                    result.saved_ids.add(record_id)
                else:
                    logger.warning("Could not update row %s: %s", record_id, outcome.error)
                    result.failures.append(
                        PersistenceError(outcome.error or "Update failed", record_id)
                    )
        logger.info(
            "Saved %d of %d changed rows", len(result.saved_ids), len(state.changed)
        )
        return result


def fetch_schedule_range(
    store: RecordStore,
    start: date,
    end: date,
    list_name: str = SCHEDULE_LIST,
    config: Optional[DateRangeConfig] = None,
) -> list[dict]:
    """Existing daily schedule records between two civil days."""
    return store.get_items(list_name, build_date_range_filter(start, end, config))


def write_schedule_entries(
    store: RecordStore,
    entries: Sequence[ScheduleEntry],
    list_name: str = SCHEDULE_LIST,
) -> tuple[list[int], list[PersistenceError]]:
    """Create one daily record per schedule entry.

    Returns:
        Ids of the created records and the failures, in entry order.
    """
    created = []
    failures = []
    for entry in entries:
        try:
            created.append(store.create_item(list_name, entry.to_record()))
        except StoreError as exc:
            failures.append(
                PersistenceError(f"{serialize_date_only(entry.date)}: {exc}")
            )
    if failures:
        logger.warning("%d of %d schedule records failed", len(failures), len(entries))
    return created, failures
