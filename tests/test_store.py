"""Tests for the record store and template sync."""

from datetime import date

import pytest

from weekplan.domain.fields import row_to_fields
from weekplan.domain.models import (
    DayHours,
    PendingId,
    PersistedId,
    ScheduleEntry,
    TemplateRow,
    TimeOfDay,
    Weekday,
)
from weekplan.scheduling.reducer import AddShift, EditLunch, TimetableState, reduce
from weekplan.scheduling.templates import load_templates
from weekplan.store.record_store import InMemoryRecordStore, StoreError, matches_filter
from weekplan.store.sync import (
    SCHEDULE_LIST,
    TEMPLATE_LIST,
    PersistenceError,
    TemplateSync,
    fetch_schedule_range,
    write_schedule_entries,
)


def template_fields(week: int = 1, shift: int = 1, reference: str = "15") -> dict:
    row = TemplateRow(
        id=PendingId("new_seed"),
        week_number=week,
        shift_number=shift,
        days={Weekday.MONDAY: DayHours(TimeOfDay(8, 0), TimeOfDay(16, 0))},
        contract_reference=reference,
        creator_id="7",
    )
    return row_to_fields(row)


def make_entry(day: int) -> ScheduleEntry:
    return ScheduleEntry(
        date=date(2025, 3, day),
        weekday=Weekday.from_date(date(2025, 3, day)),
        week_number=1,
        calendar_week=1,
        shift_number=1,
        start=TimeOfDay(8, 0),
        end=TimeOfDay(16, 0),
        lunch_minutes=30,
        contract_reference="15",
    )


def loaded_state(store: InMemoryRecordStore) -> TimetableState:
    records = TemplateSync(store).fetch("15")
    return TimetableState.from_rows(load_templates(records, "15"))


class TestMatchesFilter:
    """Tests for filter evaluation."""

    def test_eq_and_ne(self):
        """Equality compares string forms."""
        fields = {"IdOfTemplateLookupId": "15", "Deleted": 0}
        assert matches_filter(fields, "fields/IdOfTemplateLookupId eq '15'")
        assert matches_filter(fields, "fields/Deleted ne '1'")
        assert not matches_filter(fields, "fields/IdOfTemplateLookupId eq '16'")

    def test_datetime_range(self):
        """Timestamps compare chronologically."""
        fields = {"Date": "2025-03-03T00:00:00Z"}
        expression = (
            "fields/Date ge '2025-03-02T23:59:59Z' and fields/Date le '2025-03-03T00:00:01Z'"
        )
        assert matches_filter(fields, expression)
        assert not matches_filter(fields, "fields/Date gt '2025-03-03T00:00:00Z'")

    def test_missing_field(self):
        """Absent fields only satisfy ne."""
        assert not matches_filter({}, "fields/Date ge '2025-03-01T00:00:00Z'")
        assert matches_filter({}, "fields/Deleted ne '1'")

    def test_unsupported_clause(self):
        """Unparsable filters raise StoreError."""
        with pytest.raises(StoreError):
            matches_filter({}, "startswith(fields/Title, 'Week')")


class TestInMemoryRecordStore:
    """Tests for InMemoryRecordStore."""

    def test_sequential_ids_and_item_shape(self):
        """Items come back as {"id", "fields"} in id order."""
        store = InMemoryRecordStore()
        ids = store.seed("L", [{"Title": "a"}, {"Title": "b"}])
        assert ids == [1, 2]
        items = store.get_items("L")
        assert items[0] == {"id": "1", "fields": {"Title": "a"}}

    def test_update_missing_item(self):
        """Updating an unknown id raises."""
        with pytest.raises(StoreError):
            InMemoryRecordStore().update_item("L", 3, {"Title": "x"})

    def test_batch_update_reports_each_item(self):
        """One failing item does not stop the batch."""
        store = InMemoryRecordStore()
        store.seed("L", [{"Title": "a"}, {"Title": "b"}])
        store.fail_update_ids = {1}
        results = store.batch_update("L", [(1, {"Title": "x"}), (2, {"Title": "y"})])

        assert [r.success for r in results] == [False, True]
        assert results[0].error is not None
        assert store.get_items("L")[1]["fields"]["Title"] == "y"


class TestTemplateSync:
    """Tests for TemplateSync."""

    def test_fetch_filters_by_contract(self):
        """Only the contract's rows are fetched."""
        store = InMemoryRecordStore()
        store.seed(TEMPLATE_LIST, [template_fields(), template_fields(reference="99")])
        records = TemplateSync(store).fetch("15")
        assert [r["id"] for r in records] == ["1"]

    def test_save_creates_and_updates(self):
        """Pending rows are created, persisted rows updated, ids swapped."""
        store = InMemoryRecordStore()
        store.seed(TEMPLATE_LIST, [template_fields()])
        state = loaded_state(store)
        state = reduce(state, EditLunch(PersistedId(1), 60))
        state = reduce(state, AddShift(1, contract_reference="15", creator_id="7"))

        result = TemplateSync(store).save_changes(state)
        assert result.success
        assert len(result.actions) == 1

        saved = result.apply(state)
        assert saved.changed == frozenset()
        assert not any(row.is_pending for row in saved.rows)
        assert store.lists[TEMPLATE_LIST][1]["TimeForLunch"] == 60
        assert store.lists[TEMPLATE_LIST][2]["NumberOfShift"] == 2

        reloaded = loaded_state(store)
        assert [(r.week_number, r.shift_number) for r in reloaded.rows] == [(1, 1), (1, 2)]

    def test_updates_keep_creator(self):
        """Updates never overwrite the stored creator."""
        store = InMemoryRecordStore()
        store.seed(TEMPLATE_LIST, [template_fields()])
        state = reduce(loaded_state(store), EditLunch(PersistedId(1), 45))
        store.lists[TEMPLATE_LIST][1]["CreatorLookupId"] = "42"

        TemplateSync(store).save_changes(state)
        assert store.lists[TEMPLATE_LIST][1]["CreatorLookupId"] == "42"

    def test_failed_update_stays_changed(self):
        """A rejected row is reported and kept in the changed set."""
        store = InMemoryRecordStore()
        store.seed(TEMPLATE_LIST, [template_fields()])
        store.fail_update_ids = {1}
        state = reduce(loaded_state(store), EditLunch(PersistedId(1), 45))

        result = TemplateSync(store).save_changes(state)
        assert not result.success
        assert str(result.failures[0]).startswith("[1] ")
        assert PersistedId(1) in result.apply(state).changed

    def test_failed_create(self):
        """Rejected creates keep the row pending."""
        store = InMemoryRecordStore()
        store.seed(TEMPLATE_LIST, [template_fields()])
        state = reduce(loaded_state(store), AddShift(1))
        store.fail_creates = True

        result = TemplateSync(store).save_changes(state)
        assert len(result.failures) == 1
        assert result.apply(state).rows[-1].is_pending

    def test_set_deleted(self):
        """Only the deleted flag is written."""
        store = InMemoryRecordStore()
        store.seed(TEMPLATE_LIST, [template_fields()])
        row = loaded_state(store).rows[0]

        TemplateSync(store).set_deleted(row, True)
        assert store.lists[TEMPLATE_LIST][1]["Deleted"] == 1

    def test_set_deleted_on_pending_row(self):
        """Pending rows cannot be written yet."""
        sync = TemplateSync(InMemoryRecordStore())
        with pytest.raises(PersistenceError):
            sync.set_deleted(TemplateRow.new(1, 1), True)


class TestScheduleRecords:
    """Tests for schedule record reads and writes."""

    def test_write_and_fetch_range(self):
        """Written entries are found by the inclusive day range."""
        store = InMemoryRecordStore()
        ids, failures = write_schedule_entries(store, [make_entry(d) for d in (3, 4, 5, 6)])
        assert ids == [1, 2, 3, 4]
        assert failures == []

        found = fetch_schedule_range(store, date(2025, 3, 4), date(2025, 3, 5))
        assert [r["fields"]["Date"] for r in found] == [
            "2025-03-04T00:00:00Z",
            "2025-03-05T00:00:00Z",
        ]
        assert store.get_items(SCHEDULE_LIST)[0]["fields"]["ShiftDate1Hours"] == 8

    def test_write_failures(self):
        """Failed creates are collected per entry."""
        store = InMemoryRecordStore()
        store.fail_creates = True
        ids, failures = write_schedule_entries(store, [make_entry(3)])
        assert ids == []
        assert "2025-03-03" in str(failures[0])
