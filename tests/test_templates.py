"""Tests for template loading and grouping."""

from typing import Optional

from weekplan.domain.fields import row_to_fields, wire_name
from weekplan.domain.models import DayHours, PersistedId, TemplateRow, TimeOfDay, Weekday
from weekplan.scheduling.templates import (
    LoaderConfig,
    TemplateLoader,
    TemplateSet,
    decompose_row,
    find_templates_for_day,
    group_templates,
    load_templates,
    rows_from_records,
)

DAY = DayHours(TimeOfDay(8, 0), TimeOfDay(16, 0))


def make_row(
    week: int = 1,
    shift: int = 1,
    deleted: bool = False,
    creator: Optional[str] = "7",
    reference: str = "15",
    days: Optional[dict] = None,
) -> TemplateRow:
    return TemplateRow(
        id=PersistedId(week * 100 + shift),
        week_number=week,
        shift_number=shift,
        days=days if days is not None else {Weekday.MONDAY: DAY},
        deleted=deleted,
        creator_id=creator,
        contract_reference=reference,
    )


def to_record(row: TemplateRow) -> dict:
    return {"id": str(row.id), "fields": row_to_fields(row)}


class TestDecomposeRow:
    """Tests for decompose_row."""

    def test_one_template_per_weekday(self):
        """Zero days are emitted too."""
        templates = decompose_row(make_row())
        assert len(templates) == 7
        monday = [t for t in templates if t.weekday == Weekday.MONDAY][0]
        assert monday.start_time == "08:00"
        assert monday.group_key == "1-1-1"
        assert sum(1 for t in templates if t.is_zero) == 6

    def test_skip_days(self):
        """Skipped weekdays produce no tuple."""
        templates = decompose_row(make_row(), skip=[Weekday.SUNDAY])
        assert Weekday.SUNDAY not in {t.weekday for t in templates}


class TestFindTemplatesForDay:
    """Tests for find_templates_for_day."""

    def test_sorted_by_shift(self):
        """Shifts of the same day come back in shift order."""
        templates = decompose_row(make_row(1, 2)) + decompose_row(make_row(1, 1))
        found = find_templates_for_day(group_templates(templates), 1, Weekday.MONDAY)
        assert [t.shift_number for t in found] == [1, 2]

    def test_week_one_fallback(self):
        """Later weeks without templates reuse week 1."""
        groups = group_templates(decompose_row(make_row(1, 1)))
        found = find_templates_for_day(groups, 3, Weekday.MONDAY)
        assert [t.week_number for t in found] == [1]

    def test_fallback_disabled(self):
        """Without the fallback a missing week finds nothing."""
        groups = group_templates(decompose_row(make_row(1, 1)))
        assert find_templates_for_day(groups, 3, Weekday.MONDAY, fallback_to_week_one=False) == []

    def test_duplicate_keys_kept(self):
        """Two rows with the same (week, shift) share one group."""
        first = make_row(1, 1)
        second = first.with_changes(id=PersistedId(999))
        groups = group_templates(decompose_row(first) + decompose_row(second))
        assert len(groups["1-1-1"]) == 2


class TestTemplateSet:
    """Tests for TemplateSet."""

    def test_from_rows_skips_deleted(self):
        """Deleted rows never reach expansion."""
        template_set = TemplateSet.from_rows([make_row(1, 1), make_row(1, 2, deleted=True)])
        assert len(template_set) == 7
        assert template_set.diagnostics.dropped_deleted == 1

    def test_stats(self):
        """Statistics count weeks, shifts and non-zero days."""
        rows = [make_row(1, 1), make_row(2, 1), make_row(2, 2)]
        stats = TemplateSet.from_rows(rows).stats()
        assert stats == {
            "total_templates": 21,
            "week_count": 2,
            "shift_count": 2,
            "days_covered": 1,
        }


class TestTemplateLoader:
    """Tests for TemplateLoader."""

    def test_pipeline_counts(self):
        """Creator and deleted filters are counted separately."""
        records = [
            to_record(make_row(1, 1)),
            to_record(make_row(1, 2, creator="8")),
            to_record(make_row(2, 1, deleted=True)),
        ]
        template_set = TemplateLoader(LoaderConfig(manager_id="7")).load(records)
        diagnostics = template_set.diagnostics

        assert diagnostics.total == 3
        assert diagnostics.dropped_by_creator == 1
        assert diagnostics.dropped_deleted == 1
        assert diagnostics.after_deleted_filter == 1
        assert diagnostics.templates_emitted == 7
        assert template_set.week_numbers == [1]

    def test_no_manager_keeps_all_creators(self):
        """Without a manager id the creator filter is off."""
        records = [to_record(make_row(1, 1)), to_record(make_row(1, 2, creator="8"))]
        template_set = TemplateLoader().load(records)
        assert template_set.diagnostics.dropped_by_creator == 0
        assert template_set.shift_numbers == [1, 2]

    def test_missing_day_fields_skipped(self):
        """Days whose fields are absent are skipped and counted."""
        record = to_record(make_row())
        del record["fields"][wire_name("sunday_end")]
        template_set = TemplateLoader().load([record])
        assert template_set.diagnostics.skipped_days == 1
        assert len(template_set) == 6

    def test_malformed_record_counted(self):
        """Records without an id are dropped as malformed."""
        record = to_record(make_row())
        del record["id"]
        template_set = TemplateLoader().load([record])
        assert template_set.diagnostics.dropped_malformed == 1
        assert len(template_set) == 0

    def test_duplicate_keys_counted(self):
        """Duplicate (week, weekday, shift) keys are reported."""
        row = make_row()
        records = [to_record(row), to_record(row.with_changes(id=PersistedId(2)))]
        template_set = TemplateLoader().load(records)
        assert template_set.diagnostics.duplicate_keys == 7


class TestLoadTemplates:
    """Tests for load_templates and rows_from_records."""

    def test_filters_by_contract_and_sorts(self):
        """Only the contract's rows are returned, ordered by week then shift."""
        records = [
            to_record(make_row(2, 1)),
            to_record(make_row(1, 2)),
            to_record(make_row(1, 1)),
            to_record(make_row(1, 3, reference="99")),
        ]
        rows = load_templates(records, "15")
        assert [(r.week_number, r.shift_number) for r in rows] == [(1, 1), (1, 2), (2, 1)]

    def test_totals_are_computed(self):
        """Loaded rows carry row totals and week aggregates."""
        records = [to_record(make_row(1, 1)), to_record(make_row(1, 2))]
        rows = load_templates(records, "15")
        assert rows[0].total_hours == "7h:30m"
        assert rows[0].displayed_total_hours == "15h:00m"
        assert rows[1].displayed_total_hours is None

    def test_deleted_rows_included_by_default(self):
        """Deleted rows stay visible so they can be restored."""
        records = [to_record(make_row(1, 1)), to_record(make_row(1, 2, deleted=True))]
        assert len(load_templates(records, "15")) == 2
        assert len(load_templates(records, "15", include_deleted=False)) == 1

    def test_creator_filter(self):
        """A creator id keeps only that manager's rows."""
        records = [to_record(make_row(1, 1)), to_record(make_row(1, 2, creator="8"))]
        rows = load_templates(records, "15", creator_id="8")
        assert [r.shift_number for r in rows] == [2]

    def test_rows_from_records_skips_malformed(self):
        """Records without an id are dropped."""
        bad = to_record(make_row())
        del bad["id"]
        assert rows_from_records([bad]) == []
