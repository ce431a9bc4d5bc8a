"""Tests for the field-resolution table and template record codec."""

import pytest

from weekplan.domain.fields import (
    missing_day_fields,
    resolve_creator,
    resolve_field,
    row_from_record,
    row_to_fields,
)
from weekplan.domain.models import PendingId, PersistedId, TemplateRow, TimeOfDay, Weekday


def store_item(item_id="5", **overrides) -> dict:
    """A weekly template item as the store returns it."""
    fields = {
        "Title": "Week 2 Shift 3",
        "NumberOfWeek": 2,
        "NumberOfShift": 3,
        "TimeForLunch": 45,
        "Contract": 1,
        "Deleted": 0,
        "IdOfTemplateLookupId": "15",
        "CreatorLookupId": "7",
        "MondeyStartWork": "2025-01-01T08:00:00Z",
        "MondayEndWork": "2025-01-01T16:30:00Z",
    }
    fields.update(overrides)
    return {"id": item_id, "fields": fields}


class TestResolveField:
    """Tests for resolve_field."""

    def test_first_accepted_name_wins(self):
        """Names are tried in priority order."""
        fields = {"MondeyStartWork": "a", "MondayStartWork": "b"}
        assert resolve_field(fields, "monday_start") == "a"

    def test_fallback_name(self):
        """Later names are used when earlier ones are absent."""
        assert resolve_field({"MondayStartWork": "b"}, "monday_start") == "b"
        assert resolve_field({"numberOfWeek": 4}, "week_number") == 4

    def test_default(self):
        """Absent fields return the default."""
        assert resolve_field({}, "lunch", 30) == 30

    def test_creator_variants(self):
        """Creator is read from any accepted name and coerced to str."""
        assert resolve_creator({"CreatorLookupId": 7}) == "7"
        assert resolve_creator({"creatorId": "8"}) == "8"
        assert resolve_creator({"Creator": {"Id": 9}}) == "9"
        assert resolve_creator({}) == "0"


class TestRowFromRecord:
    """Tests for row_from_record."""

    def test_decodes_nested_item(self):
        """Store items decode into rows."""
        row = row_from_record(store_item())
        assert row.id == PersistedId(5)
        assert (row.week_number, row.shift_number) == (2, 3)
        assert row.lunch_minutes == 45
        assert row.contract_reference == "15"
        assert row.creator_id == "7"
        assert row.day(Weekday.MONDAY).start == TimeOfDay(8, 0)
        assert row.day(Weekday.MONDAY).end == TimeOfDay(16, 30)
        assert row.day(Weekday.SUNDAY).is_zero

    def test_week_from_title_when_field_missing(self):
        """Legacy records without numbers fall back to the title."""
        item = store_item()
        del item["fields"]["NumberOfWeek"]
        del item["fields"]["NumberOfShift"]
        row = row_from_record(item)
        assert (row.week_number, row.shift_number) == (2, 3)

    def test_deleted_flag(self):
        """Deleted is true only when numerically 1."""
        assert row_from_record(store_item(Deleted="1")).deleted
        assert not row_from_record(store_item(Deleted=0)).deleted

    def test_flat_record(self):
        """Flat dicts with an ID field are accepted."""
        flat = dict(store_item()["fields"], ID=9)
        assert row_from_record(flat).id == PersistedId(9)

    def test_missing_id_raises(self):
        """Items without an id cannot become rows."""
        with pytest.raises(ValueError):
            row_from_record({"fields": {"NumberOfWeek": 1}})


class TestRowToFields:
    """Tests for row_to_fields."""

    def test_uses_primary_wire_names(self):
        """Monday start is written with the store's spelling."""
        row = row_from_record(store_item())
        fields = row_to_fields(row)
        assert fields["MondeyStartWork"] == "2025-01-01T08:00:00Z"
        assert fields["MondayEndWork"] == "2025-01-01T16:30:00Z"
        assert "MondayStartWork" not in fields
        assert fields["NumberOfWeek"] == 2
        assert fields["Deleted"] == 0
        assert fields["CreatorLookupId"] == "7"

    def test_decoding_encoded_row_keeps_values(self):
        """Encoded rows decode to the same times and numbers."""
        row = TemplateRow.new(1, 2, contract_reference="3").with_changes(lunch_minutes=60)
        decoded = row_from_record({"id": "11", "fields": row_to_fields(row)})
        assert decoded.days == row.days
        assert (decoded.week_number, decoded.shift_number, decoded.lunch_minutes) == (1, 2, 60)

    def test_pending_rows_encode(self):
        """Pending ids do not leak into the fields."""
        row = TemplateRow(id=PendingId("new_x"))
        assert "id" not in row_to_fields(row)


class TestMissingDayFields:
    """Tests for missing_day_fields."""

    def test_reports_days_with_absent_fields(self):
        """Days missing either boundary are reported."""
        fields = store_item()["fields"]
        missing = missing_day_fields(fields)
        assert Weekday.MONDAY not in missing
        assert Weekday.TUESDAY in missing
        assert len(missing) == 6
