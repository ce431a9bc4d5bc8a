"""Tests for template validation."""

import pytest

from weekplan.domain.models import DayHours, PendingId, PersistedId, TemplateRow, TimeOfDay, Weekday
from weekplan.validation.validator import (
    TemplateValidator,
    ValidationErrorType,
)


class TestTemplateValidator:
    """Tests for TemplateValidator."""

    @pytest.fixture
    def validator(self):
        """Create a validator with the default policy."""
        return TemplateValidator()

    @pytest.fixture
    def day_shift(self):
        """A regular 08:00-16:00 working day."""
        return DayHours(TimeOfDay(8, 0), TimeOfDay(16, 0))

    def _row(self, week, shift, row_id=None, **kwargs):
        return TemplateRow(
            id=row_id or PersistedId(week * 100 + shift),
            week_number=week,
            shift_number=shift,
            **kwargs,
        )

    def test_valid_rows(self, validator, day_shift):
        """Contiguous weeks and shifts with sane values pass."""
        rows = [
            self._row(1, 1, days={Weekday.MONDAY: day_shift}),
            self._row(1, 2),
            self._row(2, 1),
        ]
        result = validator.validate(rows)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_lunch_out_of_range(self, validator):
        """Lunch beyond 120 minutes is an error."""
        result = validator.validate([self._row(1, 1, lunch_minutes=150)])
        assert not result.is_valid
        errors = result.errors_of(ValidationErrorType.INVALID_LUNCH_DURATION)
        assert len(errors) == 1
        assert errors[0].row_id == PersistedId(101)

    def test_identical_start_and_end_warns(self, validator):
        """A non-zero day with equal start and end only warns."""
        same = DayHours(TimeOfDay(9, 0), TimeOfDay(9, 0))
        result = validator.validate([self._row(1, 1, days={Weekday.FRIDAY: same})])
        assert result.is_valid
        assert len(result.warnings) == 1
        assert "zero_length_shift" in result.warnings[0]
        assert "Friday" in result.warnings[0]

    def test_overnight_day_is_fine(self, validator):
        """End before start is an overnight shift, not an error."""
        night = DayHours(TimeOfDay(22, 0), TimeOfDay(6, 0))
        result = validator.validate([self._row(1, 1, days={Weekday.MONDAY: night})])
        assert result.is_valid
        assert result.warnings == []

    def test_duplicate_week_shift(self, validator):
        """Two persisted rows may not share a (week, shift)."""
        rows = [self._row(1, 1), self._row(1, 1, row_id=PersistedId(7))]
        result = validator.validate(rows)
        errors = result.errors_of(ValidationErrorType.DUPLICATE_WEEK_SHIFT)
        assert len(errors) == 1
        assert "row 101" in errors[0].message

    def test_pending_rows_skip_duplicate_check(self, validator):
        """Unsaved rows are not checked for duplicates."""
        rows = [self._row(1, 1), self._row(1, 1, row_id=PendingId("new_a"))]
        assert validator.validate(rows).is_valid

    def test_missing_week(self, validator):
        """Week numbering must have no holes."""
        result = validator.validate([self._row(1, 1), self._row(3, 1)])
        errors = result.errors_of(ValidationErrorType.INVALID_WEEK_NUMBER)
        assert len(errors) == 1
        assert errors[0].details["missing_weeks"] == [2]

    def test_deleted_shift_below_active_shift(self, validator):
        """A deleted shift under an active one is a gap."""
        rows = [self._row(1, 1, deleted=True), self._row(1, 2)]
        result = validator.validate(rows)
        errors = result.errors_of(ValidationErrorType.SHIFT_GAP)
        assert len(errors) == 1
        assert errors[0].details == {"week": 1, "shifts": [1]}

    def test_deleted_top_shift_is_fine(self, validator):
        """Deleting from the top leaves no gap."""
        rows = [self._row(1, 1), self._row(1, 2, deleted=True)]
        assert validator.validate(rows).is_valid

    def test_error_string(self, validator):
        """Errors print their type, row and message."""
        result = validator.validate([self._row(1, 1, lunch_minutes=-1)])
        text = str(result.errors[0])
        assert text.startswith("[invalid_lunch_duration] Row 101:")

    def test_empty(self, validator):
        """No rows is valid."""
        assert validator.validate([]).is_valid
