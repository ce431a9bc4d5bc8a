"""Validation of weekly template rows.

Checks are limited to basic sanity: lunch range, time order, unique
(week, shift) pairs and contiguous week and shift numbering. Shift length
rules are not enforced.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from weekplan.domain.models import RecordId, TemplateRow, Weekday
from weekplan.domain.policies import DefaultWorkTimePolicy, WorkTimePolicy


class ValidationErrorType(Enum):
    """Types of validation errors."""

    INVALID_LUNCH_DURATION = "invalid_lunch_duration"
    ZERO_LENGTH_SHIFT = "zero_length_shift"
    DUPLICATE_WEEK_SHIFT = "duplicate_week_shift"
    SHIFT_GAP = "shift_gap"
    INVALID_WEEK_NUMBER = "invalid_week_number"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    row_id: Optional[RecordId] = None
    weekday: Optional[Weekday] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.row_id is not None:
            parts.append(f"Row {self.row_id}:")
        parts.append(self.message)
        if self.weekday is not None:
            parts.append(f"({self.weekday.title})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating template rows."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def errors_of(self, error_type: ValidationErrorType) -> list[ValidationError]:
        return [e for e in self.errors if e.error_type == error_type]


class TemplateValidator:
    """Validates the template rows of one contract.

    Example:
        >>> validator = TemplateValidator()
        >>> result = validator.validate(rows)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(self, policy: Optional[WorkTimePolicy] = None):
        self.policy = policy or DefaultWorkTimePolicy()

    def validate(self, rows: Sequence[TemplateRow]) -> ValidationResult:
        """Validate rows.

        Args:
            rows: All rows of a contract, deleted ones included.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)

        for row in rows:
            self._validate_row(row, result)

        self._validate_uniqueness(rows, result)
        self._validate_week_numbers(rows, result)
        self._validate_shift_gaps(rows, result)

        return result

    def _validate_row(self, row: TemplateRow, result: ValidationResult) -> None:
        if not self.policy.is_valid_lunch(row.lunch_minutes):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.INVALID_LUNCH_DURATION,
                    message=f"Lunch of {row.lunch_minutes} minutes is out of range",
                    row_id=row.id,
                )
            )

        # End before start is an overnight shift; only an identical
        # non-zero start and end is suspicious.
        for weekday in Weekday:
            hours = row.day(weekday)
            if hours.start == hours.end and not hours.is_zero:
                result.add_warning(
                    str(
                        ValidationError(
                            error_type=ValidationErrorType.ZERO_LENGTH_SHIFT,
                            message=f"Start and end are both {hours.start}",
                            row_id=row.id,
                            weekday=weekday,
                        )
                    )
                )

    def _validate_uniqueness(self, rows: Sequence[TemplateRow], result: ValidationResult) -> None:
        seen: dict[tuple[int, int], RecordId] = {}
        for row in rows:
            if row.is_pending:
                continue
            key = (row.week_number, row.shift_number)
            if key in seen:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_WEEK_SHIFT,
                        message=(
                            f"Week {key[0]} shift {key[1]} is also defined by row {seen[key]}"
                        ),
                        row_id=row.id,
                    )
                )
            else:
                seen[key] = row.id

    def _validate_week_numbers(self, rows: Sequence[TemplateRow], result: ValidationResult) -> None:
        weeks = sorted({r.week_number for r in rows})
        missing = [w for w in range(1, weeks[-1] + 1) if w not in weeks] if weeks else []
        if missing:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.INVALID_WEEK_NUMBER,
                    message=f"Weeks {', '.join(map(str, missing))} are missing",
                    details={"missing_weeks": missing},
                )
            )

    def _validate_shift_gaps(self, rows: Sequence[TemplateRow], result: ValidationResult) -> None:
        by_week: dict[int, list[TemplateRow]] = {}
        for row in rows:
            by_week.setdefault(row.week_number, []).append(row)

        for week, week_rows in sorted(by_week.items()):
            active = sorted(r.shift_number for r in week_rows if not r.deleted)
            if not active:
                continue
            deleted_below = sorted(
                r.shift_number for r in week_rows if r.deleted and r.shift_number < active[-1]
            )
            if deleted_below:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.SHIFT_GAP,
                        message=(
                            f"Week {week} has deleted shifts "
                            f"{', '.join(map(str, deleted_below))} below active shift {active[-1]}"
                        ),
                        details={"week": week, "shifts": deleted_below},
                    )
                )
