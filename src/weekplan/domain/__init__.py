"""Domain models, date utilities and worked-time rules."""

from weekplan.domain.dates import (
    DateRangeConfig,
    Period,
    SessionDateStore,
    build_date_range_filter,
    deserialize_date_only,
    end_of_month,
    end_of_week,
    filter_end_boundary,
    filter_start_boundary,
    format_for_display,
    month_period,
    same_day,
    serialize_date_only,
    start_of_month,
    start_of_week,
    time_from_anchored_timestamp,
    time_from_numeric,
    time_to_anchored_timestamp,
    time_to_numeric,
    to_canonical_date,
    to_storage_datetime,
)
from weekplan.domain.fields import FIELD_TABLE, resolve_field, row_from_record, row_to_fields
from weekplan.domain.models import (
    AddShiftDecision,
    AddWeekDecision,
    DayHours,
    MessageLevel,
    PendingId,
    PersistedId,
    RecordId,
    ScheduleEntry,
    ScheduleTemplate,
    StatusMessage,
    TemplateRow,
    TimeOfDay,
    WeekAnalysis,
    Weekday,
    extract_shift_number,
    extract_week_number,
    parse_record_id,
)
from weekplan.domain.policies import DefaultWorkTimePolicy, WorkTimePolicy
from weekplan.domain.weekdays import DayInfo, ordered_weekdays, start_day_name

__all__ = [
    # Models
    "AddShiftDecision",
    "AddWeekDecision",
    "DayHours",
    "MessageLevel",
    "PendingId",
    "PersistedId",
    "RecordId",
    "ScheduleEntry",
    "ScheduleTemplate",
    "StatusMessage",
    "TemplateRow",
    "TimeOfDay",
    "WeekAnalysis",
    "Weekday",
    "extract_shift_number",
    "extract_week_number",
    "parse_record_id",
    # Dates
    "DateRangeConfig",
    "Period",
    "SessionDateStore",
    "build_date_range_filter",
    "deserialize_date_only",
    "end_of_month",
    "end_of_week",
    "filter_end_boundary",
    "filter_start_boundary",
    "format_for_display",
    "month_period",
    "same_day",
    "serialize_date_only",
    "start_of_month",
    "start_of_week",
    "time_from_anchored_timestamp",
    "time_from_numeric",
    "time_to_anchored_timestamp",
    "time_to_numeric",
    "to_canonical_date",
    "to_storage_datetime",
    # Weekdays
    "DayInfo",
    "ordered_weekdays",
    "start_day_name",
    # Fields
    "FIELD_TABLE",
    "resolve_field",
    "row_from_record",
    "row_to_fields",
    # Policies
    "DefaultWorkTimePolicy",
    "WorkTimePolicy",
]
