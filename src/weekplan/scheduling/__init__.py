"""Template grouping, expansion, aggregation and lifecycle engines."""

from weekplan.scheduling.expansion import (
    DayExpansionInfo,
    ExpansionAnalysis,
    ExpansionConfig,
    ExpansionResult,
    LeavePeriod,
    ScheduleExpander,
    calendar_week_of_month,
    expand,
    template_week_for,
    week_chaining_description,
)
from weekplan.scheduling.lifecycle import (
    ShiftState,
    TransitionResult,
    can_delete_row,
    can_restore_row,
    delete_row,
    restore_row,
    state_of,
    toggle_row,
)
from weekplan.scheduling.provisioning import (
    analyze_weeks,
    check_can_add_new_week,
    check_can_add_new_week_from_rows,
    check_can_add_shift,
    new_shift_row,
    new_week_rows,
    next_shift_number,
)
from weekplan.scheduling.reducer import TimetableState, reduce
from weekplan.scheduling.templates import (
    LoadDiagnostics,
    LoaderConfig,
    TemplateLoader,
    TemplateSet,
    find_templates_for_day,
    group_templates,
    load_templates,
    rows_from_records,
)
from weekplan.scheduling.totals import (
    calculate_total_hours_for_template,
    format_total_hours,
    get_unique_templates,
    is_first_row_in_template,
    is_last_row_in_template,
    parse_total_hours,
    recalculate_row_total,
    update_displayed_total_hours,
)

__all__ = [
    # Templates
    "LoadDiagnostics",
    "LoaderConfig",
    "TemplateLoader",
    "TemplateSet",
    "find_templates_for_day",
    "group_templates",
    "load_templates",
    "rows_from_records",
    # Expansion
    "DayExpansionInfo",
    "ExpansionAnalysis",
    "ExpansionConfig",
    "ExpansionResult",
    "LeavePeriod",
    "ScheduleExpander",
    "calendar_week_of_month",
    "expand",
    "template_week_for",
    "week_chaining_description",
    # Totals
    "calculate_total_hours_for_template",
    "format_total_hours",
    "get_unique_templates",
    "is_first_row_in_template",
    "is_last_row_in_template",
    "parse_total_hours",
    "recalculate_row_total",
    "update_displayed_total_hours",
    # Lifecycle
    "ShiftState",
    "TransitionResult",
    "can_delete_row",
    "can_restore_row",
    "delete_row",
    "restore_row",
    "state_of",
    "toggle_row",
    # Provisioning
    "analyze_weeks",
    "check_can_add_new_week",
    "check_can_add_new_week_from_rows",
    "check_can_add_shift",
    "new_shift_row",
    "new_week_rows",
    "next_shift_number",
    # Reducer
    "TimetableState",
    "reduce",
]
