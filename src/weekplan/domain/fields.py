"""Field-resolution table and wire codec for weekly template records.

The record store returns the same logical field under several names
(casing differences, a lookup-id suffix, and the misspelled Monday start
field). Every read goes through ``FIELD_TABLE``, which lists the accepted
wire names for each logical field in priority order.
"""

import logging
from typing import Any

from weekplan.domain.dates import time_from_anchored_timestamp, time_to_anchored_timestamp
from weekplan.domain.models import (
    DEFAULT_LUNCH_MINUTES,
    DayHours,
    TemplateRow,
    Weekday,
    extract_shift_number,
    extract_week_number,
    parse_record_id,
)

logger = logging.getLogger(__name__)

FIELD_TABLE: dict[str, tuple[str, ...]] = {
    "id": ("id", "ID", "Id"),
    "title": ("Title", "title"),
    "week_number": ("NumberOfWeek", "numberOfWeek"),
    "shift_number": ("NumberOfShift", "numberOfShift"),
    "lunch": ("TimeForLunch", "timeForLunch"),
    "contract": ("Contract", "contract"),
    "deleted": ("Deleted", "deleted"),
    "contract_reference": ("IdOfTemplateLookupId", "idOfTemplate", "IdOfTemplate"),
    "creator": ("CreatorLookupId", "creatorId", "Creator"),
    # The store spells Monday's start field with a transposed vowel.
    "monday_start": ("MondeyStartWork", "MondayStartWork"),
    "monday_end": ("MondayEndWork",),
    "tuesday_start": ("TuesdayStartWork",),
    "tuesday_end": ("TuesdayEndWork",),
    "wednesday_start": ("WednesdayStartWork",),
    "wednesday_end": ("WednesdayEndWork",),
    "thursday_start": ("ThursdayStartWork",),
    "thursday_end": ("ThursdayEndWork",),
    "friday_start": ("FridayStartWork",),
    "friday_end": ("FridayEndWork",),
    "saturday_start": ("SaturdayStartWork",),
    "saturday_end": ("SaturdayEndWork",),
    "sunday_start": ("SundayStartWork",),
    "sunday_end": ("SundayEndWork",),
}

DEFAULT_CREATOR = "0"


def wire_name(logical: str) -> str:
    """Primary wire name used when writing a logical field."""
    return FIELD_TABLE[logical][0]


def day_field(weekday: Weekday, boundary: str) -> str:
    """Logical name of a weekday boundary, e.g. ``"monday_start"``."""
    return f"{weekday.key}_{boundary}"


def record_fields(item: dict) -> dict:
    """The field dict of a store item (``{"id", "fields"}`` or flat)."""
    nested = item.get("fields")
    if isinstance(nested, dict):
        return nested
    return item


def has_field(fields: dict, logical: str) -> bool:
    return any(name in fields for name in FIELD_TABLE[logical])


def resolve_field(fields: dict, logical: str, default: Any = None) -> Any:
    """Read a logical field, trying each accepted wire name in order.

    Args:
        fields: Raw field dict from the store.
        logical: Key of ``FIELD_TABLE``.
        default: Value returned when no accepted name is present.
    """
    for name in FIELD_TABLE[logical]:
        if name in fields and fields[name] is not None:
            return fields[name]
    return default


def _as_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        logger.debug("Non-numeric value %r, using %d", value, default)
        return default


def resolve_int(fields: dict, logical: str, default: int) -> int:
    return _as_int(resolve_field(fields, logical), default)


def resolve_creator(fields: dict) -> str:
    """Creator identity as a string (``"0"`` when absent)."""
    value = resolve_field(fields, "creator")
    if isinstance(value, dict):
        value = value.get("Id", value.get("id"))
    if value is None or value == "":
        return DEFAULT_CREATOR
    return str(value)


def is_deleted(fields: dict) -> bool:
    """True when the deleted flag is numerically 1."""
    return _as_int(resolve_field(fields, "deleted"), 0) == 1


def row_from_record(item: dict) -> TemplateRow:
    """Decode a store item into a TemplateRow.

    Week and shift numbers fall back to parsing the title. Missing day
    fields decode as 00:00. Total hours are left at their default and are
    computed by the aggregation engine.

    Raises:
        ValueError: If the item carries no usable id.
    """
    fields = record_fields(item)
    raw_id = item.get("id", resolve_field(fields, "id"))
    if raw_id is None:
        raise ValueError("store item has no id")
    title = resolve_field(fields, "title")

    days = {}
    for weekday in Weekday:
        start = time_from_anchored_timestamp(resolve_field(fields, day_field(weekday, "start")))
        end = time_from_anchored_timestamp(resolve_field(fields, day_field(weekday, "end")))
        days[weekday] = DayHours(start, end)

    creator = resolve_creator(fields)
    reference = resolve_field(fields, "contract_reference", "")
    return TemplateRow(
        id=parse_record_id(raw_id),
        week_number=max(1, resolve_int(fields, "week_number", extract_week_number(title))),
        shift_number=max(1, resolve_int(fields, "shift_number", extract_shift_number(title))),
        days=days,
        lunch_minutes=resolve_int(fields, "lunch", DEFAULT_LUNCH_MINUTES),
        contract_number=resolve_int(fields, "contract", 1),
        contract_reference=str(reference),
        creator_id=None if creator == DEFAULT_CREATOR else creator,
        deleted=is_deleted(fields),
    )


def row_to_fields(row: TemplateRow, include_creator: bool = True) -> dict:
    """Encode a TemplateRow with the primary wire names.

    Times are written as anchored timestamps.
    """
    fields: dict[str, Any] = {
        wire_name("title"): row.display_name,
        wire_name("week_number"): row.week_number,
        wire_name("shift_number"): row.shift_number,
        wire_name("lunch"): row.lunch_minutes,
        wire_name("contract"): row.contract_number,
        wire_name("deleted"): row.deleted_flag,
    }
    if row.contract_reference:
        fields[wire_name("contract_reference")] = row.contract_reference
    if include_creator and row.creator_id is not None:
        fields[wire_name("creator")] = row.creator_id
    for weekday in Weekday:
        hours = row.days[weekday]
        fields[wire_name(day_field(weekday, "start"))] = time_to_anchored_timestamp(hours.start)
        fields[wire_name(day_field(weekday, "end"))] = time_to_anchored_timestamp(hours.end)
    return fields


def missing_day_fields(fields: dict) -> list[Weekday]:
    """Weekdays whose start or end field is absent from a raw record."""
    return [
        weekday
        for weekday in Weekday
        if not has_field(fields, day_field(weekday, "start"))
        or not has_field(fields, day_field(weekday, "end"))
    ]

