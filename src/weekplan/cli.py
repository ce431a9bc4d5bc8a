"""Command-line interface for the weekplan template engine."""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from weekplan.domain.dates import (
    deserialize_date_only,
    format_for_display,
    month_period,
    time_to_anchored_timestamp,
)
from weekplan.domain.fields import day_field, record_fields, resolve_field, wire_name
from weekplan.domain.models import TimeOfDay, Weekday
from weekplan.domain.weekdays import DEFAULT_WEEK_START_DAY, ordered_weekdays, start_day_name
from weekplan.output.debug_generator import DebugGenerator
from weekplan.scheduling.expansion import ExpansionConfig, ScheduleExpander
from weekplan.scheduling.provisioning import analyze_weeks, check_can_add_new_week
from weekplan.scheduling.reducer import (
    AddShift,
    AddWeek,
    DeleteShift,
    EditLunch,
    EditTime,
    TimetableState,
    reduce,
)
from weekplan.scheduling.templates import LoaderConfig, TemplateLoader, load_templates
from weekplan.scheduling.totals import get_unique_templates
from weekplan.store.record_store import InMemoryRecordStore
from weekplan.store.sync import TEMPLATE_LIST, TemplateSync
from weekplan.validation.validator import TemplateValidator


def read_records(path: str) -> list[dict]:
    """Read a JSON dump of store records (a list, or ``{"value": [...]}``)."""
    data = json.loads(Path(path).read_text())
    if isinstance(data, dict):
        data = data.get("value", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of records")
    return data


def _parse_day(text: Optional[str], name: str) -> Optional[date]:
    if text is None:
        return None
    parsed = deserialize_date_only(text)
    if parsed is None:
        raise ValueError(f"{name} must be YYYY-MM-DD, got {text!r}")
    return parsed


def run_expand(args: argparse.Namespace) -> int:
    """Expand a contract's templates over a month or an explicit range."""
    records = read_records(args.records)
    if args.contract:
        records = [
            r for r in records
            if str(resolve_field(record_fields(r), "contract_reference")) == str(args.contract)
        ]

    loader = TemplateLoader(LoaderConfig(manager_id=args.manager, week_start_day=args.week_start))
    template_set = loader.load(records)

    start = _parse_day(args.start, "--start")
    end = _parse_day(args.end, "--end")
    if start is None:
        period = month_period(_parse_day(args.month, "--month") or date.today())
        start, end = period.first_day, period.last_day
    elif end is None:
        end = start

    config = ExpansionConfig(
        week_start_day=args.week_start,
        holidays={_parse_day(h, "--holiday") for h in args.holiday or []},
        template_title=args.title,
    )
    result = ScheduleExpander(config).expand(template_set, start, end)

    if args.json:
        print(json.dumps([entry.to_record() for entry in result.entries], indent=2))
    else:
        print(f"Expanding {format_for_display(start)} - {format_for_display(end)} "
              f"(week starts on {start_day_name(args.week_start)})")
        print(f"  Templates loaded: {len(template_set)}")
        print(f"  Entries generated: {len(result.entries)}")
        for entry in result.entries:
            flags = " holiday" if entry.is_holiday else ""
            print(f"    {format_for_display(entry.date)} {entry.weekday.title:<9} "
                  f"week {entry.week_number} shift {entry.shift_number}: "
                  f"{entry.start_time}-{entry.end_time} lunch {entry.lunch_minutes}{flags}")

    if args.debug:
        DebugGenerator().generate(template_set, result, args.debug)
        print(f"\nDebug output written to {args.debug}", file=sys.stderr)
    return 0


def run_weeks(args: argparse.Namespace) -> int:
    """Report the weeks of a contract and whether a week can be added."""
    rows = load_templates(read_records(args.records), args.contract, args.week_start, args.manager)
    analysis = analyze_weeks(rows)
    decision = check_can_add_new_week(analysis)

    print(f"Weeks: {', '.join(map(str, analysis.week_numbers)) or '-'}")
    print(f"Fully deleted weeks: {', '.join(map(str, analysis.fully_deleted_weeks)) or '-'}")
    print(f"Can add week: {'yes' if decision.can_add else 'no'}")
    print(f"  {decision.message}")
    return 0


def run_totals(args: argparse.Namespace) -> int:
    """Print per-shift and per-week totals, then validate the rows."""
    rows = load_templates(read_records(args.records), args.contract, args.week_start, args.manager)
    days = ordered_weekdays(args.week_start)
    print(f"{'Row':<16} {'Status':<8} {'Total':>9} {'Week total':>10}")
    for group in get_unique_templates(rows).values():
        for row in group:
            status = "deleted" if row.deleted else "active"
            print(f"{row.display_name:<16} {status:<8} {row.total_hours:>9} "
                  f"{row.displayed_total_hours or '':>10}")
            working = [
                f"{d.name[:3]} {row.day(d.weekday).start}-{row.day(d.weekday).end}"
                for d in days
                if not row.day(d.weekday).is_zero
            ]
            if working:
                print(f"    {', '.join(working)}")

    result = TemplateValidator().validate(rows)
    if result.is_valid:
        print("\nValidation: PASSED")
    else:
        print(f"\nValidation: FAILED ({len(result.errors)} errors)")
        for error in result.errors:
            print(f"  - {error}")
    for warning in result.warnings:
        print(f"  ! {warning}")
    return 0 if result.is_valid else 1


def _sample_fields(week: int, shift: int, start: str, end: str) -> dict:
    fields = {
        "Title": f"Week {week}" + (f" Shift {shift}" if shift > 1 else ""),
        "NumberOfWeek": week,
        "NumberOfShift": shift,
        "TimeForLunch": 30,
        "Contract": 1,
        "Deleted": 0,
        "IdOfTemplateLookupId": "1",
        "CreatorLookupId": "7",
    }
    for weekday in Weekday:
        # Weekdays work, weekends stay 00:00-00:00.
        working = weekday <= Weekday.FRIDAY
        day_start = TimeOfDay.from_string(start) if working else TimeOfDay.zero()
        day_end = TimeOfDay.from_string(end) if working else TimeOfDay.zero()
        fields[wire_name(day_field(weekday, "start"))] = time_to_anchored_timestamp(day_start)
        fields[wire_name(day_field(weekday, "end"))] = time_to_anchored_timestamp(day_end)
    return fields


def run_demo(month: Optional[str] = None) -> None:
    """Run the full edit, save and expand flow against an in-memory store."""
    store = InMemoryRecordStore()
    store.seed(TEMPLATE_LIST, [
        _sample_fields(1, 1, "08:00", "16:00"),
        _sample_fields(2, 1, "10:00", "18:00"),
    ])
    sync = TemplateSync(store)

    rows = load_templates(sync.fetch("1"), "1", DEFAULT_WEEK_START_DAY, "7")
    state = TimetableState.from_rows(rows)
    print(f"Loaded {len(state.rows)} template rows")

    state = reduce(state, AddShift(week_number=2, contract_reference="1", creator_id="7"))
    print(f"  {state.message.text}")
    new_row = state.rows[-1]
    state = reduce(state, EditTime(new_row.id, Weekday.SATURDAY, "start", TimeOfDay(9, 0)))
    state = reduce(state, EditTime(new_row.id, Weekday.SATURDAY, "end", TimeOfDay(13, 0)))
    state = reduce(state, EditLunch(new_row.id, 0))
    state = reduce(state, AddWeek(contract_reference="1", creator_id="7"))
    print(f"  {state.message.text}")
    state = reduce(state, DeleteShift(state.rows[-1].id))
    print(f"  {state.message.text}")

    for week, group in get_unique_templates(state.rows).items():
        print(f"  Week {week} total: {group[0].displayed_total_hours}")

    saved = sync.save_changes(state)
    state = saved.apply(state)
    print(f"Saved: {len(saved.saved_ids)} rows, failures: {len(saved.failures)}")

    selected = _parse_day(month, "--month") if month else date.today()
    template_set = TemplateLoader(LoaderConfig(manager_id="7")).load(sync.fetch("1"))
    period = month_period(selected)
    result = ScheduleExpander().expand_period(template_set, period)
    print(f"Expanded {period.total_days} days into {len(result.entries)} schedule entries")
    print()
    print(DebugGenerator().generate_to_string(template_set, result))


def main() -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="weekplan - Weekly template and schedule expansion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                                 Run the in-memory demo
  %(prog)s expand records.json --contract 12    Expand the current month
  %(prog)s expand records.json --start 2025-03-03 --end 2025-03-09
  %(prog)s weeks records.json --contract 12     Week analysis
  %(prog)s totals records.json --contract 12    Totals and validation
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("records", help="JSON file with template records")
        sub.add_argument("--contract", default=None, help="Contract (template) id")
        sub.add_argument("--manager", default=None, help="Keep only rows created by this id")
        sub.add_argument(
            "--week-start",
            type=int,
            default=DEFAULT_WEEK_START_DAY,
            help="Week start day, 1=Sunday ... 7=Saturday (default: 7)",
        )

    expand_parser = subparsers.add_parser("expand", help="Expand templates into schedule entries")
    add_common(expand_parser)
    expand_parser.add_argument("--month", default=None, help="Any day of the month to expand")
    expand_parser.add_argument("--start", default=None, help="First day (YYYY-MM-DD)")
    expand_parser.add_argument("--end", default=None, help="Last day (YYYY-MM-DD)")
    expand_parser.add_argument("--holiday", action="append", help="Holiday date, repeatable")
    expand_parser.add_argument("--title", default="", help="Template name for record payloads")
    expand_parser.add_argument("--json", action="store_true", help="Print record payloads")
    expand_parser.add_argument("--debug", default=None, help="Write debug text to this path")

    weeks_parser = subparsers.add_parser("weeks", help="Analyze weeks of a contract")
    add_common(weeks_parser)

    totals_parser = subparsers.add_parser("totals", help="Show totals and validate rows")
    add_common(totals_parser)

    demo_parser = subparsers.add_parser("demo", help="Run the in-memory demo")
    demo_parser.add_argument("--month", default=None, help="Any day of the month to expand")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "expand":
            return run_expand(args)
        elif args.command == "weeks":
            return run_weeks(args)
        elif args.command == "totals":
            return run_totals(args)
        elif args.command == "demo":
            run_demo(args.month)
            return 0
        else:
            parser.print_help()
            return 1
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
