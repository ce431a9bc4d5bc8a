"""Debug text output for template loading and schedule expansion.

This module creates text-based output to analyze:
- How many records each loading stage dropped
- Which template week each calendar day used
- Days without a template, holidays and leaves
"""

from pathlib import Path
from typing import Optional, Union

from weekplan.domain.dates import format_for_display
from weekplan.scheduling.expansion import ExpansionResult
from weekplan.scheduling.templates import TemplateSet


class DebugGenerator:
    """Generates debug text output for a load and expansion run."""

    def generate(
        self,
        template_set: TemplateSet,
        result: Optional[ExpansionResult],
        output_path: Union[str, Path],
    ) -> str:
        """Generate debug text output and save to file.

        Args:
            template_set: Loaded templates.
            result: Expansion result, or None to report loading only.
            output_path: Path to save the text file.

        Returns:
            The generated text content.
        """
        content = self._generate_content(template_set, result)
        Path(output_path).write_text(content)
        return content

    def generate_to_string(
        self,
        template_set: TemplateSet,
        result: Optional[ExpansionResult] = None,
    ) -> str:
        return self._generate_content(template_set, result)

    def _generate_content(
        self,
        template_set: TemplateSet,
        result: Optional[ExpansionResult],
    ) -> str:
        lines = []

        lines.append("=" * 80)
        lines.append("TEMPLATE LOAD DEBUG OUTPUT")
        lines.append("=" * 80)
        lines.append("")

        diagnostics = template_set.diagnostics
        lines.append(f"Records from store:      {diagnostics.total}")
        lines.append(f"Dropped (creator):       {diagnostics.dropped_by_creator}")
        lines.append(f"Dropped (deleted):       {diagnostics.dropped_deleted}")
        lines.append(f"Dropped (malformed):     {diagnostics.dropped_malformed}")
        lines.append(f"Skipped days:            {diagnostics.skipped_days}")
        lines.append(f"Day templates:           {diagnostics.templates_emitted}")
        lines.append(f"Duplicate group keys:    {diagnostics.duplicate_keys}")
        lines.append("")

        stats = template_set.stats()
        lines.append(f"Weeks: {template_set.week_numbers or '-'}")
        lines.append(f"Shifts: {template_set.shift_numbers or '-'}")
        lines.append(f"Working days covered: {stats['days_covered']}")
        lines.append("")

        if diagnostics.details:
            lines.append("-" * 80)
            lines.append("LOAD DETAILS")
            lines.append("-" * 80)
            lines.extend(f"  {detail}" for detail in diagnostics.details)
            lines.append("")

        if result is None:
            return "\n".join(lines)

        analysis = result.analysis
        lines.append("-" * 80)
        lines.append("EXPANSION")
        lines.append("-" * 80)
        lines.append(f"Week chaining: {analysis.chaining}")
        lines.append(
            f"Days: {analysis.total_days}  generated: {analysis.days_generated}  "
            f"skipped: {analysis.days_skipped}  holidays: {analysis.holidays_detected}  "
            f"leaves: {analysis.leaves_detected}"
        )
        lines.append(f"Schedule entries: {len(result.entries)}")
        lines.append("")
        lines.append(
            f"{'Date':<11} {'Day':<10} {'CalWk':>5} {'TplWk':>5} {'Shifts':>6} "
            f"{'Hours':^13} {'Notes'}"
        )
        lines.append("-" * 80)

        for info in analysis.daily:
            notes = []
            if info.is_holiday:
                notes.append("holiday")
            if info.leave_type is not None:
                notes.append(f"leave {info.leave_type}")
            if info.skip_reason:
                notes.append(info.skip_reason)
            lines.append(
                f"{format_for_display(info.date):<11} {info.weekday.title:<10} "
                f"{info.calendar_week:>5} {info.template_week:>5} {info.shifts:>6} "
                f"{info.working_hours or '-':^13} {'; '.join(notes)}"
            )
        lines.append("")

        lines.append("-" * 80)
        lines.append("WEEKLY STATS")
        lines.append("-" * 80)
        for week, week_stats in sorted(analysis.weekly_stats.items()):
            lines.append(
                f"Week {week}: {week_stats['generated']}/{week_stats['total']} days generated, "
                f"{week_stats['skipped']} skipped"
            )

        return "\n".join(lines)
