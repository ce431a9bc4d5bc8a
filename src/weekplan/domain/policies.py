"""Policy definitions for worked-time rules.

Policies are kept separate from the aggregation engine so the rules for
shift length and lunch can be tested and swapped independently.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from weekplan.domain.models import MAX_LUNCH_MINUTES, TemplateRow, TimeOfDay

MINUTES_PER_DAY = 24 * 60


class WorkTimePolicy(ABC):
    """Abstract base class for worked-time policies."""

    @abstractmethod
    def shift_minutes(self, start: TimeOfDay, end: TimeOfDay) -> int:
        """Length of a shift in minutes, before lunch is removed."""
        pass

    @abstractmethod
    def is_valid_lunch(self, lunch_minutes: int) -> bool:
        """Check if a lunch duration may be stored on a row."""
        pass

    @abstractmethod
    def worked_minutes(self, start: TimeOfDay, end: TimeOfDay, lunch_minutes: int) -> int:
        """Worked minutes for one day of a shift.

        Args:
            start: Shift start.
            end: Shift end.
            lunch_minutes: Lunch deducted from the shift.

        Returns:
            Non-negative worked minutes.
        """
        pass

    def row_worked_minutes(self, row: TemplateRow) -> int:
        """Worked minutes of a template row summed over its seven days."""
        return sum(
            self.worked_minutes(hours.start, hours.end, row.lunch_minutes)
            for hours in row.days.values()
        )


@dataclass
class DefaultWorkTimePolicy(WorkTimePolicy):
    """Default worked-time policy.

    Shift length:
    - start equal to end: no work that day
    - end earlier than start: the shift runs past midnight
    - end of 00:00: counts as 24:00

    Lunch is capped at the shift length, so a day never goes negative.
    """

    min_lunch: int = 0
    max_lunch: int = MAX_LUNCH_MINUTES

    def shift_minutes(self, start: TimeOfDay, end: TimeOfDay) -> int:
        begin = start.total_minutes
        finish = end.total_minutes
        if begin == finish:
            return 0
        if finish == 0:
            finish = MINUTES_PER_DAY
        if finish < begin:
            finish += MINUTES_PER_DAY
        return finish - begin

    def is_valid_lunch(self, lunch_minutes: int) -> bool:
        return self.min_lunch <= lunch_minutes <= self.max_lunch

    def worked_minutes(self, start: TimeOfDay, end: TimeOfDay, lunch_minutes: int) -> int:
        length = self.shift_minutes(start, end)
        if length == 0:
            return 0
        lunch = min(max(lunch_minutes, 0), length)
        return max(0, length - lunch)
