from __future__ import annotations

from ...common.datetime_utils import floor_minutes
from ...core.constants import WEEKLY_REGULAR_MINUTES
from ...time_entries.model import TimeEntry
from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: closed shifts count, first 40h regular, the rest overtime."""

    def __init__(self, regular_limit_minutes: int = WEEKLY_REGULAR_MINUTES):
        self._regular_limit = regular_limit_minutes

    def worked_minutes(self, entry: TimeEntry) -> int:
        if entry.is_break or entry.end_time is None:
            return 0
        if entry.duration_minutes is not None:
            return max(int(entry.duration_minutes), 0)
        return max(floor_minutes(entry.start_time, entry.end_time), 0)

    def split_overtime(self, total_minutes: int) -> tuple[int, int]:
        regular = min(total_minutes, self._regular_limit)
        return regular, max(0, total_minutes - self._regular_limit)
