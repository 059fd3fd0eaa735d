from __future__ import annotations

from abc import ABC, abstractmethod

from ...time_entries.model import TimeEntry


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def worked_minutes(self, entry: TimeEntry) -> int:
        raise NotImplementedError

    @abstractmethod
    def split_overtime(self, total_minutes: int) -> tuple[int, int]:
        """Return (regular, overtime) minutes for one employee's period total."""
        raise NotImplementedError
