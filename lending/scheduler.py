from __future__ import annotations

import logging
from datetime import date, timedelta

from lending.calendar_policy import CalendarPolicy
from lending.config import settings
from lending.outcomes import ScheduleUnreachable

logger = logging.getLogger(__name__)


class DueDateScheduler:
    """Counts lending days forward from a start date, skipping non-lending days."""

    def __init__(self, policy: CalendarPolicy, max_scan_days: int | None = None) -> None:
        self.policy = policy
        self.max_scan_days = max_scan_days if max_scan_days is not None else settings.max_scan_days

    def compute_due_date(self, start: date, required_lending_days: int) -> date:
        """Return the date on which the ``required_lending_days``-th lending day falls.

        Counting starts the day after ``start``; a non-lending day never
        counts and never becomes the due date. Zero days returns ``start``.

        Raises ScheduleUnreachable if the policy blocks every day within
        ``max_scan_days``.
        """
        if required_lending_days < 0:
            raise ValueError("required_lending_days must be >= 0")

        current = start
        counted = 0
        scanned = 0
        while counted < required_lending_days:
            if scanned >= self.max_scan_days:
                logger.error("No due date found within %d days of %s", self.max_scan_days, start)
                raise ScheduleUnreachable(
                    f"Could not find {required_lending_days} lending days within {self.max_scan_days} days of {start}"
                )
            current += timedelta(days=1)
            scanned += 1
            if not self.policy.is_non_lending_day(current):
                counted += 1
        return current
