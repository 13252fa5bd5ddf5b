from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import minutes_between
from ...core.constants import STANDARD_WORKDAY_MINUTES
from .base import WorkTime, WorkTimeCalculator


class StandardWorkTimeCalculator(WorkTimeCalculator):
    """Standard rule: (out - in) - break, overtime beyond an 8-hour day."""

    def __init__(self, standard_minutes: int = STANDARD_WORKDAY_MINUTES):
        self._standard_minutes = int(standard_minutes)

    def calculate(
        self,
        *,
        clock_in: datetime,
        clock_out: datetime,
        break_start: Optional[datetime],
        break_end: Optional[datetime],
    ) -> WorkTime:
        total = minutes_between(clock_in, clock_out)
        breaks = minutes_between(break_start, break_end)
        worked = max(total - breaks, 0)
        return WorkTime(
            total_minutes=worked,
            break_minutes=breaks,
            overtime_minutes=max(0, worked - self._standard_minutes),
        )
