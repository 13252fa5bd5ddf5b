from __future__ import annotations

from datetime import date, datetime, time

from ...common.datetime_utils import minutes_between
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late clock-in."""

    def decide(self, *, clock_in: datetime, work_date: date, threshold: time, current: AttendanceStatus) -> StatusDecision:
        late_by = minutes_between(datetime.combine(work_date, threshold), clock_in)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {late_by} min")
