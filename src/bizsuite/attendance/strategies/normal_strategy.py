from __future__ import annotations

from datetime import date, datetime, time

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time clock-in (or nothing to decide): keep the stored status."""

    def decide(self, *, clock_in: datetime, work_date: date, threshold: time, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
