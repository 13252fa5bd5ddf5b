from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceStatus
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_clock_in(
        self,
        *,
        clock_in: Optional[datetime],
        work_date: date,
        threshold: time,
        current_status: AttendanceStatus,
    ) -> AttendanceStrategy:
        # Only a plain "present" record is escalated; absent/on_leave/late stay as they are.
        if not clock_in or current_status != AttendanceStatus.PRESENT:
            return NormalStrategy()

        if clock_in > datetime.combine(work_date, threshold):
            return LateStrategy()
        return NormalStrategy()
