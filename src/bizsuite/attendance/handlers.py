from __future__ import annotations

import logging
from dataclasses import replace
from datetime import time

from ..core.constants import DEFAULT_LATE_THRESHOLD
from .factory import AttendanceStrategyFactory
from .model import AttendanceSaved
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class LateArrivalHandler:
    """Escalates a freshly saved ``present`` record to ``late`` after the threshold."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        threshold: time = DEFAULT_LATE_THRESHOLD,
    ):
        self._attendance = attendance
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._threshold = threshold

    def __call__(self, event: AttendanceSaved) -> None:
        # Decide on the row as stored, not on the in-memory value that was written.
        record = self._attendance.get(event.record.attendance_id) or event.record
        strategy = self._factory.for_clock_in(
            clock_in=record.clock_in,
            work_date=record.work_date,
            threshold=self._threshold,
            current_status=record.status,
        )
        decision = strategy.decide(
            clock_in=record.clock_in,
            work_date=record.work_date,
            threshold=self._threshold,
            current=record.status,
        )
        if decision.status == record.status:
            return

        updated = replace(record, status=decision.status, notes=record.notes or decision.note)
        if self._attendance.update(updated, previous=record):
            logger.info("Attendance %s marked %s (%s)", record.attendance_id, decision.status.value, decision.note)
        else:
            logger.warning("Attendance %s changed before late detection could apply", record.attendance_id)
