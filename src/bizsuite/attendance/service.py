from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus
from ..core.events import EventBus
from ..core.result import Result, invalid_transition, not_found, ok
from ..employees.repository import EmployeeRepository
from .calculator.base import WorkTimeCalculator
from .calculator.standard_calculator import StandardWorkTimeCalculator
from .model import AttendanceRecord, AttendanceSaved
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

Transition = Callable[[AttendanceRecord], Result[AttendanceRecord]]


def _whole_seconds(moment: datetime) -> datetime:
    # DATETIME columns keep whole seconds; compare-and-set needs the stored value.
    return moment.replace(microsecond=0)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        events: EventBus,
        *,
        calculator: Optional[WorkTimeCalculator] = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._events = events
        self._calculator = calculator or StandardWorkTimeCalculator()

    def clock_in(
        self,
        employee_id: int,
        *,
        location: Optional[str] = None,
        ip_address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Result[AttendanceRecord]:
        now = _whole_seconds(now or now_local())
        return self._apply(
            employee_id,
            now.date(),
            lambda r: r.clock_in_at(now=now, location=location, ip_address=ip_address),
            create=True,
        )

    def start_break(self, employee_id: int, *, now: Optional[datetime] = None) -> Result[AttendanceRecord]:
        now = _whole_seconds(now or now_local())
        return self._apply(employee_id, now.date(), lambda r: r.start_break(now=now))

    def end_break(self, employee_id: int, *, now: Optional[datetime] = None) -> Result[AttendanceRecord]:
        now = _whole_seconds(now or now_local())
        return self._apply(employee_id, now.date(), lambda r: r.end_break(now=now))

    def clock_out(self, employee_id: int, *, now: Optional[datetime] = None) -> Result[AttendanceRecord]:
        now = _whole_seconds(now or now_local())
        return self._apply(employee_id, now.date(), lambda r: r.clock_out_at(now=now, calculator=self._calculator))

    def mark_absent(self, employee_id: int, work_date: date, *, notes: Optional[str] = None) -> Result[AttendanceRecord]:
        return self._apply(employee_id, work_date, lambda r: r.mark(AttendanceStatus.ABSENT, notes), create=True)

    def mark_on_leave(self, employee_id: int, work_date: date, *, notes: Optional[str] = None) -> Result[AttendanceRecord]:
        return self._apply(employee_id, work_date, lambda r: r.mark(AttendanceStatus.ON_LEAVE, notes), create=True)

    def get_today_record(self, employee_id: int, today: date) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_employee_and_date(int(employee_id), today)

    def get_history(self, employee_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT):
        return list(self._attendance.get_recent_for_employee(int(employee_id), limit))

    def _apply(
        self,
        employee_id: int,
        work_date: date,
        transition: Transition,
        *,
        create: bool = False,
    ) -> Result[AttendanceRecord]:
        employee = self._employees.get(int(employee_id))
        if not employee:
            return not_found("Employee not found")

        current = self._attendance.get_for_employee_and_date(employee.employee_id, work_date)
        if current is None and not create:
            return invalid_transition("Not clocked in")

        blank = current or AttendanceRecord(attendance_id=0, employee_id=employee.employee_id, work_date=work_date)
        result = transition(blank)
        if not result:
            logger.debug("Attendance for employee %s on %s: %s", employee_id, work_date, result.error.message)
            return result

        record = result.value
        if current is None:
            record = replace(record, attendance_id=self._attendance.add(record))
        elif not self._attendance.update(record, previous=current):
            logger.warning("Attendance %s changed concurrently", current.attendance_id)
            return invalid_transition("Attendance record was modified by another request")

        self._events.publish(AttendanceSaved(record=record))
        # Handlers may have adjusted the stored record (e.g. late detection).
        return ok(self._attendance.get(record.attendance_id) or record)
