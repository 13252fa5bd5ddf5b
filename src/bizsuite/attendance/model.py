from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import format_minutes
from ..core.constants import DEFAULT_LATE_THRESHOLD
from ..core.enums import AttendanceStatus
from ..core.events import DomainEvent
from ..core.result import Result, invalid_transition, ok, validation_failed
from .calculator.base import WorkTimeCalculator
from .calculator.standard_calculator import StandardWorkTimeCalculator


@dataclass(frozen=True)
class AttendanceRecord:
    """One employee's attendance for one day.

    Clock state: not clocked in -> clocked in -> on break -> clocked in ->
    clocked out. A single break per day is supported.
    """

    attendance_id: int
    employee_id: int
    work_date: date
    status: AttendanceStatus = AttendanceStatus.ABSENT
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_start: Optional[datetime] = None
    break_end: Optional[datetime] = None
    total_minutes: int = 0
    break_minutes: int = 0
    overtime_minutes: int = 0
    location: Optional[str] = None
    ip_address: Optional[str] = None
    notes: Optional[str] = None
    is_manual_entry: bool = False

    def is_clocked_in(self) -> bool:
        return self.clock_in is not None and self.clock_out is None

    def is_on_break(self) -> bool:
        return self.break_start is not None and self.break_end is None

    def clock_in_at(
        self,
        *,
        now: datetime,
        location: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Result["AttendanceRecord"]:
        if self.clock_in is not None:
            return invalid_transition("Already clocked in")
        return ok(
            replace(
                self,
                clock_in=now,
                status=AttendanceStatus.PRESENT,
                location=location,
                ip_address=ip_address,
            )
        )

    def start_break(self, *, now: datetime) -> Result["AttendanceRecord"]:
        if not self.is_clocked_in():
            return invalid_transition("Not clocked in")
        if self.break_start is not None:
            return invalid_transition("Break already taken")
        return ok(replace(self, break_start=now))

    def end_break(self, *, now: datetime) -> Result["AttendanceRecord"]:
        if not self.is_on_break():
            return invalid_transition("Not on break")
        return ok(replace(self, break_end=now))

    def clock_out_at(
        self,
        *,
        now: datetime,
        calculator: Optional[WorkTimeCalculator] = None,
    ) -> Result["AttendanceRecord"]:
        if self.clock_in is None:
            return invalid_transition("Not clocked in")
        if self.clock_out is not None:
            return invalid_transition("Already clocked out")

        work = (calculator or StandardWorkTimeCalculator()).calculate(
            clock_in=self.clock_in,
            clock_out=now,
            break_start=self.break_start,
            break_end=self.break_end,
        )
        return ok(
            replace(
                self,
                clock_out=now,
                total_minutes=work.total_minutes,
                break_minutes=work.break_minutes,
                overtime_minutes=work.overtime_minutes,
            )
        )

    def mark(self, status: AttendanceStatus, notes: Optional[str] = None) -> Result["AttendanceRecord"]:
        """Manually mark a day without a clock-in as absent or on leave."""
        if status not in (AttendanceStatus.ABSENT, AttendanceStatus.ON_LEAVE):
            return validation_failed([f"Cannot mark attendance as {status.value}"])
        if self.clock_in is not None:
            return invalid_transition("Employee already clocked in on this day")
        return ok(replace(self, status=status, notes=notes or self.notes, is_manual_entry=True))

    def is_late(self, threshold: time = DEFAULT_LATE_THRESHOLD) -> bool:
        if self.clock_in is None:
            return False
        return self.clock_in > datetime.combine(self.work_date, threshold)

    def calculated_status(self, threshold: time = DEFAULT_LATE_THRESHOLD) -> AttendanceStatus:
        if self.status in (AttendanceStatus.ABSENT, AttendanceStatus.ON_LEAVE):
            return self.status
        return AttendanceStatus.LATE if self.is_late(threshold) else AttendanceStatus.PRESENT

    @property
    def total_hours_formatted(self) -> str:
        return format_minutes(self.total_minutes)

    @property
    def break_duration_formatted(self) -> str:
        return format_minutes(self.break_minutes)

    @property
    def overtime_formatted(self) -> str:
        return format_minutes(self.overtime_minutes)


@dataclass(frozen=True)
class AttendanceSaved(DomainEvent):
    record: AttendanceRecord
