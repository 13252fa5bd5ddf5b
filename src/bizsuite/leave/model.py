from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import iter_dates
from ..common.validators import require_non_empty
from ..core.enums import HalfDayPeriod, LeaveStatus
from ..core.result import Result, invalid_transition, ok, validation_failed


def calculate_working_days(start_date: date, end_date: date, is_half_day: bool = False) -> float:
    """Count Monday-Friday days in the inclusive range.

    Half-day requests always count as 0.5. Public holidays are not excluded.
    """
    if is_half_day:
        return 0.5
    return float(sum(1 for d in iter_dates(start_date, end_date) if d.weekday() < 5))


@dataclass(frozen=True)
class LeaveTypePolicy:
    """Leave type rules used to validate requests and compute balances."""

    leave_type_id: int
    name: str
    code: str
    days_per_year: float
    carry_forward: bool = False
    max_carry_forward_days: Optional[float] = None
    max_consecutive_days: Optional[int] = None
    min_notice_days: int = 0
    is_paid: bool = True
    requires_approval: bool = True
    is_active: bool = True

    def validate_request(self, days: float, start_date: date, *, today: date) -> list[str]:
        """Return human-readable violations; empty when the request is acceptable."""
        errors: list[str] = []
        if not self.is_active:
            errors.append(f"Leave type {self.name} is not active")
        if self.max_consecutive_days and days > self.max_consecutive_days:
            errors.append(f"Maximum consecutive days allowed: {self.max_consecutive_days}")
        if self.min_notice_days and (start_date - today).days < self.min_notice_days:
            errors.append(f"Minimum notice required: {self.min_notice_days} days")
        return errors


@dataclass(frozen=True)
class LeaveRequest:
    leave_id: int
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    days_requested: float
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    is_half_day: bool = False
    half_day_period: Optional[HalfDayPeriod] = None
    submitted_at: Optional[datetime] = None
    approver_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    approval_notes: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None

    def is_pending(self) -> bool:
        return self.status == LeaveStatus.PENDING

    def can_be_edited(self) -> bool:
        return self.is_pending()

    def can_be_cancelled(self, today: date) -> bool:
        if self.is_pending():
            return True
        return self.status == LeaveStatus.APPROVED and self.start_date > today

    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def approve(self, approver_id: int, notes: Optional[str] = None, *, now: datetime) -> Result["LeaveRequest"]:
        if not self.is_pending():
            return invalid_transition(f"Leave request is {self.status.value}, only pending requests can be approved")
        return ok(
            replace(
                self,
                status=LeaveStatus.APPROVED,
                approver_id=int(approver_id),
                approved_at=now,
                approval_notes=(notes or "").strip() or None,
            )
        )

    def reject(self, approver_id: int, reason: str, *, now: datetime) -> Result["LeaveRequest"]:
        if not self.is_pending():
            return invalid_transition(f"Leave request is {self.status.value}, only pending requests can be rejected")
        problem = require_non_empty(reason, "Rejection reason")
        if problem:
            return validation_failed([problem])
        return ok(
            replace(
                self,
                status=LeaveStatus.REJECTED,
                approver_id=int(approver_id),
                rejected_at=now,
                rejection_reason=reason.strip(),
            )
        )

    def cancel(self, *, now: datetime) -> Result["LeaveRequest"]:
        if not self.can_be_cancelled(now.date()):
            return invalid_transition("This leave request cannot be cancelled")
        return ok(replace(self, status=LeaveStatus.CANCELLED, cancelled_at=now))


@dataclass(frozen=True)
class LeaveBalance:
    allocated: float
    carry_forward: float
    total_allocated: float
    used: float
    remaining: float

    def as_dict(self) -> dict:
        return {
            "allocated": self.allocated,
            "carry_forward": self.carry_forward,
            "total_allocated": self.total_allocated,
            "used": self.used,
            "remaining": self.remaining,
        }
