from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from ..core.enums import EmployeeStatus
from ..core.events import DomainEvent
from ..core.result import Result, invalid_transition, ok


@dataclass(frozen=True)
class Department:
    department_id: int
    name: str
    employee_count: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class Employee:
    """Aggregate root for attendance, leave and training records."""

    employee_id: int
    user_id: Optional[int]
    full_name: str
    department_id: Optional[int]
    hire_date: Optional[date]
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    terminated_at: Optional[datetime] = None

    def is_active(self) -> bool:
        return self.status != EmployeeStatus.TERMINATED

    def transfer_to(self, department_id: int) -> Result["Employee"]:
        if not self.is_active():
            return invalid_transition("Terminated employees cannot be transferred")
        if self.department_id == department_id:
            return invalid_transition("Employee already belongs to this department")
        return ok(replace(self, department_id=int(department_id)))

    def terminate(self, *, now: datetime) -> Result["Employee"]:
        if not self.is_active():
            return invalid_transition("Employee is already terminated")
        return ok(replace(self, status=EmployeeStatus.TERMINATED, terminated_at=now))


@dataclass(frozen=True)
class EmployeeChanged(DomainEvent):
    """Headcount-relevant change (hire, transfer, termination)."""

    employee_id: int
    department_ids: tuple[Optional[int], ...] = ()
