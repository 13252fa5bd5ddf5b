from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import LeaveRequest, LeaveTypePolicy


class LeaveRepository(Protocol):
    def get(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def add(self, request: LeaveRequest) -> int:
        raise NotImplementedError

    def update(self, request: LeaveRequest, *, expected_status: LeaveStatus) -> bool:
        """Persist ``request`` only if the stored status still equals ``expected_status``."""

        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: int,
        *,
        status: Optional[LeaveStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def sum_approved_days(self, *, employee_id: int, leave_type_id: int, year: int) -> float:
        raise NotImplementedError


class LeaveTypeRepository(Protocol):
    def get(self, leave_type_id: int) -> Optional[LeaveTypePolicy]:
        raise NotImplementedError

    def list_active(self) -> Sequence[LeaveTypePolicy]:
        raise NotImplementedError
