from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Department, Employee


class EmployeeRepository(Protocol):
    def get(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def add(self, employee: Employee) -> int:
        raise NotImplementedError

    def update(self, employee: Employee) -> bool:
        raise NotImplementedError

    def count_active(self, department_id: int) -> int:
        raise NotImplementedError


class DepartmentRepository(Protocol):
    def get(self, department_id: int) -> Optional[Department]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Department]:
        raise NotImplementedError

    def set_employee_count(self, department_id: int, count: int) -> bool:
        raise NotImplementedError
