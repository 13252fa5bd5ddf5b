from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.events import EventBus
from ..core.result import Result, not_found, ok, validation_failed
from .model import Employee, EmployeeChanged
from .repository import DepartmentRepository, EmployeeRepository

logger = logging.getLogger(__name__)


class EmployeeService:
    def __init__(self, employees: EmployeeRepository, departments: DepartmentRepository, events: EventBus):
        self._employees = employees
        self._departments = departments
        self._events = events

    def hire(
        self,
        *,
        full_name: str,
        department_id: Optional[int],
        hire_date: date,
        user_id: Optional[int] = None,
    ) -> Result[Employee]:
        problem = require_non_empty(full_name, "Full name")
        if problem:
            return validation_failed([problem])
        if department_id is not None and not self._departments.get(int(department_id)):
            return not_found("Department not found")

        employee = Employee(
            employee_id=0,
            user_id=user_id,
            full_name=full_name.strip(),
            department_id=department_id,
            hire_date=hire_date,
        )
        employee = replace(employee, employee_id=self._employees.add(employee))
        logger.info("Hired employee %s into department %s", employee.employee_id, department_id)
        self._events.publish(EmployeeChanged(employee_id=employee.employee_id, department_ids=(department_id,)))
        return ok(employee)

    def transfer(self, employee_id: int, department_id: int) -> Result[Employee]:
        employee = self._employees.get(int(employee_id))
        if not employee:
            return not_found("Employee not found")
        if not self._departments.get(int(department_id)):
            return not_found("Department not found")

        result = employee.transfer_to(department_id)
        if not result:
            return result
        self._employees.update(result.value)
        self._events.publish(
            EmployeeChanged(employee_id=employee.employee_id, department_ids=(employee.department_id, department_id))
        )
        return result

    def terminate(self, employee_id: int, *, now: Optional[datetime] = None) -> Result[Employee]:
        now = now or now_local()
        employee = self._employees.get(int(employee_id))
        if not employee:
            return not_found("Employee not found")

        result = employee.terminate(now=now)
        if not result:
            return result
        self._employees.update(result.value)
        logger.info("Terminated employee %s", employee.employee_id)
        self._events.publish(EmployeeChanged(employee_id=employee.employee_id, department_ids=(employee.department_id,)))
        return result


class DepartmentHeadcountHandler:
    """Keeps ``Department.employee_count`` in line with active employees."""

    def __init__(self, employees: EmployeeRepository, departments: DepartmentRepository):
        self._employees = employees
        self._departments = departments

    def __call__(self, event: EmployeeChanged) -> None:
        for department_id in {d for d in event.department_ids if d is not None}:
            count = self._employees.count_active(department_id)
            self._departments.set_employee_count(department_id, count)
            logger.debug("Department %s headcount is now %s", department_id, count)


class DepartmentReportService:
    def __init__(self, employees: EmployeeRepository, departments: DepartmentRepository):
        self._employees = employees
        self._departments = departments

    def employee_counts(self, *, include_inactive: bool = False) -> list[dict]:
        rows = []
        for dept in self._departments.list_all():
            if not dept.is_active and not include_inactive:
                continue
            rows.append(
                {
                    "department_id": dept.department_id,
                    "name": dept.name,
                    "employee_count": self._employees.count_active(dept.department_id),
                }
            )
        rows.sort(key=lambda r: r["name"])
        return rows
