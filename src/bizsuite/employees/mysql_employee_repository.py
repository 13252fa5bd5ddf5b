from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import EmployeeStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_int, to_bool
from .model import Department, Employee
from .repository import DepartmentRepository, EmployeeRepository

_EMPLOYEE_COLUMNS = "employee_id, user_id, full_name, department_id, hire_date, status, terminated_at"


def _employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        user_id=optional_int(r.get("user_id")),
        full_name=r["full_name"],
        department_id=optional_int(r.get("department_id")),
        hire_date=r.get("hire_date"),
        status=EmployeeStatus(r["status"]),
        terminated_at=r.get("terminated_at"),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_EMPLOYEE_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            r = fetchone(cur)
            return _employee(r) if r else None

    def add(self, employee: Employee) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(user_id, full_name, department_id, hire_date, status)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (employee.user_id, employee.full_name, employee.department_id, employee.hire_date, employee.status.value),
            )
            return int(cur.lastrowid)

    def update(self, employee: Employee) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET full_name=%s, department_id=%s, status=%s, terminated_at=%s
                WHERE employee_id=%s
                """,
                (
                    employee.full_name,
                    employee.department_id,
                    employee.status.value,
                    employee.terminated_at,
                    employee.employee_id,
                ),
            )
            return cur.rowcount > 0

    def count_active(self, department_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM employees WHERE department_id=%s AND status<>%s",
                (int(department_id), EmployeeStatus.TERMINATED.value),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, department_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT department_id, name, employee_count, is_active FROM departments WHERE department_id=%s",
                (int(department_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Department(
                department_id=int(r["department_id"]),
                name=r["name"],
                employee_count=int(r["employee_count"]),
                is_active=to_bool(r["is_active"]),
            )

    def list_all(self) -> Sequence[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT department_id, name, employee_count, is_active FROM departments ORDER BY name")
            return [
                Department(
                    department_id=int(r["department_id"]),
                    name=r["name"],
                    employee_count=int(r["employee_count"]),
                    is_active=to_bool(r["is_active"]),
                )
                for r in fetchall(cur)
            ]

    def set_employee_count(self, department_id: int, count: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE departments SET employee_count=%s WHERE department_id=%s",
                (int(count), int(department_id)),
            )
            return cur.rowcount > 0
