from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import HalfDayPeriod, LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_int, to_bool
from .model import LeaveRequest, LeaveTypePolicy
from .repository import LeaveRepository, LeaveTypeRepository

_LEAVE_COLUMNS = """
    leave_id, employee_id, leave_type_id, start_date, end_date, days_requested, reason, status,
    is_half_day, half_day_period, submitted_at, approver_id, approved_at, approval_notes,
    rejected_at, rejection_reason, cancelled_at
"""


def _leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        employee_id=int(r["employee_id"]),
        leave_type_id=int(r["leave_type_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        days_requested=float(r["days_requested"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        is_half_day=to_bool(r["is_half_day"]),
        half_day_period=HalfDayPeriod(r["half_day_period"]) if r.get("half_day_period") else None,
        submitted_at=r.get("submitted_at"),
        approver_id=optional_int(r.get("approver_id")),
        approved_at=r.get("approved_at"),
        approval_notes=r.get("approval_notes"),
        rejected_at=r.get("rejected_at"),
        rejection_reason=r.get("rejection_reason"),
        cancelled_at=r.get("cancelled_at"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_LEAVE_COLUMNS} FROM leave_requests WHERE leave_id=%s", (int(leave_id),))
            r = fetchone(cur)
            return _leave(r) if r else None

    def add(self, request: LeaveRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    employee_id, leave_type_id, start_date, end_date, days_requested, reason,
                    status, is_half_day, half_day_period, submitted_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    request.employee_id,
                    request.leave_type_id,
                    request.start_date,
                    request.end_date,
                    request.days_requested,
                    request.reason,
                    request.status.value,
                    int(request.is_half_day),
                    request.half_day_period.value if request.half_day_period else None,
                    request.submitted_at,
                ),
            )
            return int(cur.lastrowid)

    def update(self, request: LeaveRequest, *, expected_status: LeaveStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, approver_id=%s, approved_at=%s, approval_notes=%s,
                    rejected_at=%s, rejection_reason=%s, cancelled_at=%s
                WHERE leave_id=%s AND status=%s
                """,
                (
                    request.status.value,
                    request.approver_id,
                    request.approved_at,
                    request.approval_notes,
                    request.rejected_at,
                    request.rejection_reason,
                    request.cancelled_at,
                    request.leave_id,
                    expected_status.value,
                ),
            )
            return cur.rowcount > 0

    def list_for_employee(
        self,
        employee_id: int,
        *,
        status: Optional[LeaveStatus] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}
                FROM leave_requests
                WHERE {" AND ".join(clauses)}
                ORDER BY start_date DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_leave(r) for r in fetchall(cur)]

    def sum_approved_days(self, *, employee_id: int, leave_type_id: int, year: int) -> float:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(days_requested), 0) AS used
                FROM leave_requests
                WHERE employee_id=%s AND leave_type_id=%s AND status=%s AND YEAR(start_date)=%s
                """,
                (int(employee_id), int(leave_type_id), LeaveStatus.APPROVED.value, int(year)),
            )
            r = fetchone(cur)
            return float(r["used"]) if r else 0.0


def _policy(r: dict) -> LeaveTypePolicy:
    return LeaveTypePolicy(
        leave_type_id=int(r["leave_type_id"]),
        name=r["name"],
        code=r["code"],
        days_per_year=float(r["days_per_year"]),
        carry_forward=to_bool(r["carry_forward"]),
        max_carry_forward_days=float(r["max_carry_forward_days"]) if r.get("max_carry_forward_days") is not None else None,
        max_consecutive_days=optional_int(r.get("max_consecutive_days")),
        min_notice_days=int(r.get("min_notice_days") or 0),
        is_paid=to_bool(r["is_paid"]),
        requires_approval=to_bool(r["requires_approval"]),
        is_active=to_bool(r["is_active"]),
    )


class MySQLLeaveTypeRepository(LeaveTypeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, leave_type_id: int) -> Optional[LeaveTypePolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM leave_types WHERE leave_type_id=%s", (int(leave_type_id),))
            r = fetchone(cur)
            return _policy(r) if r else None

    def list_active(self) -> Sequence[LeaveTypePolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM leave_types WHERE is_active=1 ORDER BY name")
            return [_policy(r) for r in fetchall(cur)]
