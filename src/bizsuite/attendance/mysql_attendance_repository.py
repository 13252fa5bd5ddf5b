from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_bool
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date, status, clock_in, clock_out, break_start, break_end,
    total_minutes, break_minutes, overtime_minutes, location, ip_address, notes, is_manual_entry
"""


def _record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        clock_in=r.get("clock_in"),
        clock_out=r.get("clock_out"),
        break_start=r.get("break_start"),
        break_end=r.get("break_end"),
        total_minutes=int(r.get("total_minutes") or 0),
        break_minutes=int(r.get("break_minutes") or 0),
        overtime_minutes=int(r.get("overtime_minutes") or 0),
        location=r.get("location"),
        ip_address=r.get("ip_address"),
        notes=r.get("notes"),
        is_manual_entry=to_bool(r.get("is_manual_entry")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _record(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE employee_id=%s AND work_date=%s",
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _record(r) if r else None

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE employee_id=%s
                ORDER BY work_date DESC
                LIMIT %s
                """,
                (int(employee_id), int(limit)),
            )
            return [_record(r) for r in fetchall(cur)]

    def add(self, record: AttendanceRecord) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    employee_id, work_date, status, clock_in, location, ip_address, notes, is_manual_entry
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.employee_id,
                    record.work_date,
                    record.status.value,
                    record.clock_in,
                    record.location,
                    record.ip_address,
                    record.notes,
                    int(record.is_manual_entry),
                ),
            )
            return int(cur.lastrowid)

    def update(self, record: AttendanceRecord, *, previous: AttendanceRecord) -> bool:
        # <=> is MySQL's NULL-safe equality; the row must still hold the clock state we read.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, clock_in=%s, clock_out=%s, break_start=%s, break_end=%s,
                    total_minutes=%s, break_minutes=%s, overtime_minutes=%s,
                    location=%s, ip_address=%s, notes=%s, is_manual_entry=%s
                WHERE attendance_id=%s AND status=%s
                  AND clock_in <=> %s AND clock_out <=> %s AND break_start <=> %s AND break_end <=> %s
                """,
                (
                    record.status.value,
                    record.clock_in,
                    record.clock_out,
                    record.break_start,
                    record.break_end,
                    record.total_minutes,
                    record.break_minutes,
                    record.overtime_minutes,
                    record.location,
                    record.ip_address,
                    record.notes,
                    int(record.is_manual_entry),
                    previous.attendance_id,
                    previous.status.value,
                    previous.clock_in,
                    previous.clock_out,
                    previous.break_start,
                    previous.break_end,
                ),
            )
            return cur.rowcount > 0

    def list_between(
        self,
        *,
        start_date: date,
        end_date: date,
        employee_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["work_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {" AND ".join(clauses)}
                ORDER BY work_date, employee_id
                """,
                tuple(params),
            )
            return [_record(r) for r in fetchall(cur)]
