from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.datetime_utils import format_hhmm, format_minutes
from ..core.enums import AttendanceStatus
from ..employees.repository import EmployeeRepository
from ..reports.export import to_excel
from .repository import AttendanceRepository


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class AttendanceReportService:
    def __init__(self, attendance: AttendanceRepository, employees: EmployeeRepository):
        self._attendance = attendance
        self._employees = employees

    def build_report(self, *, start: date, end: date, employee_id: Optional[int] = None) -> ReportData:
        records = self._attendance.list_between(start_date=start, end_date=end, employee_id=employee_id)

        names: dict[int, str] = {}
        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []

        for r in records:
            if r.employee_id not in names:
                emp = self._employees.get(r.employee_id)
                names[r.employee_id] = emp.full_name if emp else "-"

            out_rows.append(
                {
                    "employee_id": r.employee_id,
                    "full_name": names[r.employee_id],
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "clock_in": r.clock_in.strftime("%H:%M") if r.clock_in else "-",
                    "clock_out": r.clock_out.strftime("%H:%M") if r.clock_out else "-",
                    "break": r.break_duration_formatted,
                    "worked": r.total_hours_formatted,
                    "overtime": r.overtime_formatted,
                    "status": r.status.value,
                }
            )

            s = summary_map.get(r.employee_id)
            if not s:
                s = {
                    "employee_id": r.employee_id,
                    "full_name": names[r.employee_id],
                    "days_present": 0,
                    "days_late": 0,
                    "days_absent": 0,
                    "days_on_leave": 0,
                    "total_minutes": 0,
                    "overtime_minutes": 0,
                }
                summary_map[r.employee_id] = s

            if r.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE):
                s["days_present"] += 1
            if r.status == AttendanceStatus.LATE:
                s["days_late"] += 1
            elif r.status == AttendanceStatus.ABSENT:
                s["days_absent"] += 1
            elif r.status == AttendanceStatus.ON_LEAVE:
                s["days_on_leave"] += 1
            s["total_minutes"] += int(r.total_minutes or 0)
            s["overtime_minutes"] += int(r.overtime_minutes or 0)

        summary = []
        for s in summary_map.values():
            summary.append(
                {
                    **s,
                    "total_hours": format_hhmm(s["total_minutes"]),
                    "overtime": format_minutes(s["overtime_minutes"]),
                }
            )

        summary.sort(key=lambda x: x["total_minutes"], reverse=True)
        return ReportData(rows=out_rows, summary=summary)

    def export_xlsx(self, *, start: date, end: date, employee_id: Optional[int] = None) -> bytes:
        report = self.build_report(start=start, end=end, employee_id=employee_id)
        return to_excel(report.rows, sheet_name="Attendance")
