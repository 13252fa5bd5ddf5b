from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import collect, require_non_empty
from ..core.enums import HalfDayPeriod, LeaveStatus
from ..core.result import Result, invalid_transition, not_found, ok, validation_failed
from ..employees.repository import EmployeeRepository
from ..notifications.service import Notifier
from .balance import LeaveBalanceCalculator
from .model import LeaveBalance, LeaveRequest, calculate_working_days
from .repository import LeaveRepository, LeaveTypeRepository

logger = logging.getLogger(__name__)


class LeaveService:
    def __init__(
        self,
        leaves: LeaveRepository,
        leave_types: LeaveTypeRepository,
        employees: EmployeeRepository,
        *,
        notifier: Optional[Notifier] = None,
        balance_calculator: Optional[LeaveBalanceCalculator] = None,
    ):
        self._leaves = leaves
        self._leave_types = leave_types
        self._employees = employees
        self._notifier = notifier
        self._balances = balance_calculator or LeaveBalanceCalculator()

    def submit(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        start_date: date,
        end_date: date,
        reason: str,
        is_half_day: bool = False,
        half_day_period: Optional[HalfDayPeriod] = None,
        now: Optional[datetime] = None,
    ) -> Result[LeaveRequest]:
        now = now or now_local()

        employee = self._employees.get(int(employee_id))
        if not employee:
            return not_found("Employee not found")
        policy = self._leave_types.get(int(leave_type_id))
        if not policy:
            return not_found("Leave type not found")

        problems = collect(
            require_non_empty(reason, "Reason"),
            "End date must be on or after the start date" if end_date < start_date else None,
            "Half-day period is required for half-day leave" if is_half_day and not half_day_period else None,
        )
        if problems:
            return validation_failed(problems)

        days = calculate_working_days(start_date, end_date, is_half_day)
        problems = policy.validate_request(days, start_date, today=now.date())
        if problems:
            return validation_failed(problems)

        balance = self.get_balance(employee_id=employee.employee_id, leave_type_id=policy.leave_type_id, year=start_date.year)
        if balance and days > balance.value.remaining:
            return validation_failed([f"Insufficient leave balance. Available: {balance.value.remaining:g} days"])

        request = LeaveRequest(
            leave_id=0,
            employee_id=employee.employee_id,
            leave_type_id=policy.leave_type_id,
            start_date=start_date,
            end_date=end_date,
            days_requested=days,
            reason=reason.strip(),
            is_half_day=is_half_day,
            half_day_period=half_day_period if is_half_day else None,
            submitted_at=now,
        )
        request = replace(request, leave_id=self._leaves.add(request))
        logger.info("Leave request %s submitted by employee %s (%s days)", request.leave_id, employee_id, days)
        return ok(request)

    def approve(
        self,
        leave_id: int,
        *,
        approver_id: int,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Result[LeaveRequest]:
        now = now or now_local()
        request = self._leaves.get(int(leave_id))
        if not request:
            return not_found("Leave request not found")

        result = self._save(request, request.approve(approver_id, notes, now=now))
        if result:
            self._notify_employee(result.value, "Leave request approved", "Your leave request has been approved.")
        return result

    def reject(
        self,
        leave_id: int,
        *,
        approver_id: int,
        reason: str,
        now: Optional[datetime] = None,
    ) -> Result[LeaveRequest]:
        now = now or now_local()
        request = self._leaves.get(int(leave_id))
        if not request:
            return not_found("Leave request not found")

        result = self._save(request, request.reject(approver_id, reason, now=now))
        if result:
            self._notify_employee(
                result.value,
                "Leave request rejected",
                f"Your leave request has been rejected. Reason: {result.value.rejection_reason}",
            )
        return result

    def cancel(self, leave_id: int, *, now: Optional[datetime] = None) -> Result[LeaveRequest]:
        now = now or now_local()
        request = self._leaves.get(int(leave_id))
        if not request:
            return not_found("Leave request not found")
        return self._save(request, request.cancel(now=now))

    def get_balance(self, *, employee_id: int, leave_type_id: int, year: int) -> Result[LeaveBalance]:
        employee = self._employees.get(int(employee_id))
        if not employee:
            return not_found("Employee not found")
        policy = self._leave_types.get(int(leave_type_id))
        if not policy:
            return not_found("Leave type not found")

        balance = self._balances.get_balance(
            policy,
            year=int(year),
            hire_date=employee.hire_date,
            used_in_year=lambda y: self._leaves.sum_approved_days(
                employee_id=employee.employee_id, leave_type_id=policy.leave_type_id, year=y
            ),
        )
        return ok(balance)

    def balances_for(self, *, employee_id: int, year: int) -> Result[dict[str, LeaveBalance]]:
        if not self._employees.get(int(employee_id)):
            return not_found("Employee not found")

        out: dict[str, LeaveBalance] = {}
        for policy in self._leave_types.list_active():
            out[policy.code] = self.get_balance(
                employee_id=employee_id, leave_type_id=policy.leave_type_id, year=year
            ).unwrap()
        return ok(out)

    def _save(self, current: LeaveRequest, result: Result[LeaveRequest]) -> Result[LeaveRequest]:
        if not result:
            logger.debug("Leave %s: %s", current.leave_id, result.error.message)
            return result
        if not self._leaves.update(result.value, expected_status=current.status):
            logger.warning("Leave %s changed concurrently; %s not applied", current.leave_id, result.value.status.value)
            return invalid_transition("Leave request was modified by another request")
        logger.info("Leave %s: %s -> %s", current.leave_id, current.status.value, result.value.status.value)
        return result

    def _notify_employee(self, request: LeaveRequest, title: str, message: str) -> None:
        if not self._notifier:
            return
        try:
            employee = self._employees.get(request.employee_id)
        except Exception:
            logger.exception("Could not load employee %s for leave %s notice", request.employee_id, request.leave_id)
            return
        if not employee or employee.user_id is None:
            return
        self._notifier.notify(
            [employee.user_id],
            title,
            message,
            {"leave_id": request.leave_id, "status": request.status.value},
        )
