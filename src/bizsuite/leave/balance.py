from __future__ import annotations

from datetime import date
from typing import Callable, Optional

from .model import LeaveBalance, LeaveTypePolicy

UsedInYear = Callable[[int], float]


class LeaveBalanceCalculator:
    """Per-employee, per-year balance: allocated + carried forward - used.

    Carry-forward is rolled year by year from the hire year, so the number of
    iterations is bounded by ``year - hire_year``. Without a hire date the
    requested year is treated as the hire year (nothing carried in).
    """

    def get_balance(
        self,
        policy: LeaveTypePolicy,
        *,
        year: int,
        hire_date: Optional[date],
        used_in_year: UsedInYear,
    ) -> LeaveBalance:
        hire_year = hire_date.year if hire_date else year
        first_year = year if not policy.carry_forward else min(hire_year, year)

        carried = 0.0
        balance = None
        for current in range(first_year, year + 1):
            carry_in = carried if policy.carry_forward and current > hire_year else 0.0
            balance = self._year_balance(policy, carry_in, float(used_in_year(current) or 0))
            carried = self._cap(policy, balance.remaining)

        return balance

    @staticmethod
    def _year_balance(policy: LeaveTypePolicy, carry_in: float, used: float) -> LeaveBalance:
        allocated = float(policy.days_per_year)
        total = allocated + carry_in
        return LeaveBalance(
            allocated=allocated,
            carry_forward=carry_in,
            total_allocated=total,
            used=used,
            remaining=max(0.0, total - used),
        )

    @staticmethod
    def _cap(policy: LeaveTypePolicy, remaining: float) -> float:
        if policy.max_carry_forward_days is None:
            return remaining
        return min(remaining, float(policy.max_carry_forward_days))
