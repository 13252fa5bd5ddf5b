from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

from bizsuite.core.enums import HalfDayPeriod, LeaveStatus
from bizsuite.core.result import ErrorKind
from bizsuite.employees.model import Employee
from bizsuite.leave.model import LeaveRequest, LeaveTypePolicy, calculate_working_days
from bizsuite.leave.service import LeaveService
from bizsuite.notifications.service import Notifier

NOW = datetime(2024, 3, 1, 9, 0)


class FakeLeaveRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, LeaveRequest] = {}
        self.lose_next_update = False

    def get(self, leave_id):
        return self.items.get(int(leave_id))

    def add(self, request):
        rid = self._next_id
        self._next_id += 1
        self.items[rid] = replace(request, leave_id=rid)
        return rid

    def update(self, request, *, expected_status):
        stored = self.items.get(request.leave_id)
        if self.lose_next_update:
            self.lose_next_update = False
            return False
        if not stored or stored.status != expected_status:
            return False
        self.items[request.leave_id] = request
        return True

    def list_for_employee(self, employee_id, *, status=None, limit=200):
        return [r for r in self.items.values() if r.employee_id == employee_id and (status is None or r.status == status)]

    def sum_approved_days(self, *, employee_id, leave_type_id, year):
        return sum(
            r.days_requested
            for r in self.items.values()
            if r.employee_id == employee_id
            and r.leave_type_id == leave_type_id
            and r.status == LeaveStatus.APPROVED
            and r.start_date.year == year
        )


class FakeLeaveTypeRepo:
    def __init__(self, *policies):
        self._items = {p.leave_type_id: p for p in policies}

    def get(self, leave_type_id):
        return self._items.get(int(leave_type_id))

    def list_active(self):
        return [p for p in self._items.values() if p.is_active]


class FakeEmployeeRepo:
    def __init__(self, *employees):
        self._items = {e.employee_id: e for e in employees}

    def get(self, employee_id):
        return self._items.get(int(employee_id))


class RecordingGateway:
    def __init__(self):
        self.sent = []

    def send(self, notification):
        self.sent.append(notification)


ANNUAL = LeaveTypePolicy(leave_type_id=1, name="Annual", code="AL", days_per_year=10)


def _service(*policies, hire_date=date(2020, 1, 1), gateway=None):
    leaves = FakeLeaveRepo()
    employee = Employee(employee_id=7, user_id=70, full_name="Ada", department_id=1, hire_date=hire_date)
    notifier = Notifier(gateway) if gateway else None
    service = LeaveService(
        leaves,
        FakeLeaveTypeRepo(*(policies or (ANNUAL,))),
        FakeEmployeeRepo(employee),
        notifier=notifier,
    )
    return service, leaves


def _approved(leaves, start, end, days, leave_type_id=1):
    leaves.add(
        LeaveRequest(
            leave_id=0,
            employee_id=7,
            leave_type_id=leave_type_id,
            start_date=start,
            end_date=end,
            days_requested=days,
            reason="holiday",
            status=LeaveStatus.APPROVED,
        )
    )


def test_working_days_skip_weekends():
    # Friday .. Monday
    assert calculate_working_days(date(2024, 3, 1), date(2024, 3, 4)) == 2


def test_half_day_always_counts_half():
    assert calculate_working_days(date(2024, 3, 4), date(2024, 3, 8), is_half_day=True) == 0.5


def test_submit_then_approve_sets_approved_at_and_notifies():
    gateway = RecordingGateway()
    service, _ = _service(gateway=gateway)
    submitted = service.submit(
        employee_id=7,
        leave_type_id=1,
        start_date=date(2024, 3, 11),
        end_date=date(2024, 3, 13),
        reason="Family trip",
        now=NOW,
    ).unwrap()
    assert submitted.status == LeaveStatus.PENDING
    assert submitted.days_requested == 3

    approved = service.approve(submitted.leave_id, approver_id=1, notes="ok", now=NOW).unwrap()

    assert approved.status == LeaveStatus.APPROVED
    assert approved.approved_at == NOW
    assert approved.rejection_reason is None
    assert [n.recipient_user_id for n in gateway.sent] == [70]


def test_approve_only_from_pending():
    service, leaves = _service()
    _approved(leaves, date(2024, 3, 11), date(2024, 3, 11), 1)

    result = service.approve(1, approver_id=1, now=NOW)

    assert not result
    assert result.kind == ErrorKind.INVALID_TRANSITION


def test_second_reject_is_a_noop():
    service, leaves = _service()
    rid = service.submit(
        employee_id=7, leave_type_id=1, start_date=date(2024, 3, 11), end_date=date(2024, 3, 11), reason="x", now=NOW
    ).unwrap().leave_id

    first = service.reject(rid, approver_id=1, reason="Busy week", now=NOW)
    second = service.reject(rid, approver_id=2, reason="Other", now=datetime(2024, 3, 2))

    assert first
    assert second.kind == ErrorKind.INVALID_TRANSITION
    stored = leaves.get(rid)
    assert stored.approver_id == 1
    assert stored.rejection_reason == "Busy week"


def test_reject_requires_reason():
    service, _ = _service()
    rid = service.submit(
        employee_id=7, leave_type_id=1, start_date=date(2024, 3, 11), end_date=date(2024, 3, 11), reason="x", now=NOW
    ).unwrap().leave_id

    result = service.reject(rid, approver_id=1, reason="  ", now=NOW)

    assert result.kind == ErrorKind.VALIDATION_FAILED


def test_cancel_approved_only_before_start():
    service, leaves = _service()
    _approved(leaves, date(2024, 3, 11), date(2024, 3, 11), 1)

    assert service.cancel(1, now=datetime(2024, 3, 12, 8, 0)).kind == ErrorKind.INVALID_TRANSITION
    assert service.cancel(1, now=NOW).value.status == LeaveStatus.CANCELLED


def test_lost_race_reports_invalid_transition():
    service, leaves = _service()
    rid = service.submit(
        employee_id=7, leave_type_id=1, start_date=date(2024, 3, 11), end_date=date(2024, 3, 11), reason="x", now=NOW
    ).unwrap().leave_id
    leaves.lose_next_update = True

    result = service.approve(rid, approver_id=1, now=NOW)

    assert result.kind == ErrorKind.INVALID_TRANSITION
    assert leaves.get(rid).status == LeaveStatus.PENDING


def test_balance_without_carry_forward():
    service, leaves = _service(hire_date=date(2022, 5, 1))
    _approved(leaves, date(2024, 2, 5), date(2024, 2, 8), 4)

    balance = service.get_balance(employee_id=7, leave_type_id=1, year=2024).unwrap()

    assert balance.as_dict() == {
        "allocated": 10,
        "carry_forward": 0,
        "total_allocated": 10,
        "used": 4,
        "remaining": 6,
    }


def test_balance_carries_forward_with_cap():
    policy = LeaveTypePolicy(
        leave_type_id=2, name="Annual+", code="AP", days_per_year=10, carry_forward=True, max_carry_forward_days=5
    )
    service, leaves = _service(policy, hire_date=date(2022, 6, 1))
    _approved(leaves, date(2022, 7, 4), date(2022, 7, 5), 2, leave_type_id=2)
    _approved(leaves, date(2023, 7, 3), date(2023, 7, 11), 7, leave_type_id=2)

    balance = service.get_balance(employee_id=7, leave_type_id=2, year=2024).unwrap()

    # 2022: 10 - 2 = 8 -> capped 5; 2023: 15 - 7 = 8 -> capped 5
    assert balance.carry_forward == 5
    assert balance.total_allocated == 15
    assert balance.remaining == 15


def test_balance_never_negative():
    service, leaves = _service()
    _approved(leaves, date(2024, 1, 8), date(2024, 1, 19), 12)

    assert service.get_balance(employee_id=7, leave_type_id=1, year=2024).unwrap().remaining == 0


def test_missing_hire_date_treated_as_hired_this_year():
    policy = LeaveTypePolicy(leave_type_id=3, name="Carry", code="CF", days_per_year=10, carry_forward=True)
    service, _ = _service(policy, hire_date=None)

    balance = service.get_balance(employee_id=7, leave_type_id=3, year=2024).unwrap()

    assert balance.carry_forward == 0
    assert balance.total_allocated == 10


def test_submit_rejects_insufficient_balance():
    service, leaves = _service()
    _approved(leaves, date(2024, 1, 8), date(2024, 1, 16), 7)

    result = service.submit(
        employee_id=7,
        leave_type_id=1,
        start_date=date(2024, 3, 11),
        end_date=date(2024, 3, 15),
        reason="Long weekend",
        now=NOW,
    )

    assert result.kind == ErrorKind.VALIDATION_FAILED
    assert result.error.reasons == ("Insufficient leave balance. Available: 3 days",)


def test_submit_applies_policy_rules():
    strict = LeaveTypePolicy(
        leave_type_id=4, name="Study", code="ST", days_per_year=20, max_consecutive_days=2, min_notice_days=14
    )
    service, _ = _service(strict)

    result = service.submit(
        employee_id=7,
        leave_type_id=4,
        start_date=date(2024, 3, 4),
        end_date=date(2024, 3, 6),
        reason="Exam",
        now=NOW,
    )

    assert result.kind == ErrorKind.VALIDATION_FAILED
    assert set(result.error.reasons) == {"Maximum consecutive days allowed: 2", "Minimum notice required: 14 days"}


def test_half_day_needs_period():
    service, _ = _service()

    missing = service.submit(
        employee_id=7, leave_type_id=1, start_date=date(2024, 3, 11), end_date=date(2024, 3, 11),
        reason="Dentist", is_half_day=True, now=NOW,
    )
    ok = service.submit(
        employee_id=7, leave_type_id=1, start_date=date(2024, 3, 11), end_date=date(2024, 3, 11),
        reason="Dentist", is_half_day=True, half_day_period=HalfDayPeriod.MORNING, now=NOW,
    )

    assert missing.kind == ErrorKind.VALIDATION_FAILED
    assert ok.value.days_requested == 0.5


def test_balances_for_keys_by_code():
    sick = LeaveTypePolicy(leave_type_id=5, name="Sick", code="SL", days_per_year=5)
    service, _ = _service(ANNUAL, sick)

    balances = service.balances_for(employee_id=7, year=2024).unwrap()

    assert set(balances) == {"AL", "SL"}
    assert balances["SL"].remaining == 5


class BrokenEmployeeRepo(FakeEmployeeRepo):
    def __init__(self, *employees):
        super().__init__(*employees)
        self.fail = False

    def get(self, employee_id):
        if self.fail:
            raise ConnectionError("employees table unavailable")
        return super().get(employee_id)


def test_notice_lookup_failure_keeps_the_approval():
    gateway = RecordingGateway()
    leaves = FakeLeaveRepo()
    employees = BrokenEmployeeRepo(
        Employee(employee_id=7, user_id=70, full_name="Ada", department_id=1, hire_date=date(2020, 1, 1))
    )
    service = LeaveService(leaves, FakeLeaveTypeRepo(ANNUAL), employees, notifier=Notifier(gateway))
    rid = service.submit(
        employee_id=7, leave_type_id=1, start_date=date(2024, 3, 11), end_date=date(2024, 3, 11), reason="x", now=NOW
    ).unwrap().leave_id
    employees.fail = True

    result = service.approve(rid, approver_id=1, now=NOW)

    assert result.value.status == LeaveStatus.APPROVED
    assert leaves.get(rid).status == LeaveStatus.APPROVED
    assert gateway.sent == []
