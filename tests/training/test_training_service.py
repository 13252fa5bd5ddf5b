from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

from bizsuite.core.enums import EnrollmentStatus, TrainingStatus
from bizsuite.core.result import ErrorKind
from bizsuite.employees.model import Employee
from bizsuite.notifications.service import Notifier
from bizsuite.training.certificates import CertificateNumberGenerator
from bizsuite.training.model import Training, TrainingEnrollment
from bizsuite.training.service import TrainingService

NOW = datetime(2025, 6, 2, 10, 0)


class FakeTrainingRepo:
    def __init__(self, *trainings):
        self.items = {t.training_id: t for t in trainings}

    def get(self, training_id):
        return self.items.get(int(training_id))

    def update_status(self, training_id, *, status, expected_status):
        stored = self.items.get(training_id)
        if not stored or stored.status != expected_status:
            return False
        self.items[training_id] = replace(stored, status=status)
        return True

    def adjust_enrolled_count(self, training_id, delta):
        self.items[training_id] = self.items[training_id].with_enrolled_count(delta)


class FakeEnrollmentRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, TrainingEnrollment] = {}

    def get(self, enrollment_id):
        return self.items.get(int(enrollment_id))

    def get_for(self, *, training_id, employee_id):
        for e in self.items.values():
            if e.training_id == training_id and e.employee_id == employee_id:
                return e
        return None

    def add(self, enrollment):
        eid = self._next_id
        self._next_id += 1
        self.items[eid] = replace(enrollment, enrollment_id=eid)
        return eid

    def update(self, enrollment, *, expected_status):
        stored = self.items.get(enrollment.enrollment_id)
        if not stored or stored.status != expected_status:
            return False
        self.items[enrollment.enrollment_id] = enrollment
        return True

    def list_for_training(self, training_id):
        return [e for e in self.items.values() if e.training_id == training_id]

    def certificate_number_exists(self, number):
        return any(e.certificate_number == number for e in self.items.values())


class FakeEmployeeRepo:
    def get(self, employee_id):
        return Employee(
            employee_id=int(employee_id),
            user_id=int(employee_id) * 10,
            full_name=f"Employee {employee_id}",
            department_id=1,
            hire_date=date(2020, 1, 1),
        )


class RecordingGateway:
    def __init__(self):
        self.sent = []

    def send(self, notification):
        self.sent.append(notification)


def _training(**overrides):
    values = dict(
        training_id=1,
        title="Secure Coding",
        start_date=date(2025, 6, 2),
        end_date=date(2025, 6, 4),
        max_participants=2,
    )
    values.update(overrides)
    return Training(**values)


def _service(training=None, gateway=None):
    trainings = FakeTrainingRepo(training or _training())
    enrollments = FakeEnrollmentRepo()
    service = TrainingService(
        trainings,
        enrollments,
        FakeEmployeeRepo(),
        notifier=Notifier(gateway) if gateway else None,
    )
    return service, trainings, enrollments


def _in_progress(service, employee_id=7):
    enrollment = service.enroll(1, employee_id, now=NOW).unwrap()
    return service.start_enrollment(enrollment.enrollment_id, now=NOW).unwrap()


def test_enroll_increments_count_and_respects_capacity():
    service, trainings, _ = _service()

    service.enroll(1, 7, now=NOW).unwrap()
    service.enroll(1, 8, now=NOW).unwrap()
    full = service.enroll(1, 9, now=NOW)

    assert trainings.get(1).enrolled_count == 2
    assert full.kind == ErrorKind.VALIDATION_FAILED


def test_enroll_twice_is_rejected():
    service, _, _ = _service()
    service.enroll(1, 7, now=NOW)

    assert service.enroll(1, 7, now=NOW).kind == ErrorKind.VALIDATION_FAILED


def test_progress_100_completes():
    service, _, enrollments = _service()
    enrollment = _in_progress(service)

    done = service.update_progress(enrollment.enrollment_id, 100, now=NOW).unwrap()

    assert done.status == EnrollmentStatus.COMPLETED
    assert done.progress_percentage == 100
    assert done.completed_at == NOW
    assert enrollments.get(done.enrollment_id) == done


def test_progress_out_of_range():
    service, _, _ = _service()
    enrollment = _in_progress(service)

    assert service.update_progress(enrollment.enrollment_id, 120, now=NOW).kind == ErrorKind.VALIDATION_FAILED


def test_progress_requires_in_progress():
    service, _, _ = _service()
    enrollment = service.enroll(1, 7, now=NOW).unwrap()

    assert service.update_progress(enrollment.enrollment_id, 50, now=NOW).kind == ErrorKind.INVALID_TRANSITION


def test_score_decides_pass_when_not_given():
    service, _, _ = _service()
    low = _in_progress(service, 7)
    high = _in_progress(service, 8)

    assert service.complete_enrollment(low.enrollment_id, score=65, now=NOW).unwrap().passed is False
    assert service.complete_enrollment(high.enrollment_id, score=70, now=NOW).unwrap().passed is True


def test_explicit_verdict_wins_over_score():
    service, _, _ = _service()
    enrollment = _in_progress(service)

    done = service.complete_enrollment(enrollment.enrollment_id, score=95, passed=False, now=NOW).unwrap()

    assert done.passed is False
    assert done.grade == "A"


def test_certificate_issued_on_pass_with_expiry_and_notification():
    gateway = RecordingGateway()
    service, _, _ = _service(
        _training(requires_certification=True, certification_validity_months=12), gateway=gateway
    )
    enrollment = _in_progress(service)

    done = service.complete_enrollment(enrollment.enrollment_id, score=88, now=NOW).unwrap()

    assert done.certificate_issued
    assert done.certificate_number.startswith("CERT-2025-0001-0007-")
    assert done.certificate_expiry == date(2026, 6, 2)
    assert not done.is_certificate_expired(date(2026, 6, 2))
    assert done.is_certificate_expired(date(2026, 6, 3))
    assert [n.title for n in gateway.sent] == ["Certificate issued"]
    assert gateway.sent[0].recipient_user_id == 70


def test_failed_enrollment_gets_no_certificate():
    service, _, _ = _service(_training(requires_certification=True))
    enrollment = _in_progress(service)

    done = service.complete_enrollment(enrollment.enrollment_id, score=40, now=NOW).unwrap()

    assert not done.certificate_issued
    assert service.issue_certificate(done.enrollment_id, now=NOW).kind == ErrorKind.INVALID_TRANSITION


def test_certificate_numbers_are_unique_within_one_second():
    taken = set()
    generator = CertificateNumberGenerator(taken.__contains__)
    enrollment = TrainingEnrollment(enrollment_id=1, training_id=3, employee_id=4)

    first = generator(enrollment, NOW)
    taken.add(first)
    second = generator(enrollment, NOW)

    assert first != second


def test_drop_decrements_count():
    service, trainings, _ = _service()
    enrollment = service.enroll(1, 7, now=NOW).unwrap()

    dropped = service.drop_enrollment(enrollment.enrollment_id).unwrap()

    assert dropped.status == EnrollmentStatus.DROPPED
    assert trainings.get(1).enrolled_count == 0


def test_completed_enrollment_cannot_be_dropped():
    service, trainings, _ = _service()
    enrollment = _in_progress(service)
    service.complete_enrollment(enrollment.enrollment_id, passed=True, now=NOW)

    assert service.drop_enrollment(enrollment.enrollment_id).kind == ErrorKind.INVALID_TRANSITION
    assert trainings.get(1).enrolled_count == 1


def test_fail_enrollment_records_reason():
    service, _, _ = _service()
    enrollment = _in_progress(service)

    failed = service.fail_enrollment(enrollment.enrollment_id, reason="Did not attend").unwrap()

    assert failed.status == EnrollmentStatus.FAILED
    assert failed.passed is False
    assert failed.feedback == "Did not attend"


def test_start_training_moves_enrolled_participants():
    service, trainings, enrollments = _service()
    service.enroll(1, 7, now=NOW)
    service.enroll(1, 8, now=NOW)

    service.start_training(1, now=NOW).unwrap()

    assert trainings.get(1).status == TrainingStatus.ONGOING
    assert {e.status for e in enrollments.items.values()} == {EnrollmentStatus.IN_PROGRESS}
    assert service.enroll(1, 9, now=NOW).kind == ErrorKind.INVALID_TRANSITION


def test_completion_rate_and_average_score():
    service, _, _ = _service(_training(max_participants=None))
    assert service.completion_rate(1) == 0.0
    assert service.average_score(1) is None

    first = _in_progress(service, 7)
    _in_progress(service, 8)
    _in_progress(service, 9)
    service.complete_enrollment(first.enrollment_id, score=80, now=NOW)

    assert service.completion_rate(1) == 33.33
    assert service.average_score(1) == 80.0


def test_status_follows_the_schedule():
    training = _training()

    assert training.status_for(date(2025, 6, 1)) == TrainingStatus.SCHEDULED
    assert training.status_for(date(2025, 6, 3)) == TrainingStatus.ONGOING
    assert training.status_for(date(2025, 6, 5)) == TrainingStatus.COMPLETED
    assert replace(training, status=TrainingStatus.CANCELLED).status_for(date(2025, 6, 3)) == TrainingStatus.CANCELLED


def test_refresh_status_stores_schedule_status():
    service, trainings, _ = _service()

    unchanged = service.refresh_status(1, today=date(2025, 5, 30)).unwrap()
    finished = service.refresh_status(1, today=date(2025, 6, 10)).unwrap()

    assert unchanged.status == TrainingStatus.SCHEDULED
    assert finished.status == TrainingStatus.COMPLETED
    assert trainings.get(1).status == TrainingStatus.COMPLETED
    assert service.refresh_status(99, today=date(2025, 6, 10)).kind == ErrorKind.NOT_FOUND


def test_complete_training_only_when_ongoing():
    service, trainings, _ = _service()

    assert service.complete_training(1).kind == ErrorKind.INVALID_TRANSITION
    service.start_training(1, now=NOW)
    assert service.complete_training(1).unwrap().status == TrainingStatus.COMPLETED
    assert trainings.get(1).status == TrainingStatus.COMPLETED
    assert service.complete_training(1).kind == ErrorKind.INVALID_TRANSITION


def test_progress_completion_uses_configured_passing_score():
    trainings = FakeTrainingRepo(_training())
    enrollments = FakeEnrollmentRepo()
    service = TrainingService(trainings, enrollments, FakeEmployeeRepo(), passing_score=60)
    enrollments.items[1] = TrainingEnrollment(
        enrollment_id=1, training_id=1, employee_id=7, status=EnrollmentStatus.IN_PROGRESS, score=65
    )

    done = service.update_progress(1, 100, now=NOW).unwrap()

    assert done.status == EnrollmentStatus.COMPLETED
    assert done.passed is True


class BrokenEmployeeRepo(FakeEmployeeRepo):
    def __init__(self):
        self.calls = 0

    def get(self, employee_id):
        self.calls += 1
        if self.calls > 1:
            raise ConnectionError("employees table unavailable")
        return super().get(employee_id)


def test_certificate_notice_lookup_failure_does_not_fail_completion():
    gateway = RecordingGateway()
    trainings = FakeTrainingRepo(_training(requires_certification=True))
    enrollments = FakeEnrollmentRepo()
    service = TrainingService(trainings, enrollments, BrokenEmployeeRepo(), notifier=Notifier(gateway))
    enrollment = service.enroll(1, 7, now=NOW).unwrap()
    service.start_enrollment(enrollment.enrollment_id, now=NOW)

    done = service.complete_enrollment(enrollment.enrollment_id, score=90, now=NOW).unwrap()

    assert done.certificate_issued
    assert enrollments.get(done.enrollment_id).status == EnrollmentStatus.COMPLETED
    assert gateway.sent == []
