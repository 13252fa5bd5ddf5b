from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_PASSING_SCORE
from ..core.enums import EnrollmentStatus
from ..core.result import Result, invalid_transition, not_found, ok
from ..employees.repository import EmployeeRepository
from ..notifications.service import Notifier
from .certificates import CertificateNumberGenerator
from .model import Training, TrainingEnrollment
from .repository import EnrollmentRepository, TrainingRepository

logger = logging.getLogger(__name__)


class TrainingService:
    def __init__(
        self,
        trainings: TrainingRepository,
        enrollments: EnrollmentRepository,
        employees: EmployeeRepository,
        *,
        notifier: Optional[Notifier] = None,
        numbering: Optional[CertificateNumberGenerator] = None,
        passing_score: float = DEFAULT_PASSING_SCORE,
    ):
        self._trainings = trainings
        self._enrollments = enrollments
        self._employees = employees
        self._notifier = notifier
        self._numbering = numbering or CertificateNumberGenerator(enrollments.certificate_number_exists)
        self._passing_score = passing_score

    # -------- Trainings --------
    def enroll(self, training_id: int, employee_id: int, *, now: Optional[datetime] = None) -> Result[TrainingEnrollment]:
        now = now or now_local()
        training = self._trainings.get(int(training_id))
        if not training:
            return not_found("Training not found")
        if not self._employees.get(int(employee_id)):
            return not_found("Employee not found")

        existing = self._enrollments.get_for(training_id=training.training_id, employee_id=int(employee_id))
        result = training.enroll(employee_id, already_enrolled=existing is not None, now=now)
        if not result:
            return result

        _, enrollment = result.value
        enrollment = replace(enrollment, enrollment_id=self._enrollments.add(enrollment))
        self._trainings.adjust_enrolled_count(training.training_id, 1)
        logger.info("Employee %s enrolled in training %s", employee_id, training_id)
        return ok(enrollment)

    def start_training(self, training_id: int, *, now: Optional[datetime] = None) -> Result[Training]:
        """Start the training and move every ``enrolled`` participant to ``in_progress``."""
        now = now or now_local()
        training = self._trainings.get(int(training_id))
        if not training:
            return not_found("Training not found")

        result = training.start()
        if not result:
            return result
        if not self._trainings.update_status(training.training_id, status=result.value.status, expected_status=training.status):
            return invalid_transition("Training was modified by another request")

        started = 0
        for enrollment in self._enrollments.list_for_training(training.training_id):
            moved = enrollment.start(now=now)
            if moved and self._enrollments.update(moved.value, expected_status=enrollment.status):
                started += 1
        logger.info("Training %s started with %s participants", training_id, started)
        return result

    def complete_training(self, training_id: int) -> Result[Training]:
        training = self._trainings.get(int(training_id))
        if not training:
            return not_found("Training not found")

        result = training.complete()
        if result and not self._trainings.update_status(
            training.training_id, status=result.value.status, expected_status=training.status
        ):
            return invalid_transition("Training was modified by another request")
        return result

    def refresh_status(self, training_id: int, *, today: Optional[date] = None) -> Result[Training]:
        """Bring the stored status in line with the schedule."""
        today = today or now_local().date()
        training = self._trainings.get(int(training_id))
        if not training:
            return not_found("Training not found")

        status = training.status_for(today)
        if status == training.status:
            return ok(training)
        if not self._trainings.update_status(training.training_id, status=status, expected_status=training.status):
            logger.warning("Training %s changed concurrently", training_id)
            return invalid_transition("Training was modified by another request")
        logger.info("Training %s: %s -> %s", training_id, training.status.value, status.value)
        return ok(replace(training, status=status))

    # -------- Enrollments --------
    def start_enrollment(self, enrollment_id: int, *, now: Optional[datetime] = None) -> Result[TrainingEnrollment]:
        now = now or now_local()
        return self._transition(enrollment_id, lambda e, t: e.start(now=now))

    def complete_enrollment(
        self,
        enrollment_id: int,
        *,
        score: Optional[float] = None,
        passed: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> Result[TrainingEnrollment]:
        now = now or now_local()
        return self._transition(
            enrollment_id,
            lambda e, t: e.complete(
                t, score, passed, now=now, numbering=self._numbering, passing_score=self._passing_score
            ),
        )

    def update_progress(
        self,
        enrollment_id: int,
        percentage: int,
        *,
        now: Optional[datetime] = None,
    ) -> Result[TrainingEnrollment]:
        now = now or now_local()
        return self._transition(
            enrollment_id,
            lambda e, t: e.update_progress(
                percentage, t, now=now, numbering=self._numbering, passing_score=self._passing_score
            ),
        )

    def fail_enrollment(self, enrollment_id: int, *, reason: Optional[str] = None) -> Result[TrainingEnrollment]:
        return self._transition(enrollment_id, lambda e, t: e.fail(reason))

    def drop_enrollment(self, enrollment_id: int) -> Result[TrainingEnrollment]:
        result = self._transition(enrollment_id, lambda e, t: e.drop())
        if result:
            self._trainings.adjust_enrolled_count(result.value.training_id, -1)
        return result

    def issue_certificate(self, enrollment_id: int, *, now: Optional[datetime] = None) -> Result[TrainingEnrollment]:
        now = now or now_local()
        return self._transition(enrollment_id, lambda e, t: e.issue_certificate(t, now=now, numbering=self._numbering))

    # -------- Reports --------
    def completion_rate(self, training_id: int) -> float:
        enrollments = list(self._enrollments.list_for_training(int(training_id)))
        if not enrollments:
            return 0.0
        completed = sum(1 for e in enrollments if e.status == EnrollmentStatus.COMPLETED)
        return round(completed / len(enrollments) * 100, 2)

    def average_score(self, training_id: int) -> Optional[float]:
        scores = [e.score for e in self._enrollments.list_for_training(int(training_id)) if e.score is not None]
        if not scores:
            return None
        return round(sum(scores) / len(scores), 2)

    def _transition(
        self,
        enrollment_id: int,
        guard: Callable[[TrainingEnrollment, Training], Result[TrainingEnrollment]],
    ) -> Result[TrainingEnrollment]:
        enrollment = self._enrollments.get(int(enrollment_id))
        if not enrollment:
            return not_found("Enrollment not found")
        training = self._trainings.get(enrollment.training_id)
        if not training:
            return not_found("Training not found")

        result = guard(enrollment, training)
        if not result:
            logger.debug("Enrollment %s: %s", enrollment_id, result.error.message)
            return result
        if not self._enrollments.update(result.value, expected_status=enrollment.status):
            logger.warning("Enrollment %s changed concurrently", enrollment_id)
            return invalid_transition("Enrollment was modified by another request")

        updated = result.value
        if updated.status != enrollment.status:
            logger.info("Enrollment %s: %s -> %s", enrollment_id, enrollment.status.value, updated.status.value)
        if updated.certificate_issued and not enrollment.certificate_issued:
            self._notify_certificate(updated, training)
        return result

    def _notify_certificate(self, enrollment: TrainingEnrollment, training: Training) -> None:
        if not self._notifier:
            return
        try:
            employee = self._employees.get(enrollment.employee_id)
        except Exception:
            logger.exception("Could not load employee %s for certificate notice", enrollment.employee_id)
            return
        if not employee or employee.user_id is None:
            return
        self._notifier.notify(
            [employee.user_id],
            "Certificate issued",
            f"You have earned a certificate for '{training.title}' ({enrollment.certificate_number}).",
            {"enrollment_id": enrollment.enrollment_id, "certificate_number": enrollment.certificate_number},
        )
