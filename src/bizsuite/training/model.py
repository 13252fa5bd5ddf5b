from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from ..common.datetime_utils import add_months
from ..core.constants import CERTIFICATE_PREFIX, DEFAULT_PASSING_SCORE
from ..core.enums import EnrollmentStatus, TrainingStatus
from ..core.result import Result, invalid_transition, ok, validation_failed

STATUS_LABELS = {
    EnrollmentStatus.ENROLLED: "Enrolled",
    EnrollmentStatus.IN_PROGRESS: "In Progress",
    EnrollmentStatus.COMPLETED: "Completed",
    EnrollmentStatus.DROPPED: "Dropped",
    EnrollmentStatus.FAILED: "Failed",
}


def generate_certificate_number(
    training_id: int,
    employee_id: int,
    *,
    now: datetime,
    prefix: str = CERTIFICATE_PREFIX,
    offset: int = 0,
) -> str:
    timestamp = int(now.timestamp()) + offset
    return f"{prefix}-{now.year}-{int(training_id):04d}-{int(employee_id):04d}-{timestamp}"


CertificateNumbering = Callable[["TrainingEnrollment", datetime], str]


def _default_numbering(enrollment: "TrainingEnrollment", now: datetime) -> str:
    return generate_certificate_number(enrollment.training_id, enrollment.employee_id, now=now)


@dataclass(frozen=True)
class Training:
    training_id: int
    title: str
    start_date: date
    end_date: date
    status: TrainingStatus = TrainingStatus.SCHEDULED
    max_participants: Optional[int] = None
    enrolled_count: int = 0
    cost_per_participant: Decimal = Decimal("0.00")
    requires_certification: bool = False
    certification_validity_months: Optional[int] = None
    is_mandatory: bool = False

    def has_available_spots(self) -> bool:
        if not self.max_participants:
            return True
        return self.enrolled_count < self.max_participants

    def can_enroll(self, *, already_enrolled: bool) -> bool:
        return self.status == TrainingStatus.SCHEDULED and self.has_available_spots() and not already_enrolled

    def enroll(
        self,
        employee_id: int,
        *,
        already_enrolled: bool,
        now: datetime,
    ) -> Result[tuple["Training", "TrainingEnrollment"]]:
        if self.status != TrainingStatus.SCHEDULED:
            return invalid_transition("Enrollment is only open while the training is scheduled")
        if not self.has_available_spots():
            return validation_failed(["Training is full"])
        if already_enrolled:
            return validation_failed(["Employee is already enrolled in this training"])

        enrollment = TrainingEnrollment(
            enrollment_id=0,
            training_id=self.training_id,
            employee_id=int(employee_id),
            enrolled_at=now,
        )
        return ok((self.with_enrolled_count(1), enrollment))

    def start(self) -> Result["Training"]:
        if self.status != TrainingStatus.SCHEDULED:
            return invalid_transition("Only scheduled trainings can start")
        return ok(replace(self, status=TrainingStatus.ONGOING))

    def complete(self) -> Result["Training"]:
        if self.status != TrainingStatus.ONGOING:
            return invalid_transition("Only ongoing trainings can complete")
        return ok(replace(self, status=TrainingStatus.COMPLETED))

    def status_for(self, today: date) -> TrainingStatus:
        """Status implied by the schedule; cancelled trainings stay cancelled."""
        if self.status == TrainingStatus.CANCELLED:
            return self.status
        if self.start_date > today:
            return TrainingStatus.SCHEDULED
        if self.end_date >= today:
            return TrainingStatus.ONGOING if self.status == TrainingStatus.SCHEDULED else self.status
        if self.status in (TrainingStatus.SCHEDULED, TrainingStatus.ONGOING):
            return TrainingStatus.COMPLETED
        return self.status

    def with_enrolled_count(self, delta: int) -> "Training":
        return replace(self, enrolled_count=max(0, self.enrolled_count + int(delta)))

    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def total_cost(self) -> Decimal:
        return Decimal(self.cost_per_participant) * self.enrolled_count

    def is_upcoming(self, today: date) -> bool:
        return self.start_date > today

    def is_past(self, today: date) -> bool:
        return self.end_date < today


@dataclass(frozen=True)
class TrainingEnrollment:
    enrollment_id: int
    training_id: int
    employee_id: int
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED
    progress_percentage: int = 0
    enrolled_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    score: Optional[float] = None
    passed: Optional[bool] = None
    feedback: Optional[str] = None
    certificate_issued: bool = False
    certificate_number: Optional[str] = None
    certificate_expiry: Optional[date] = None

    def start(self, *, now: datetime) -> Result["TrainingEnrollment"]:
        if self.status != EnrollmentStatus.ENROLLED:
            return invalid_transition(f"Enrollment is {self.status.value}, only enrolled can start")
        return ok(replace(self, status=EnrollmentStatus.IN_PROGRESS, started_at=now))

    def complete(
        self,
        training: Training,
        score: Optional[float] = None,
        passed: Optional[bool] = None,
        *,
        now: datetime,
        numbering: Optional[CertificateNumbering] = None,
        passing_score: float = DEFAULT_PASSING_SCORE,
    ) -> Result["TrainingEnrollment"]:
        if self.status != EnrollmentStatus.IN_PROGRESS:
            return invalid_transition(f"Enrollment is {self.status.value}, only in-progress can complete")

        if passed is None and score is not None:
            passed = score >= passing_score
        if score is None:
            score = self.score
        if passed is None:
            passed = self.passed
        # A score recorded earlier still decides when nothing else does.
        if passed is None and score is not None:
            passed = score >= passing_score

        completed = replace(
            self,
            status=EnrollmentStatus.COMPLETED,
            completed_at=now,
            progress_percentage=100,
            score=score,
            passed=passed,
        )

        # An undetermined result (no score, no verdict) does not block the certificate.
        if training.requires_certification and completed.passed is not False:
            completed = completed._with_certificate(training, now=now, numbering=numbering)
        return ok(completed)

    def update_progress(
        self,
        percentage: int,
        training: Training,
        *,
        now: datetime,
        numbering: Optional[CertificateNumbering] = None,
        passing_score: float = DEFAULT_PASSING_SCORE,
    ) -> Result["TrainingEnrollment"]:
        if self.status != EnrollmentStatus.IN_PROGRESS:
            return invalid_transition(f"Enrollment is {self.status.value}, progress can only change while in progress")
        if percentage is None or percentage < 0 or percentage > 100:
            return validation_failed(["Progress must be between 0 and 100"])

        updated = replace(self, progress_percentage=int(percentage))
        if percentage == 100:
            return updated.complete(training, now=now, numbering=numbering, passing_score=passing_score)
        return ok(updated)

    def fail(self, reason: Optional[str] = None) -> Result["TrainingEnrollment"]:
        if self.status != EnrollmentStatus.IN_PROGRESS:
            return invalid_transition(f"Enrollment is {self.status.value}, only in-progress can fail")
        return ok(replace(self, status=EnrollmentStatus.FAILED, passed=False, feedback=reason or self.feedback))

    def drop(self) -> Result["TrainingEnrollment"]:
        if self.status == EnrollmentStatus.COMPLETED:
            return invalid_transition("Completed enrollments cannot be dropped")
        if self.status == EnrollmentStatus.DROPPED:
            return invalid_transition("Enrollment is already dropped")
        return ok(replace(self, status=EnrollmentStatus.DROPPED))

    def issue_certificate(
        self,
        training: Training,
        *,
        now: datetime,
        numbering: Optional[CertificateNumbering] = None,
    ) -> Result["TrainingEnrollment"]:
        if self.status != EnrollmentStatus.COMPLETED or self.passed is False:
            return invalid_transition("Certificates require a completed, passed enrollment")
        return ok(self._with_certificate(training, now=now, numbering=numbering))

    def _with_certificate(
        self,
        training: Training,
        *,
        now: datetime,
        numbering: Optional[CertificateNumbering],
    ) -> "TrainingEnrollment":
        expiry = None
        if training.certification_validity_months:
            expiry = add_months(now, training.certification_validity_months).date()
        return replace(
            self,
            certificate_issued=True,
            certificate_number=(numbering or _default_numbering)(self, now),
            certificate_expiry=expiry,
        )

    def is_certificate_expired(self, today: date) -> bool:
        return self.certificate_expiry is not None and self.certificate_expiry < today

    @property
    def grade(self) -> Optional[str]:
        if not self.score:
            return None
        if self.score >= 90:
            return "A"
        if self.score >= 80:
            return "B"
        if self.score >= 70:
            return "C"
        if self.score >= 60:
            return "D"
        return "F"

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, "Unknown")
