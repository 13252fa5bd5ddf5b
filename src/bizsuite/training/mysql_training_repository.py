from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import EnrollmentStatus, TrainingStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_int, to_bool, to_decimal
from .model import Training, TrainingEnrollment
from .repository import EnrollmentRepository, TrainingRepository


def _training(r: dict) -> Training:
    return Training(
        training_id=int(r["training_id"]),
        title=r["title"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        status=TrainingStatus(r["status"]),
        max_participants=optional_int(r.get("max_participants")),
        enrolled_count=int(r.get("enrolled_count") or 0),
        cost_per_participant=to_decimal(r.get("cost_per_participant")),
        requires_certification=to_bool(r.get("requires_certification")),
        certification_validity_months=optional_int(r.get("certification_validity_months")),
        is_mandatory=to_bool(r.get("is_mandatory")),
    )


def _enrollment(r: dict) -> TrainingEnrollment:
    return TrainingEnrollment(
        enrollment_id=int(r["enrollment_id"]),
        training_id=int(r["training_id"]),
        employee_id=int(r["employee_id"]),
        status=EnrollmentStatus(r["status"]),
        progress_percentage=int(r.get("progress_percentage") or 0),
        enrolled_at=r.get("enrolled_at"),
        started_at=r.get("started_at"),
        completed_at=r.get("completed_at"),
        score=float(r["score"]) if r.get("score") is not None else None,
        passed=bool(r["passed"]) if r.get("passed") is not None else None,
        feedback=r.get("feedback"),
        certificate_issued=to_bool(r.get("certificate_issued")),
        certificate_number=r.get("certificate_number"),
        certificate_expiry=r.get("certificate_expiry"),
    )


class MySQLTrainingRepository(TrainingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, training_id: int) -> Optional[Training]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM trainings WHERE training_id=%s", (int(training_id),))
            r = fetchone(cur)
            return _training(r) if r else None

    def update_status(self, training_id: int, *, status: TrainingStatus, expected_status: TrainingStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE trainings SET status=%s WHERE training_id=%s AND status=%s",
                (status.value, int(training_id), expected_status.value),
            )
            return cur.rowcount > 0

    def adjust_enrolled_count(self, training_id: int, delta: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE trainings SET enrolled_count=GREATEST(enrolled_count + %s, 0) WHERE training_id=%s",
                (int(delta), int(training_id)),
            )


class MySQLEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, enrollment_id: int) -> Optional[TrainingEnrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM training_enrollments WHERE enrollment_id=%s", (int(enrollment_id),))
            r = fetchone(cur)
            return _enrollment(r) if r else None

    def get_for(self, *, training_id: int, employee_id: int) -> Optional[TrainingEnrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM training_enrollments WHERE training_id=%s AND employee_id=%s",
                (int(training_id), int(employee_id)),
            )
            r = fetchone(cur)
            return _enrollment(r) if r else None

    def add(self, enrollment: TrainingEnrollment) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO training_enrollments(training_id, employee_id, status, progress_percentage, enrolled_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (
                    enrollment.training_id,
                    enrollment.employee_id,
                    enrollment.status.value,
                    enrollment.progress_percentage,
                    enrollment.enrolled_at,
                ),
            )
            return int(cur.lastrowid)

    def update(self, enrollment: TrainingEnrollment, *, expected_status: EnrollmentStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE training_enrollments
                SET status=%s, progress_percentage=%s, started_at=%s, completed_at=%s,
                    score=%s, passed=%s, feedback=%s,
                    certificate_issued=%s, certificate_number=%s, certificate_expiry=%s
                WHERE enrollment_id=%s AND status=%s
                """,
                (
                    enrollment.status.value,
                    enrollment.progress_percentage,
                    enrollment.started_at,
                    enrollment.completed_at,
                    enrollment.score,
                    None if enrollment.passed is None else int(enrollment.passed),
                    enrollment.feedback,
                    int(enrollment.certificate_issued),
                    enrollment.certificate_number,
                    enrollment.certificate_expiry,
                    enrollment.enrollment_id,
                    expected_status.value,
                ),
            )
            return cur.rowcount > 0

    def list_for_training(self, training_id: int) -> Sequence[TrainingEnrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM training_enrollments WHERE training_id=%s ORDER BY enrollment_id",
                (int(training_id),),
            )
            return [_enrollment(r) for r in fetchall(cur)]

    def certificate_number_exists(self, number: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS hit FROM training_enrollments WHERE certificate_number=%s LIMIT 1", (number,))
            return fetchone(cur) is not None
