from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import EnrollmentStatus, TrainingStatus
from .model import Training, TrainingEnrollment


class TrainingRepository(Protocol):
    def get(self, training_id: int) -> Optional[Training]:
        raise NotImplementedError

    def update_status(self, training_id: int, *, status: TrainingStatus, expected_status: TrainingStatus) -> bool:
        raise NotImplementedError

    def adjust_enrolled_count(self, training_id: int, delta: int) -> None:
        """Atomically add ``delta`` to the enrolled count, never going below zero."""

        raise NotImplementedError


class EnrollmentRepository(Protocol):
    def get(self, enrollment_id: int) -> Optional[TrainingEnrollment]:
        raise NotImplementedError

    def get_for(self, *, training_id: int, employee_id: int) -> Optional[TrainingEnrollment]:
        raise NotImplementedError

    def add(self, enrollment: TrainingEnrollment) -> int:
        raise NotImplementedError

    def update(self, enrollment: TrainingEnrollment, *, expected_status: EnrollmentStatus) -> bool:
        raise NotImplementedError

    def list_for_training(self, training_id: int) -> Sequence[TrainingEnrollment]:
        raise NotImplementedError

    def certificate_number_exists(self, number: str) -> bool:
        raise NotImplementedError
