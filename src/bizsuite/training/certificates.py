from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from ..core.constants import CERTIFICATE_PREFIX
from .model import TrainingEnrollment, generate_certificate_number


class CertificateNumberGenerator:
    """Timestamp-based certificate numbers, bumped until unused.

    ``exists`` is asked before a number is handed out, so two certificates for
    the same training/employee within one second still get distinct numbers.
    """

    def __init__(
        self,
        exists: Optional[Callable[[str], bool]] = None,
        *,
        prefix: str = CERTIFICATE_PREFIX,
        max_attempts: int = 100,
    ):
        self._exists = exists
        self._prefix = prefix
        self._max_attempts = int(max_attempts)

    def __call__(self, enrollment: TrainingEnrollment, now: datetime) -> str:
        for offset in range(self._max_attempts):
            number = generate_certificate_number(
                enrollment.training_id,
                enrollment.employee_id,
                now=now,
                prefix=self._prefix,
                offset=offset,
            )
            if self._exists is None or not self._exists(number):
                return number
        raise RuntimeError(f"No free certificate number after {self._max_attempts} attempts")
