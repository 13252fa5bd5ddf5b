from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class WorkTime:
    total_minutes: int
    break_minutes: int
    overtime_minutes: int


class WorkTimeCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked time)."""

    @abstractmethod
    def calculate(
        self,
        *,
        clock_in: datetime,
        clock_out: datetime,
        break_start: Optional[datetime],
        break_end: Optional[datetime],
    ) -> WorkTime:
        raise NotImplementedError
