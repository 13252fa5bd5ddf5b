from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import EmployeeSkill, Skill


class SkillRepository(Protocol):
    def get(self, skill_id: int) -> Optional[Skill]:
        raise NotImplementedError

    def list_holders(self, skill_id: int) -> Sequence[EmployeeSkill]:
        raise NotImplementedError
