from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import SkillType

DEFAULT_LEVEL_DESCRIPTIONS = {
    1: "Beginner",
    2: "Basic",
    3: "Intermediate",
    4: "Advanced",
    5: "Expert",
}


@dataclass(frozen=True)
class Skill:
    skill_id: int
    name: str
    category: Optional[str] = None
    type: SkillType = SkillType.TECHNICAL
    proficiency_levels: int = 5
    level_descriptions: tuple[str, ...] = ()
    is_active: bool = True

    def proficiency_description(self, level: int) -> str:
        if 1 <= level <= len(self.level_descriptions):
            return self.level_descriptions[level - 1]
        return DEFAULT_LEVEL_DESCRIPTIONS.get(level, "Unknown")

    def levels_with_descriptions(self) -> dict[int, str]:
        return {i: self.proficiency_description(i) for i in range(1, self.proficiency_levels + 1)}

    def requires_certification(self) -> bool:
        return self.type == SkillType.CERTIFICATION


@dataclass(frozen=True)
class EmployeeSkill:
    employee_id: int
    skill_id: int
    proficiency_level: int
    is_certified: bool = False
    certification_expiry: Optional[date] = None


@dataclass(frozen=True)
class GapAnalysis:
    gap_level: str
    recommendation: str
    priority: str
