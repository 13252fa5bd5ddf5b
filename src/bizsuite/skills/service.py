from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

from ..core.constants import CERTIFICATE_EXPIRY_WARNING_DAYS
from ..core.result import Result, not_found, ok
from .model import EmployeeSkill, GapAnalysis, Skill
from .repository import SkillRepository

ADVANCED_LEVELS = (4, 5)


class SkillAnalytics:
    """Read-only rollups over the employees holding one skill."""

    def __init__(self, skill: Skill, holders: Sequence[EmployeeSkill]):
        self.skill = skill
        self.holders = list(holders)

    def proficiency_description(self, level: int) -> str:
        return self.skill.proficiency_description(level)

    @property
    def total_employees(self) -> int:
        return len(self.holders)

    def count_by_level(self) -> dict[int, int]:
        counts = {level: 0 for level in range(1, self.skill.proficiency_levels + 1)}
        for holder in self.holders:
            if holder.proficiency_level in counts:
                counts[holder.proficiency_level] += 1
        return counts

    def average_level(self) -> float:
        if not self.holders:
            return 0.0
        return round(sum(h.proficiency_level for h in self.holders) / len(self.holders), 2)

    def certified_count(self) -> int:
        return sum(1 for h in self.holders if h.is_certified)

    def demand_score(self) -> str:
        count = self.total_employees
        if count >= 20:
            return "High"
        if count >= 10:
            return "Medium"
        if count >= 5:
            return "Low"
        return "Very Low"

    def rarity_score(self) -> str:
        count = self.total_employees
        if count <= 2:
            return "Very Rare"
        if count <= 5:
            return "Rare"
        if count <= 10:
            return "Common"
        return "Very Common"

    def expired_certifications(self, today: date) -> list[EmployeeSkill]:
        return [
            h for h in self.holders
            if h.is_certified and h.certification_expiry is not None and h.certification_expiry < today
        ]

    def expiring_certifications(self, today: date, days: int = CERTIFICATE_EXPIRY_WARNING_DAYS) -> list[EmployeeSkill]:
        horizon = today + timedelta(days=days)
        return [
            h for h in self.holders
            if h.is_certified and h.certification_expiry is not None and today < h.certification_expiry <= horizon
        ]

    def gap_analysis(self) -> GapAnalysis:
        counts = self.count_by_level()
        total = sum(counts.values())
        if total == 0:
            return GapAnalysis(
                gap_level="Critical",
                recommendation="No employees have this skill. Consider training or hiring.",
                priority="High",
            )

        advanced = sum(counts.get(level, 0) for level in ADVANCED_LEVELS)
        share = advanced / total * 100
        if share >= 50:
            return GapAnalysis("Low", "Good skill coverage. Focus on knowledge sharing.", "Low")
        if share >= 25:
            return GapAnalysis("Medium", "Consider advanced training for intermediate employees.", "Medium")
        return GapAnalysis("High", "Significant skill gap. Prioritize training and development.", "High")


class SkillReportService:
    def __init__(self, skills: SkillRepository):
        self._skills = skills

    def analytics(self, skill_id: int) -> Result[SkillAnalytics]:
        skill = self._skills.get(int(skill_id))
        if not skill:
            return not_found("Skill not found")
        return ok(SkillAnalytics(skill, self._skills.list_holders(skill.skill_id)))

    def summary(self, skill_id: int, *, today: date) -> Result[dict]:
        return self.analytics(skill_id).map(
            lambda a: {
                "skill_id": a.skill.skill_id,
                "name": a.skill.name,
                "total_employees": a.total_employees,
                "certified_employees": a.certified_count(),
                "average_level": a.average_level(),
                "by_level": a.count_by_level(),
                "demand": a.demand_score(),
                "rarity": a.rarity_score(),
                "expired_certifications": len(a.expired_certifications(today)),
                "expiring_certifications": len(a.expiring_certifications(today)),
                "gap": a.gap_analysis(),
            }
        )
