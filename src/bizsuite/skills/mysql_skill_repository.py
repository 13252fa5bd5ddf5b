from __future__ import annotations

import json
from typing import Optional, Sequence

from ..core.enums import SkillType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_bool
from .model import EmployeeSkill, Skill
from .repository import SkillRepository


class MySQLSkillRepository(SkillRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, skill_id: int) -> Optional[Skill]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT skill_id, name, category, type, proficiency_levels, level_descriptions, is_active
                FROM skills
                WHERE skill_id=%s
                """,
                (int(skill_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            descriptions = r.get("level_descriptions")
            if isinstance(descriptions, (str, bytes)):
                descriptions = json.loads(descriptions)
            return Skill(
                skill_id=int(r["skill_id"]),
                name=r["name"],
                category=r.get("category"),
                type=SkillType(r["type"]),
                proficiency_levels=int(r["proficiency_levels"]),
                level_descriptions=tuple(descriptions or ()),
                is_active=to_bool(r["is_active"]),
            )

    def list_holders(self, skill_id: int) -> Sequence[EmployeeSkill]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT es.employee_id, es.skill_id, es.proficiency_level, es.is_certified, es.certification_expiry
                FROM employee_skills es
                JOIN employees e ON e.employee_id = es.employee_id
                WHERE es.skill_id=%s
                """,
                (int(skill_id),),
            )
            return [
                EmployeeSkill(
                    employee_id=int(r["employee_id"]),
                    skill_id=int(r["skill_id"]),
                    proficiency_level=int(r["proficiency_level"]),
                    is_certified=to_bool(r["is_certified"]),
                    certification_expiry=r.get("certification_expiry"),
                )
                for r in fetchall(cur)
            ]
