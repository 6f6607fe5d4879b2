"""Reference data: skill groups and issue categories."""

from dataclasses import dataclass

from resolution_engine.domain.value_objects.enums import Priority


@dataclass
class SkillGroup:
    id: int | None
    code: str
    name: str


@dataclass
class IssueCategory:
    id: int | None
    code: str
    name: str
    skill_group_id: int | None
    priority: Priority = Priority.MEDIUM
    sla_hours: int = 24
