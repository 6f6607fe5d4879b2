"""Port interface for skill group and issue category reference data."""

from abc import ABC, abstractmethod

from resolution_engine.domain.entities.catalog import IssueCategory, SkillGroup


class CatalogRepository(ABC):
    @abstractmethod
    async def get_skill_group(self, skill_group_id: int) -> SkillGroup | None:
        ...

    @abstractmethod
    async def get_skill_group_by_code(self, code: str) -> SkillGroup | None:
        ...

    @abstractmethod
    async def get_category(self, category_id: int) -> IssueCategory | None:
        ...

    @abstractmethod
    async def get_category_by_code(self, code: str) -> IssueCategory | None:
        ...

    @abstractmethod
    async def save_skill_group(self, group: SkillGroup) -> SkillGroup:
        ...

    @abstractmethod
    async def save_category(self, category: IssueCategory) -> IssueCategory:
        ...
