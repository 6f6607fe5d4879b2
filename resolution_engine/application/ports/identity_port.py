"""Port interface for the identity provider (memberships and skill tags)."""

from abc import ABC, abstractmethod

from resolution_engine.domain.entities.membership import PropertyMembership


class IdentityPort(ABC):
    @abstractmethod
    async def get_membership(self, user_id: str, property_id: str) -> PropertyMembership | None:
        """Return the user's membership at the property, or None."""
        ...

    @abstractmethod
    async def get_skills(self, user_id: str) -> set[str]:
        """Skill tags declared for the user (skill group codes)."""
        ...
