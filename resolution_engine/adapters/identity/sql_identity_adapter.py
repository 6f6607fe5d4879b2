"""Identity adapter backed by the provider's membership and skill tables."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from resolution_engine.adapters.persistence.models import (
    PropertyMembershipModel,
    UserSkillModel,
)
from resolution_engine.application.ports.identity_port import IdentityPort
from resolution_engine.domain.entities.membership import PropertyMembership
from resolution_engine.domain.value_objects.enums import Role


class SqlIdentityAdapter(IdentityPort):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_membership(self, user_id: str, property_id: str) -> PropertyMembership | None:
        result = await self._s.execute(
            select(PropertyMembershipModel).where(
                PropertyMembershipModel.user_id == user_id,
                PropertyMembershipModel.property_id == property_id,
            )
        )
        m = result.scalar_one_or_none()
        if m is None:
            return None
        try:
            role = Role(m.role)
        except ValueError:
            # Roles this service does not know about can never resolve tickets
            return None
        return PropertyMembership(
            user_id=m.user_id,
            property_id=m.property_id,
            role=role,
            is_active=m.is_active,
        )

    async def get_skills(self, user_id: str) -> set[str]:
        result = await self._s.execute(
            select(UserSkillModel.skill_code).where(UserSkillModel.user_id == user_id)
        )
        return set(result.scalars())
