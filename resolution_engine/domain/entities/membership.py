"""Property membership as reported by the identity provider."""

from dataclasses import dataclass

from resolution_engine.domain.value_objects.enums import Role


@dataclass(frozen=True)
class PropertyMembership:
    user_id: str
    property_id: str
    role: Role
    is_active: bool = True
