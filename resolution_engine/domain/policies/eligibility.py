"""EligibilityPolicy — which roles may resolve which skill groups."""

from types import MappingProxyType

from resolution_engine.domain.entities.membership import PropertyMembership
from resolution_engine.domain.value_objects.enums import Role, SkillGroupCode

# role × skill group → eligible. Roles not listed are never resolvers.
ELIGIBILITY: MappingProxyType = MappingProxyType({
    Role.MST: frozenset({
        SkillGroupCode.TECHNICAL,
        SkillGroupCode.PLUMBING,
        SkillGroupCode.VENDOR,
    }),
    Role.STAFF: frozenset({SkillGroupCode.SOFT_SERVICES}),
})

RESOLVER_ROLES = frozenset(ELIGIBILITY)


def is_eligible(role: Role, skill: SkillGroupCode) -> bool:
    return skill in ELIGIBILITY.get(role, frozenset())


def eligible_skill_groups(
    membership: PropertyMembership | None,
    skill_tags: set[str],
) -> list[SkillGroupCode]:
    """Skill groups a member may take tickets for at their property.

    Requires an active membership with a resolver role. Unknown skill tags
    are ignored. Result is sorted by code for stable upsert order.
    """
    if membership is None or not membership.is_active:
        return []
    if membership.role not in RESOLVER_ROLES:
        return []

    known = {code.value: code for code in SkillGroupCode}
    skills = [known[tag] for tag in skill_tags if tag in known]
    return sorted(
        (skill for skill in set(skills) if is_eligible(membership.role, skill)),
        key=lambda s: s.value,
    )
