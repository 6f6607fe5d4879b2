"""ResolverPool — check-in/check-out and workload of the available staff."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime

from resolution_engine.application.ports.catalog_repo import CatalogRepository
from resolution_engine.application.ports.identity_port import IdentityPort
from resolution_engine.application.ports.resolver_stat_repo import ResolverStatRepository
from resolution_engine.application.ports.shift_repo import ShiftRepository
from resolution_engine.application.use_cases.auto_assign import AutoAssignTicketUseCase
from resolution_engine.domain.entities.resolver_stat import ResolverStat
from resolution_engine.domain.policies.eligibility import eligible_skill_groups
from resolution_engine.domain.policies.sla import utc_now
from resolution_engine.domain.policies.workload_scorer import RankedResolver

logger = logging.getLogger(__name__)


@dataclass
class CheckInResult:
    user_id: str
    property_id: str
    eligible: bool
    skill_groups: list[str] = field(default_factory=list)


@dataclass
class CheckOutResult:
    user_id: str
    property_id: str
    rows_updated: int
    shifts_closed: int


@dataclass
class ShiftStatusResult:
    user_id: str
    property_id: str
    is_checked_in: bool
    checked_in_at: datetime | None = None


class ResolverPool:
    """Maintains resolver availability rows and the shift attendance log."""

    def __init__(
        self,
        identity: IdentityPort,
        stat_repo: ResolverStatRepository,
        shift_repo: ShiftRepository,
        catalog_repo: CatalogRepository,
        auto_assign: AutoAssignTicketUseCase,
    ):
        self._identity = identity
        self._stats = stat_repo
        self._shifts = shift_repo
        self._catalog = catalog_repo
        self._auto_assign = auto_assign

    async def check_in(self, user_id: str, property_id: str) -> CheckInResult:
        """Make the user available for every skill group they may resolve.

        A user with no eligible skill group (inactive membership, non-resolver
        role, or no matching skill tags) is not an error: nothing is written
        and the result says ``eligible=False``.
        """
        membership = await self._identity.get_membership(user_id, property_id)
        skills = await self._identity.get_skills(user_id) if membership else set()
        codes = eligible_skill_groups(membership, skills)
        if not codes:
            logger.info("Check-in %s @ %s: no eligible skill group, skipping", user_id, property_id)
            return CheckInResult(user_id=user_id, property_id=property_id, eligible=False)

        registered: list[str] = []
        for code in codes:
            group = await self._catalog.get_skill_group_by_code(code.value)
            if group is None:
                logger.warning("Check-in %s: skill group '%s' is not seeded", user_id, code.value)
                continue

            existing = await self._stats.get(user_id, property_id, group.id)
            if existing is None:
                stat = ResolverStat(
                    id=None,
                    user_id=user_id,
                    property_id=property_id,
                    skill_group_id=group.id,
                    is_available=True,
                    is_checked_in=True,
                )
            else:
                stat = replace(existing, is_available=True, is_checked_in=True)
            await self._stats.upsert(stat)
            registered.append(code.value)

        if not registered:
            return CheckInResult(user_id=user_id, property_id=property_id, eligible=False)

        now = utc_now()
        if await self._shifts.get_active(user_id, property_id) is None:
            await self._shifts.open(user_id, property_id, now)

        logger.info("Check-in %s @ %s: %s", user_id, property_id, ", ".join(registered))
        return CheckInResult(
            user_id=user_id,
            property_id=property_id,
            eligible=True,
            skill_groups=registered,
        )

    async def check_out(self, user_id: str, property_id: str) -> CheckOutResult:
        """Mark every row of the pair unavailable. Rows are never deleted."""
        rows = await self._stats.set_availability(user_id, property_id, False)
        closed = await self._shifts.close_active(user_id, property_id, utc_now())
        logger.info(
            "Check-out %s @ %s: %d rows, %d shifts closed", user_id, property_id, rows, closed
        )
        return CheckOutResult(
            user_id=user_id,
            property_id=property_id,
            rows_updated=rows,
            shifts_closed=closed,
        )

    async def shift_status(self, user_id: str, property_id: str) -> ShiftStatusResult:
        rows = await self._stats.list_for_user(user_id, property_id)
        checked_in = any(r.is_checked_in for r in rows)
        shift = await self._shifts.get_active(user_id, property_id) if checked_in else None
        return ShiftStatusResult(
            user_id=user_id,
            property_id=property_id,
            is_checked_in=checked_in,
            checked_in_at=shift.check_in_at if shift else None,
        )

    async def workload(
        self, property_id: str, skill_group_id: int | None = None
    ) -> list[RankedResolver]:
        """Available resolvers ranked best-first with their active ticket counts."""
        return await self._auto_assign.rank_for(property_id, skill_group_id)
