"""SQLAlchemy repository implementations."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from resolution_engine.adapters.persistence.models import (
    ActivityLogModel,
    IssueCategoryModel,
    ResolverStatModel,
    ShiftLogModel,
    SkillGroupModel,
    TicketModel,
)
from resolution_engine.application.ports.activity_log_repo import ActivityLogRepository
from resolution_engine.application.ports.catalog_repo import CatalogRepository
from resolution_engine.application.ports.resolver_stat_repo import ResolverStatRepository
from resolution_engine.application.ports.shift_repo import ShiftRepository
from resolution_engine.application.ports.ticket_repo import TicketRepository
from resolution_engine.domain.entities.activity import ActivityLogEntry
from resolution_engine.domain.entities.catalog import IssueCategory, SkillGroup
from resolution_engine.domain.entities.resolver_stat import ResolverStat
from resolution_engine.domain.entities.shift import ShiftLog
from resolution_engine.domain.entities.ticket import Ticket
from resolution_engine.domain.value_objects.enums import (
    ACTIVE_STATUSES,
    ActivityAction,
    ClassificationSource,
    Confidence,
    Priority,
    ShiftStatus,
    TicketStatus,
)

# ─── Mappers ─────────────────────────────────────────────────────────


def _ticket_to_domain(m: TicketModel) -> Ticket:
    return Ticket(
        id=m.id,
        ticket_number=m.ticket_number,
        property_id=m.property_id,
        organization_id=m.organization_id,
        title=m.title,
        description=m.description,
        raised_by=m.raised_by,
        status=TicketStatus(m.status),
        confidence=Confidence(m.confidence),
        classification_source=ClassificationSource(m.classification_source),
        confidence_score=m.confidence_score,
        is_vague=m.is_vague,
        issue_code=m.issue_code,
        skill_group_code=m.skill_group_code,
        category_id=m.category_id,
        skill_group_id=m.skill_group_id,
        priority=Priority(m.priority),
        sla_hours=m.sla_hours,
        floor_number=m.floor_number,
        location=m.location,
        assigned_to=m.assigned_to,
        assigned_at=m.assigned_at,
        accepted_at=m.accepted_at,
        work_started_at=m.work_started_at,
        resolved_at=m.resolved_at,
        closed_at=m.closed_at,
        sla_deadline=m.sla_deadline,
        sla_paused=m.sla_paused,
        sla_paused_at=m.sla_paused_at,
        sla_pause_reason=m.sla_pause_reason,
        total_paused_minutes=m.total_paused_minutes,
        rating=m.rating,
        photo_before_url=m.photo_before_url,
        photo_after_url=m.photo_after_url,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def _ticket_values(t: Ticket) -> dict:
    """Column values written on insert and on every transition."""
    return dict(
        property_id=t.property_id,
        organization_id=t.organization_id,
        title=t.title,
        description=t.description,
        raised_by=t.raised_by,
        status=t.status.value,
        issue_code=t.issue_code,
        skill_group_code=t.skill_group_code,
        category_id=t.category_id,
        skill_group_id=t.skill_group_id,
        confidence=t.confidence.value,
        confidence_score=t.confidence_score,
        classification_source=t.classification_source.value,
        is_vague=t.is_vague,
        priority=t.priority.value,
        floor_number=t.floor_number,
        location=t.location,
        assigned_to=t.assigned_to,
        assigned_at=t.assigned_at,
        accepted_at=t.accepted_at,
        work_started_at=t.work_started_at,
        resolved_at=t.resolved_at,
        closed_at=t.closed_at,
        sla_hours=t.sla_hours,
        sla_deadline=t.sla_deadline,
        sla_paused=t.sla_paused,
        sla_paused_at=t.sla_paused_at,
        sla_pause_reason=t.sla_pause_reason,
        total_paused_minutes=t.total_paused_minutes,
        rating=t.rating,
        photo_before_url=t.photo_before_url,
        photo_after_url=t.photo_after_url,
    )


def _activity_to_domain(m: ActivityLogModel) -> ActivityLogEntry:
    return ActivityLogEntry(
        id=m.id,
        ticket_id=m.ticket_id,
        user_id=m.user_id,
        action=ActivityAction(m.action),
        old_value=m.old_value,
        new_value=m.new_value,
        created_at=m.created_at,
    )


def _stat_to_domain(m: ResolverStatModel) -> ResolverStat:
    return ResolverStat(
        id=m.id,
        user_id=m.user_id,
        property_id=m.property_id,
        skill_group_id=m.skill_group_id,
        is_available=m.is_available,
        is_checked_in=m.is_checked_in,
        current_floor=m.current_floor,
        total_resolved=m.total_resolved,
        avg_resolution_minutes=m.avg_resolution_minutes,
        last_assigned_at=m.last_assigned_at,
    )


def _skill_group_to_domain(m: SkillGroupModel) -> SkillGroup:
    return SkillGroup(id=m.id, code=m.code, name=m.name)


def _category_to_domain(m: IssueCategoryModel) -> IssueCategory:
    return IssueCategory(
        id=m.id,
        code=m.code,
        name=m.name,
        skill_group_id=m.skill_group_id,
        priority=Priority(m.priority),
        sla_hours=m.sla_hours,
    )


def _shift_to_domain(m: ShiftLogModel) -> ShiftLog:
    return ShiftLog(
        id=m.id,
        user_id=m.user_id,
        property_id=m.property_id,
        status=ShiftStatus(m.status),
        check_in_at=m.check_in_at,
        check_out_at=m.check_out_at,
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlTicketRepository(TicketRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, ticket: Ticket) -> Ticket:
        m = TicketModel(**_ticket_values(ticket))
        if ticket.created_at is not None:
            m.created_at = ticket.created_at
        self._s.add(m)
        await self._s.flush()
        m.ticket_number = f"TKT-{m.id:06d}"
        await self._s.flush()
        return replace(ticket, id=m.id, ticket_number=m.ticket_number)

    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        m = await self._s.get(TicketModel, ticket_id)
        return _ticket_to_domain(m) if m else None

    async def get_for_update(self, ticket_id: int) -> Ticket | None:
        result = await self._s.execute(
            select(TicketModel)
            .where(TicketModel.id == ticket_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        m = result.scalar_one_or_none()
        return _ticket_to_domain(m) if m else None

    async def update(self, ticket: Ticket) -> Ticket:
        await self._s.execute(
            update(TicketModel)
            .where(TicketModel.id == ticket.id)
            .values(**_ticket_values(ticket))
        )
        await self._s.flush()
        return ticket

    async def list_by_property(
        self,
        property_id: str,
        status: TicketStatus | None = None,
        assigned_to: str | None = None,
    ) -> list[Ticket]:
        stmt = select(TicketModel).where(TicketModel.property_id == property_id)
        if status is not None:
            stmt = stmt.where(TicketModel.status == status.value)
        if assigned_to is not None:
            stmt = stmt.where(TicketModel.assigned_to == assigned_to)
        result = await self._s.execute(stmt.order_by(TicketModel.id))
        return [_ticket_to_domain(m) for m in result.scalars()]

    async def count_active_by_resolver(self, property_id: str) -> dict[str, int]:
        result = await self._s.execute(
            select(TicketModel.assigned_to, func.count(TicketModel.id))
            .where(
                TicketModel.property_id == property_id,
                TicketModel.assigned_to.is_not(None),
                TicketModel.status.in_([s.value for s in ACTIVE_STATUSES]),
            )
            .group_by(TicketModel.assigned_to)
        )
        return {user_id: count for user_id, count in result.all()}


class SqlActivityLogRepository(ActivityLogRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def append(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        m = ActivityLogModel(
            ticket_id=entry.ticket_id,
            user_id=entry.user_id,
            action=entry.action.value,
            old_value=entry.old_value,
            new_value=entry.new_value,
            created_at=entry.created_at,
        )
        self._s.add(m)
        await self._s.flush()
        return replace(entry, id=m.id)

    async def list_for_ticket(self, ticket_id: int) -> list[ActivityLogEntry]:
        result = await self._s.execute(
            select(ActivityLogModel)
            .where(ActivityLogModel.ticket_id == ticket_id)
            .order_by(ActivityLogModel.created_at, ActivityLogModel.id)
        )
        return [_activity_to_domain(m) for m in result.scalars()]


class SqlResolverStatRepository(ResolverStatRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get(
        self, user_id: str, property_id: str, skill_group_id: int | None
    ) -> ResolverStat | None:
        result = await self._s.execute(
            select(ResolverStatModel).where(
                ResolverStatModel.user_id == user_id,
                ResolverStatModel.property_id == property_id,
                ResolverStatModel.skill_group_id == skill_group_id,
            )
        )
        m = result.scalar_one_or_none()
        return _stat_to_domain(m) if m else None

    async def upsert(self, stat: ResolverStat) -> ResolverStat:
        values = dict(
            user_id=stat.user_id,
            property_id=stat.property_id,
            skill_group_id=stat.skill_group_id,
            is_available=stat.is_available,
            is_checked_in=stat.is_checked_in,
            current_floor=stat.current_floor,
            total_resolved=stat.total_resolved,
            avg_resolution_minutes=stat.avg_resolution_minutes,
            last_assigned_at=stat.last_assigned_at,
        )
        stmt = pg_insert(ResolverStatModel).values(**values)
        # Re-check-in only flips availability; track record is kept
        stmt = stmt.on_conflict_do_update(
            constraint="uq_resolver_stats_user_property_group",
            set_=dict(
                is_available=stmt.excluded.is_available,
                is_checked_in=stmt.excluded.is_checked_in,
                updated_at=func.now(),
            ),
        ).returning(ResolverStatModel.id)
        result = await self._s.execute(stmt)
        return replace(stat, id=result.scalar_one())

    async def list_available(
        self, property_id: str, skill_group_id: int | None = None
    ) -> list[ResolverStat]:
        stmt = select(ResolverStatModel).where(
            ResolverStatModel.property_id == property_id,
            ResolverStatModel.is_available.is_(True),
        )
        if skill_group_id is not None:
            stmt = stmt.where(ResolverStatModel.skill_group_id == skill_group_id)
        result = await self._s.execute(stmt.order_by(ResolverStatModel.user_id, ResolverStatModel.id))
        return [_stat_to_domain(m) for m in result.scalars()]

    async def list_for_user(self, user_id: str, property_id: str) -> list[ResolverStat]:
        result = await self._s.execute(
            select(ResolverStatModel)
            .where(
                ResolverStatModel.user_id == user_id,
                ResolverStatModel.property_id == property_id,
            )
            .order_by(ResolverStatModel.id)
        )
        return [_stat_to_domain(m) for m in result.scalars()]

    async def set_availability(self, user_id: str, property_id: str, available: bool) -> int:
        result = await self._s.execute(
            update(ResolverStatModel)
            .where(
                ResolverStatModel.user_id == user_id,
                ResolverStatModel.property_id == property_id,
            )
            .values(is_available=available, is_checked_in=available)
        )
        await self._s.flush()
        return result.rowcount or 0

    async def touch_assigned(
        self, user_id: str, property_id: str, skill_group_id: int | None, at: datetime
    ) -> None:
        stmt = update(ResolverStatModel).where(
            ResolverStatModel.user_id == user_id,
            ResolverStatModel.property_id == property_id,
        )
        if skill_group_id is not None:
            stmt = stmt.where(ResolverStatModel.skill_group_id == skill_group_id)
        await self._s.execute(stmt.values(last_assigned_at=at))
        await self._s.flush()


class SqlCatalogRepository(CatalogRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_skill_group(self, skill_group_id: int) -> SkillGroup | None:
        m = await self._s.get(SkillGroupModel, skill_group_id)
        return _skill_group_to_domain(m) if m else None

    async def get_skill_group_by_code(self, code: str) -> SkillGroup | None:
        result = await self._s.execute(select(SkillGroupModel).where(SkillGroupModel.code == code))
        m = result.scalar_one_or_none()
        return _skill_group_to_domain(m) if m else None

    async def get_category(self, category_id: int) -> IssueCategory | None:
        m = await self._s.get(IssueCategoryModel, category_id)
        return _category_to_domain(m) if m else None

    async def get_category_by_code(self, code: str) -> IssueCategory | None:
        result = await self._s.execute(
            select(IssueCategoryModel).where(IssueCategoryModel.code == code)
        )
        m = result.scalar_one_or_none()
        return _category_to_domain(m) if m else None

    async def save_skill_group(self, group: SkillGroup) -> SkillGroup:
        m = SkillGroupModel(code=group.code, name=group.name)
        self._s.add(m)
        await self._s.flush()
        group.id = m.id
        return group

    async def save_category(self, category: IssueCategory) -> IssueCategory:
        m = IssueCategoryModel(
            code=category.code,
            name=category.name,
            skill_group_id=category.skill_group_id,
            priority=category.priority.value,
            sla_hours=category.sla_hours,
        )
        self._s.add(m)
        await self._s.flush()
        category.id = m.id
        return category


class SqlShiftRepository(ShiftRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def open(self, user_id: str, property_id: str, at: datetime) -> ShiftLog:
        m = ShiftLogModel(
            user_id=user_id,
            property_id=property_id,
            status=ShiftStatus.ACTIVE.value,
            check_in_at=at,
        )
        self._s.add(m)
        await self._s.flush()
        return _shift_to_domain(m)

    async def close_active(self, user_id: str, property_id: str, at: datetime) -> int:
        result = await self._s.execute(
            update(ShiftLogModel)
            .where(
                ShiftLogModel.user_id == user_id,
                ShiftLogModel.property_id == property_id,
                ShiftLogModel.status == ShiftStatus.ACTIVE.value,
            )
            .values(status=ShiftStatus.COMPLETED.value, check_out_at=at)
        )
        await self._s.flush()
        return result.rowcount or 0

    async def get_active(self, user_id: str, property_id: str) -> ShiftLog | None:
        result = await self._s.execute(
            select(ShiftLogModel)
            .where(
                ShiftLogModel.user_id == user_id,
                ShiftLogModel.property_id == property_id,
                ShiftLogModel.status == ShiftStatus.ACTIVE.value,
            )
            .order_by(ShiftLogModel.check_in_at.desc())
            .limit(1)
        )
        m = result.scalar_one_or_none()
        return _shift_to_domain(m) if m else None
