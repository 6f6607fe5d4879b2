"""Resolver pool endpoints — shift check-in/out and workload view."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from resolution_engine.adapters.persistence.database import get_session
from resolution_engine.application.use_cases.resolver_pool import ResolverPool
from resolution_engine.infrastructure.api.dependencies import get_actor, get_resolver_pool

router = APIRouter(prefix="/resolvers", tags=["resolvers"])


class ShiftRequest(BaseModel):
    property_id: str = Field(min_length=1)


@router.post("/check-in")
async def check_in(
    body: ShiftRequest,
    actor: str = Depends(get_actor),
    pool: ResolverPool = Depends(get_resolver_pool),
    session: AsyncSession = Depends(get_session),
):
    """Start a shift. Users who cannot resolve anything get ``eligible: false``."""
    result = await pool.check_in(actor, body.property_id)
    await session.commit()
    return {
        "user_id": result.user_id,
        "property_id": result.property_id,
        "eligible": result.eligible,
        "skill_groups": result.skill_groups,
    }


@router.post("/check-out")
async def check_out(
    body: ShiftRequest,
    actor: str = Depends(get_actor),
    pool: ResolverPool = Depends(get_resolver_pool),
    session: AsyncSession = Depends(get_session),
):
    result = await pool.check_out(actor, body.property_id)
    await session.commit()
    return {
        "user_id": result.user_id,
        "property_id": result.property_id,
        "rows_updated": result.rows_updated,
        "shifts_closed": result.shifts_closed,
    }


@router.get("/shift-status")
async def shift_status(
    property_id: str,
    actor: str = Depends(get_actor),
    pool: ResolverPool = Depends(get_resolver_pool),
):
    result = await pool.shift_status(actor, property_id)
    return {
        "user_id": result.user_id,
        "property_id": result.property_id,
        "is_checked_in": result.is_checked_in,
        "checked_in_at": result.checked_in_at.isoformat() if result.checked_in_at else None,
    }


@router.get("/workload")
async def workload(
    property_id: str,
    skill_group_id: int | None = None,
    pool: ResolverPool = Depends(get_resolver_pool),
):
    """Available resolvers, best candidate first."""
    ranked = await pool.workload(property_id, skill_group_id)
    return {
        "property_id": property_id,
        "resolvers": [
            {
                "user_id": r.user_id,
                "skill_group_id": r.stat.skill_group_id,
                "active_tickets": r.active_tickets,
                "current_floor": r.stat.current_floor,
                "avg_resolution_minutes": r.stat.avg_resolution_minutes,
                "score": round(r.score, 4),
            }
            for r in ranked
        ],
    }
