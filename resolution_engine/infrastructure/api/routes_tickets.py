"""Ticket endpoints — intake, lifecycle transitions, assignment and activity."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from resolution_engine.adapters.persistence.database import get_session
from resolution_engine.application.services.event_dispatcher import EventDispatcher
from resolution_engine.application.use_cases.auto_assign import (
    AutoAssignTicketUseCase,
    BulkAutoAssignUseCase,
)
from resolution_engine.application.use_cases.create_ticket import CreateTicketUseCase
from resolution_engine.application.use_cases.ticket_lifecycle import TicketLifecycleService
from resolution_engine.domain.entities.activity import ActivityLogEntry
from resolution_engine.domain.entities.ticket import Ticket
from resolution_engine.domain.policies.lifecycle import UNSET, TransitionOutcome
from resolution_engine.domain.policies.sla import is_breached, utc_now
from resolution_engine.infrastructure.api.dependencies import (
    get_actor,
    get_auto_assign_uc,
    get_bulk_assign_uc,
    get_create_ticket_uc,
    get_dispatcher,
    get_lifecycle_service,
)

router = APIRouter(prefix="/tickets", tags=["tickets"])


# ─── Request bodies ──────────────────────────────────────────────────


class CreateTicketRequest(BaseModel):
    property_id: str = Field(min_length=1)
    organization_id: str = Field(min_length=1)
    description: str = Field(min_length=1)
    title: str | None = None
    auto_assign: bool = True


class OverrideClassificationRequest(BaseModel):
    category_id: int


class PauseSlaRequest(BaseModel):
    reason: str | None = None


class UpdateStatusRequest(BaseModel):
    status: str
    # Absent → keep the assignee; explicit null → unassign
    assignee: str | None = None


class AssignRequest(BaseModel):
    resolver_id: str = Field(min_length=1)


class ReassignRequest(BaseModel):
    assignee: str | None = None
    # Skip the skill-group check on the new assignee
    force: bool = False


class RatingRequest(BaseModel):
    rating: int
    comment: str | None = None


class PhotoRequest(BaseModel):
    kind: str
    url: str = Field(min_length=1)


class BulkAssignRequest(BaseModel):
    property_id: str = Field(min_length=1)


# ─── Serializers ─────────────────────────────────────────────────────


def _iso(value):
    return value.isoformat() if value else None


def serialize_ticket(t: Ticket) -> dict:
    return {
        "id": t.id,
        "ticket_number": t.ticket_number,
        "property_id": t.property_id,
        "organization_id": t.organization_id,
        "title": t.title,
        "description": t.description,
        "raised_by": t.raised_by,
        "status": t.status.value,
        "classification": {
            "issue_code": t.issue_code,
            "skill_group_code": t.skill_group_code,
            "category_id": t.category_id,
            "skill_group_id": t.skill_group_id,
            "confidence": t.confidence.value,
            "confidence_score": t.confidence_score,
            "source": t.classification_source.value,
            "is_vague": t.is_vague,
        },
        "priority": t.priority.value,
        "floor_number": t.floor_number,
        "location": t.location,
        "assigned_to": t.assigned_to,
        "assigned_at": _iso(t.assigned_at),
        "accepted_at": _iso(t.accepted_at),
        "work_started_at": _iso(t.work_started_at),
        "resolved_at": _iso(t.resolved_at),
        "closed_at": _iso(t.closed_at),
        "sla": {
            "hours": t.sla_hours,
            "deadline": _iso(t.sla_deadline),
            "paused": t.sla_paused,
            "paused_at": _iso(t.sla_paused_at),
            "pause_reason": t.sla_pause_reason,
            "total_paused_minutes": t.total_paused_minutes,
            "breached": not t.is_finished()
            and is_breached(t.sla_deadline, utc_now(), paused=t.sla_paused),
        },
        "rating": t.rating,
        "photo_before_url": t.photo_before_url,
        "photo_after_url": t.photo_after_url,
        "created_at": _iso(t.created_at),
        "updated_at": _iso(t.updated_at),
    }


def serialize_activity(entry: ActivityLogEntry) -> dict:
    return {
        "id": entry.id,
        "ticket_id": entry.ticket_id,
        "user_id": entry.user_id,
        "action": entry.action.value,
        "old_value": entry.old_value,
        "new_value": entry.new_value,
        "created_at": _iso(entry.created_at),
    }


async def _finish(
    outcome: TransitionOutcome,
    session: AsyncSession,
    background: BackgroundTasks,
    dispatcher: EventDispatcher,
) -> dict:
    """Commit the transition, then hand its notifications to the dispatcher."""
    await session.commit()
    if outcome.notifications:
        background.add_task(dispatcher.dispatch, outcome.notifications)
    return {"ticket": serialize_ticket(outcome.ticket), "changed": outcome.changed}


# ─── Intake & queries ────────────────────────────────────────────────


@router.post("", status_code=201)
async def create_ticket(
    body: CreateTicketRequest,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    uc: CreateTicketUseCase = Depends(get_create_ticket_uc),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    """Raise an issue: classify, persist and try to auto-assign."""
    result = await uc.execute(
        property_id=body.property_id,
        organization_id=body.organization_id,
        description=body.description,
        raised_by=actor,
        title=body.title,
        auto_assign=body.auto_assign,
    )
    await session.commit()
    if result.notifications:
        background.add_task(dispatcher.dispatch, result.notifications)

    c = result.classification
    return {
        "ticket": serialize_ticket(result.ticket),
        "classification": {
            "issue_code": c.issue_code,
            "skill_group_code": c.skill_group_code.value if c.skill_group_code else None,
            "confidence": c.confidence.value,
            "score": c.score,
            "matched_keywords": list(c.matched_keywords),
        },
    }


@router.get("")
async def list_tickets(
    property_id: str,
    status: str | None = None,
    assigned_to: str | None = None,
    service: TicketLifecycleService = Depends(get_lifecycle_service),
):
    tickets = await service.list_tickets(property_id, status=status, assigned_to=assigned_to)
    return {"total": len(tickets), "tickets": [serialize_ticket(t) for t in tickets]}


@router.post("/bulk-assign")
async def bulk_assign(
    body: BulkAssignRequest,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    uc: BulkAutoAssignUseCase = Depends(get_bulk_assign_uc),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    """Auto-assign every open ticket of a property."""
    summary = await uc.execute(body.property_id, actor)
    await session.commit()
    if summary.notifications:
        background.add_task(dispatcher.dispatch, list(summary.notifications))
    return {
        "total": summary.total,
        "assigned": summary.assigned,
        "deferred": summary.deferred,
        "errors": summary.errors,
    }


@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: int,
    service: TicketLifecycleService = Depends(get_lifecycle_service),
):
    return serialize_ticket(await service.get(ticket_id))


@router.get("/{ticket_id}/activity")
async def get_activity(
    ticket_id: int,
    service: TicketLifecycleService = Depends(get_lifecycle_service),
):
    entries = await service.list_activity(ticket_id)
    return {"ticket_id": ticket_id, "activity": [serialize_activity(e) for e in entries]}


# ─── Transitions ─────────────────────────────────────────────────────


@router.post("/{ticket_id}/auto-assign")
async def auto_assign(
    ticket_id: int,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    uc: AutoAssignTicketUseCase = Depends(get_auto_assign_uc),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    outcome = await uc.execute(ticket_id, actor)
    if outcome is None:
        return {"ticket_id": ticket_id, "assigned": False, "reason": "No resolver available"}
    response = await _finish(outcome, session, background, dispatcher)
    return {"ticket_id": ticket_id, "assigned": True, **response}


@router.post("/{ticket_id}/assign")
async def assign_ticket(
    ticket_id: int,
    body: AssignRequest,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    """Assign to a resolver picked by the caller."""
    outcome = await service.assign(ticket_id, body.resolver_id, actor)
    return await _finish(outcome, session, background, dispatcher)


@router.post("/{ticket_id}/accept")
async def accept_ticket(
    ticket_id: int,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    outcome = await service.accept(ticket_id, actor)
    return await _finish(outcome, session, background, dispatcher)


@router.post("/{ticket_id}/override-classification")
async def override_classification(
    ticket_id: int,
    body: OverrideClassificationRequest,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    outcome = await service.override_classification(ticket_id, body.category_id, actor)
    return await _finish(outcome, session, background, dispatcher)


@router.post("/{ticket_id}/reclassify")
async def reclassify(
    ticket_id: int,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    outcome = await service.reclassify(ticket_id, actor)
    return await _finish(outcome, session, background, dispatcher)


@router.post("/{ticket_id}/pause-sla")
async def pause_sla(
    ticket_id: int,
    body: PauseSlaRequest,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    outcome = await service.pause_sla(ticket_id, body.reason, actor)
    return await _finish(outcome, session, background, dispatcher)


@router.post("/{ticket_id}/resume-sla")
async def resume_sla(
    ticket_id: int,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    outcome = await service.resume_sla(ticket_id, actor)
    return await _finish(outcome, session, background, dispatcher)


@router.post("/{ticket_id}/status")
async def update_status(
    ticket_id: int,
    body: UpdateStatusRequest,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    assignee = body.assignee if "assignee" in body.model_fields_set else UNSET
    outcome = await service.update_status(ticket_id, body.status, actor, new_assignee=assignee)
    return await _finish(outcome, session, background, dispatcher)


@router.post("/{ticket_id}/reassign")
async def reassign(
    ticket_id: int,
    body: ReassignRequest,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    result = await service.reassign(ticket_id, body.assignee, actor, force=body.force)
    response = await _finish(result.outcome, session, background, dispatcher)
    return {**response, "warning": result.warning}


@router.post("/{ticket_id}/rating")
async def rate_ticket(
    ticket_id: int,
    body: RatingRequest,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    outcome = await service.rate(ticket_id, body.rating, actor, comment=body.comment)
    return await _finish(outcome, session, background, dispatcher)


@router.post("/{ticket_id}/photos")
async def attach_photo(
    ticket_id: int,
    body: PhotoRequest,
    background: BackgroundTasks,
    actor: str = Depends(get_actor),
    service: TicketLifecycleService = Depends(get_lifecycle_service),
    session: AsyncSession = Depends(get_session),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    outcome = await service.attach_photo(ticket_id, body.kind, body.url, actor)
    return await _finish(outcome, session, background, dispatcher)
