"""TicketLifecycle — status state machine, assignment and SLA pause rules.

Every transition is a pure function over a ``Ticket``: it validates the
request, returns an updated copy together with the single activity entry
that records it and the notifications the transition implies. The input
ticket is never mutated, so a rejected transition leaves nothing behind and
the caller persists ticket + activity entry in one unit of work.

States::

    waitlist ─┬─> assigned ─> in_progress ─> resolved ─> closed
    open ─────┘        ^            │
                       └─ blocked <─┘

``closed`` is terminal. ``resolved`` only moves on to ``closed``; it goes
back to ``open``/``waitlist`` solely through reclassification or a manual
classification override.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from resolution_engine.domain.entities.activity import ActivityLogEntry
from resolution_engine.domain.entities.catalog import IssueCategory
from resolution_engine.domain.entities.ticket import Ticket
from resolution_engine.domain.errors import Forbidden, InvalidTransition, ValidationError
from resolution_engine.domain.policies.classifier import ClassificationResult
from resolution_engine.domain.policies.location_hints import (
    extract_floor_number,
    extract_location,
)
from resolution_engine.domain.policies.sla import (
    compute_deadline,
    extend_deadline,
    paused_minutes,
    utc_now,
)
from resolution_engine.domain.value_objects.enums import (
    ActivityAction,
    ClassificationSource,
    Confidence,
    NotificationEvent,
    PhotoKind,
    Priority,
    TicketStatus,
)

DEFAULT_PAUSE_REASON = "Paused by admin"
MANUAL_CONFIDENCE_SCORE = 100
TITLE_MAX_LENGTH = 100

_UNASSIGNED_STATUSES = (TicketStatus.WAITLIST, TicketStatus.OPEN)
_FINISHED_STATUSES = (TicketStatus.RESOLVED, TicketStatus.CLOSED)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Distinguishes "leave the assignee alone" from an explicit ``None`` (unassign)
UNSET = _Unset()


@dataclass(frozen=True)
class PendingNotification:
    event: NotificationEvent
    ticket_id: int


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of one lifecycle operation."""

    ticket: Ticket
    activity: ActivityLogEntry | None
    notifications: tuple[PendingNotification, ...] = ()

    @property
    def changed(self) -> bool:
        return self.activity is not None


# ─── Helpers ─────────────────────────────────────────────────────────


def _text(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def _entry(
    ticket: Ticket,
    actor: str,
    action: ActivityAction,
    old_value,
    new_value,
    now: datetime,
) -> ActivityLogEntry:
    return ActivityLogEntry(
        ticket_id=ticket.id,
        user_id=actor,
        action=action,
        old_value=_text(old_value),
        new_value=_text(new_value),
        created_at=now,
    )


def _notify(ticket: Ticket, *events: NotificationEvent) -> tuple[PendingNotification, ...]:
    return tuple(PendingNotification(event=e, ticket_id=ticket.id) for e in events)


def _reject_closed(ticket: Ticket, operation: str) -> None:
    if ticket.is_closed():
        raise InvalidTransition(f"Cannot {operation}: ticket {ticket.id} is closed")


# ─── Intake ──────────────────────────────────────────────────────────


def initial_status(result: ClassificationResult) -> TicketStatus:
    """Vague tickets wait for human triage; everything else is routable."""
    if result.confidence == Confidence.LOW or result.issue_code is None:
        return TicketStatus.WAITLIST
    return TicketStatus.OPEN


def open_ticket(
    *,
    property_id: str,
    organization_id: str,
    description: str,
    raised_by: str,
    result: ClassificationResult,
    title: str | None = None,
    category: IssueCategory | None = None,
    skill_group_id: int | None = None,
    default_sla_hours: int = 24,
    now: datetime | None = None,
) -> Ticket:
    """Build a new, not yet persisted ticket from a classification."""
    if not description or not description.strip():
        raise ValidationError("description is required")
    if not property_id or not organization_id:
        raise ValidationError("property_id and organization_id are required")

    now = now or utc_now()
    sla_hours = category.sla_hours if category and category.sla_hours else default_sla_hours
    text = title or description

    return Ticket(
        id=None,
        property_id=property_id,
        organization_id=organization_id,
        title=(title or description.strip())[:TITLE_MAX_LENGTH],
        description=description,
        raised_by=raised_by,
        status=initial_status(result),
        confidence=result.confidence,
        classification_source=ClassificationSource.RULES,
        confidence_score=result.confidence_score,
        is_vague=result.is_vague,
        issue_code=result.issue_code,
        skill_group_code=result.skill_group_code.value if result.skill_group_code else None,
        category_id=category.id if category else None,
        skill_group_id=category.skill_group_id if category and category.skill_group_id else skill_group_id,
        priority=category.priority if category else Priority.MEDIUM,
        sla_hours=sla_hours,
        floor_number=extract_floor_number(text),
        location=extract_location(text),
        sla_deadline=compute_deadline(now, sla_hours),
        created_at=now,
        updated_at=now,
    )


def record_creation(ticket: Ticket, actor: str, now: datetime | None = None) -> TransitionOutcome:
    """Activity entry for a freshly persisted ticket."""
    now = now or ticket.created_at or utc_now()
    notifications = ()
    if ticket.status == TicketStatus.WAITLIST:
        notifications = _notify(ticket, NotificationEvent.WAITLISTED)
    return TransitionOutcome(
        ticket=ticket,
        activity=_entry(ticket, actor, ActivityAction.CREATED, None, ticket.status, now),
        notifications=notifications,
    )


# ─── Assignment ──────────────────────────────────────────────────────


def assign(
    ticket: Ticket,
    resolver_id: str,
    actor: str,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Hand a waitlisted or open ticket to a resolver."""
    if not resolver_id:
        raise ValidationError("resolver_id is required")
    if ticket.status not in _UNASSIGNED_STATUSES:
        raise InvalidTransition(
            f"Cannot assign ticket {ticket.id} in status '{ticket.status.value}'"
        )
    if ticket.assigned_to is not None and ticket.assigned_to != resolver_id:
        raise InvalidTransition(
            f"Ticket {ticket.id} is already assigned to {ticket.assigned_to}; "
            "clear the assignment first"
        )

    now = now or utc_now()
    updated = replace(
        ticket,
        assigned_to=resolver_id,
        assigned_at=now,
        status=TicketStatus.ASSIGNED,
        updated_at=now,
    )
    return TransitionOutcome(
        ticket=updated,
        activity=_entry(ticket, actor, ActivityAction.ASSIGNED, ticket.assigned_to, resolver_id, now),
        notifications=_notify(ticket, NotificationEvent.ASSIGNED),
    )


def accept(ticket: Ticket, actor: str, now: datetime | None = None) -> TransitionOutcome:
    """Assignee accepts the ticket and starts work."""
    if not ticket.is_assigned_to(actor):
        raise Forbidden(f"Ticket {ticket.id} is not assigned to {actor}")
    if ticket.status == TicketStatus.IN_PROGRESS:
        raise InvalidTransition(f"Ticket {ticket.id} is already in progress")
    if ticket.status != TicketStatus.ASSIGNED:
        raise InvalidTransition(
            f"Only assigned tickets can be accepted; ticket {ticket.id} is '{ticket.status.value}'"
        )

    now = now or utc_now()
    updated = replace(
        ticket,
        status=TicketStatus.IN_PROGRESS,
        accepted_at=now,
        work_started_at=now,
        updated_at=now,
    )
    return TransitionOutcome(
        ticket=updated,
        activity=_entry(ticket, actor, ActivityAction.ACCEPTED, ticket.status, TicketStatus.IN_PROGRESS, now),
    )


def reassign(
    ticket: Ticket,
    new_assignee: str | None,
    actor: str,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Move a ticket to another resolver's lane, or back to the waitlist."""
    _reject_closed(ticket, "reassign")
    if ticket.status == TicketStatus.RESOLVED:
        raise InvalidTransition(f"Cannot reassign resolved ticket {ticket.id}")

    now = now or utc_now()
    if new_assignee:
        updated = replace(
            ticket,
            assigned_to=new_assignee,
            assigned_at=now,
            accepted_at=None,
            work_started_at=None,
            status=TicketStatus.ASSIGNED,
            updated_at=now,
        )
        event = NotificationEvent.ASSIGNED
    else:
        updated = replace(
            ticket,
            assigned_to=None,
            assigned_at=None,
            accepted_at=None,
            work_started_at=None,
            status=TicketStatus.WAITLIST,
            updated_at=now,
        )
        event = NotificationEvent.WAITLISTED

    return TransitionOutcome(
        ticket=updated,
        activity=_entry(ticket, actor, ActivityAction.REASSIGNED, ticket.assigned_to, new_assignee, now),
        notifications=_notify(ticket, event),
    )


# ─── Classification ──────────────────────────────────────────────────


def override_classification(
    ticket: Ticket,
    category_id: int,
    skill_group_id: int | None,
    actor: str,
    *,
    issue_code: str | None = None,
    skill_group_code: str | None = None,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Manual classification; a new skill group sends the ticket back to the pool."""
    _reject_closed(ticket, "override classification")

    now = now or utc_now()
    changes = dict(
        category_id=category_id,
        skill_group_id=skill_group_id,
        classification_source=ClassificationSource.MANUAL,
        confidence=Confidence.HIGH,
        confidence_score=MANUAL_CONFIDENCE_SCORE,
        is_vague=False,
        updated_at=now,
    )
    if issue_code is not None:
        changes["issue_code"] = issue_code
    if skill_group_code is not None:
        changes["skill_group_code"] = skill_group_code

    if skill_group_id != ticket.skill_group_id:
        # Required skills changed: whoever holds it may no longer qualify
        changes.update(
            assigned_to=None,
            assigned_at=None,
            accepted_at=None,
            work_started_at=None,
            status=TicketStatus.OPEN,
        )

    return TransitionOutcome(
        ticket=replace(ticket, **changes),
        activity=_entry(
            ticket, actor, ActivityAction.CLASSIFICATION_OVERRIDE,
            ticket.category_id, category_id, now,
        ),
    )


def reclassify(
    ticket: Ticket,
    result: ClassificationResult,
    category_id: int | None,
    skill_group_id: int | None,
    actor: str,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Apply a fresh rules evaluation of the stored description.

    The ticket returns to ``waitlist`` (low confidence) or ``open`` and any
    existing assignment is released, so an assignee never stays attached to
    a ticket that is back in the unassigned lanes.
    """
    _reject_closed(ticket, "reclassify")

    now = now or utc_now()
    new_status = initial_status(result)
    updated = replace(
        ticket,
        issue_code=result.issue_code,
        skill_group_code=result.skill_group_code.value if result.skill_group_code else None,
        category_id=category_id,
        skill_group_id=skill_group_id,
        confidence=result.confidence,
        confidence_score=result.confidence_score,
        is_vague=result.is_vague,
        classification_source=ClassificationSource.RULES_REEVAL,
        status=new_status,
        assigned_to=None,
        assigned_at=None,
        accepted_at=None,
        work_started_at=None,
        updated_at=now,
    )
    notifications = ()
    if new_status == TicketStatus.WAITLIST:
        notifications = _notify(ticket, NotificationEvent.WAITLISTED)

    return TransitionOutcome(
        ticket=updated,
        activity=_entry(ticket, actor, ActivityAction.RECLASSIFIED, ticket.confidence, result.confidence, now),
        notifications=notifications,
    )


# ─── SLA ─────────────────────────────────────────────────────────────


def pause_sla(
    ticket: Ticket,
    reason: str | None,
    actor: str,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Stop the SLA clock. Pausing an already paused ticket changes nothing."""
    if ticket.is_finished():
        raise InvalidTransition(
            f"SLA of ticket {ticket.id} is not running (status '{ticket.status.value}')"
        )
    if ticket.sla_paused:
        return TransitionOutcome(ticket=ticket, activity=None)

    now = now or utc_now()
    reason = reason or DEFAULT_PAUSE_REASON
    updated = replace(
        ticket,
        sla_paused=True,
        sla_paused_at=now,
        sla_pause_reason=reason,
        updated_at=now,
    )
    return TransitionOutcome(
        ticket=updated,
        activity=_entry(ticket, actor, ActivityAction.SLA_PAUSED, None, reason, now),
    )


def resume_sla(ticket: Ticket, actor: str, now: datetime | None = None) -> TransitionOutcome:
    """Restart the SLA clock and push the deadline out by the paused minutes."""
    if not ticket.sla_paused:
        raise InvalidTransition(f"SLA of ticket {ticket.id} is not paused")

    now = now or utc_now()
    minutes = paused_minutes(ticket.sla_paused_at, now) if ticket.sla_paused_at else 0
    updated = replace(
        ticket,
        sla_paused=False,
        sla_paused_at=None,
        sla_pause_reason=None,
        total_paused_minutes=ticket.total_paused_minutes + minutes,
        sla_deadline=extend_deadline(ticket.sla_deadline, minutes),
        updated_at=now,
    )
    return TransitionOutcome(
        ticket=updated,
        activity=_entry(ticket, actor, ActivityAction.SLA_RESUMED, ticket.sla_paused_at, minutes, now),
    )


# ─── Status board ────────────────────────────────────────────────────


def parse_status(value: str | TicketStatus) -> TicketStatus:
    try:
        return TicketStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in TicketStatus)
        raise ValidationError(f"Invalid status '{value}'; expected one of: {valid}") from None


def update_status(
    ticket: Ticket,
    new_status: str | TicketStatus,
    actor: str,
    new_assignee: str | None | _Unset = UNSET,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Generic board move, optionally into another resolver's lane.

    Assignment wins over the requested status: an assignee given to a
    waitlisted or open ticket, or together with a waitlist or open target,
    always lands the ticket in ``assigned``.
    """
    requested = parse_status(new_status)
    _reject_closed(ticket, "change status")
    if ticket.status == TicketStatus.RESOLVED and requested not in _FINISHED_STATUSES:
        raise InvalidTransition(
            f"Resolved ticket {ticket.id} can only be closed; reclassify or override to reopen"
        )

    now = now or utc_now()
    final_status = requested
    assigned_to = ticket.assigned_to
    assigned_at = ticket.assigned_at
    events: list[NotificationEvent] = []

    if not isinstance(new_assignee, _Unset):
        assigned_to = new_assignee or None
        if assigned_to:
            assigned_at = now
            if ticket.status in _UNASSIGNED_STATUSES or requested in _UNASSIGNED_STATUSES:
                final_status = TicketStatus.ASSIGNED
            events.append(NotificationEvent.ASSIGNED)
        else:
            assigned_at = None

    if final_status in _UNASSIGNED_STATUSES and assigned_to is not None:
        # Card dragged back to an unassigned lane releases the assignee
        assigned_to = None
        assigned_at = None

    if final_status in (TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS) and assigned_to is None:
        raise InvalidTransition(f"Status '{final_status.value}' requires an assignee")

    changes = dict(
        status=final_status,
        assigned_to=assigned_to,
        assigned_at=assigned_at,
        updated_at=now,
    )
    if final_status == TicketStatus.RESOLVED:
        changes["resolved_at"] = now
    if final_status == TicketStatus.CLOSED:
        changes["closed_at"] = now

    if final_status == TicketStatus.WAITLIST:
        events.append(NotificationEvent.WAITLISTED)
    if final_status in _FINISHED_STATUSES:
        events.append(NotificationEvent.COMPLETED)

    return TransitionOutcome(
        ticket=replace(ticket, **changes),
        activity=_entry(ticket, actor, ActivityAction.STATUS_CHANGE, ticket.status, final_status, now),
        notifications=_notify(ticket, *events),
    )


# ─── Feedback & evidence ─────────────────────────────────────────────


def rate(
    ticket: Ticket,
    rating: int,
    actor: str,
    comment: str | None = None,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Creator rates a resolved or closed ticket from 1 to 5."""
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")
    if not ticket.is_finished():
        raise InvalidTransition(f"Can only rate resolved tickets; ticket {ticket.id} is '{ticket.status.value}'")
    if ticket.raised_by != actor:
        raise Forbidden("Only the ticket creator can rate")

    now = now or utc_now()
    summary = f"{rating}/5" + (f" - {comment}" if comment else "")
    return TransitionOutcome(
        ticket=replace(ticket, rating=rating, updated_at=now),
        activity=_entry(ticket, actor, ActivityAction.RATED, ticket.rating, summary, now),
    )


def attach_photo(
    ticket: Ticket,
    kind: str | PhotoKind,
    url: str,
    actor: str,
    now: datetime | None = None,
) -> TransitionOutcome:
    """Record the storage URL of a before/after photo."""
    try:
        kind = PhotoKind(kind)
    except ValueError:
        raise ValidationError('Invalid photo type. Use "before" or "after"') from None
    if not url:
        raise ValidationError("url is required")
    if actor != ticket.raised_by and not ticket.is_assigned_to(actor):
        raise Forbidden("Only the creator or the assignee can upload photos")
    _reject_closed(ticket, "attach photos")

    now = now or utc_now()
    if kind == PhotoKind.BEFORE:
        previous = ticket.photo_before_url
        updated = replace(ticket, photo_before_url=url, updated_at=now)
        action = ActivityAction.PHOTO_BEFORE_UPLOADED
    else:
        previous = ticket.photo_after_url
        updated = replace(ticket, photo_after_url=url, updated_at=now)
        action = ActivityAction.PHOTO_AFTER_UPLOADED

    return TransitionOutcome(
        ticket=updated,
        activity=_entry(ticket, actor, action, previous, url, now),
    )
