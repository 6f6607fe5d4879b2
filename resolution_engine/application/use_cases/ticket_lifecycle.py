"""TicketLifecycleService — locked read-modify-write around lifecycle transitions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from resolution_engine.application.ports.activity_log_repo import ActivityLogRepository
from resolution_engine.application.ports.catalog_repo import CatalogRepository
from resolution_engine.application.ports.resolver_stat_repo import ResolverStatRepository
from resolution_engine.application.ports.ticket_repo import TicketRepository
from resolution_engine.application.use_cases.create_ticket import resolve_classification
from resolution_engine.domain.entities.activity import ActivityLogEntry
from resolution_engine.domain.entities.ticket import Ticket
from resolution_engine.domain.errors import NotFound
from resolution_engine.domain.policies import lifecycle
from resolution_engine.domain.policies.classifier import DEFAULT_DICTIONARY, IssueDictionary
from resolution_engine.domain.policies.lifecycle import UNSET, TransitionOutcome
from resolution_engine.domain.value_objects.enums import TicketStatus

logger = logging.getLogger(__name__)

SKILL_MISMATCH_WARNING = "Assignee may not have the required skill for this ticket"


@dataclass(frozen=True)
class ReassignResult:
    outcome: TransitionOutcome
    warning: str | None = None


class TicketLifecycleService:
    """Applies one transition per call.

    The ticket row is locked for the rest of the unit of work, the pure
    transition runs against it and the updated ticket plus its activity entry
    are written through the same session. Committing (or rolling back) is the
    caller's job, so a failed write never leaves half a transition behind.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        activity_repo: ActivityLogRepository,
        catalog_repo: CatalogRepository,
        stat_repo: ResolverStatRepository,
        dictionary: IssueDictionary = DEFAULT_DICTIONARY,
    ):
        self._tickets = ticket_repo
        self._activity = activity_repo
        self._catalog = catalog_repo
        self._stats = stat_repo
        self._dictionary = dictionary

    # ─── Queries ─────────────────────────────────────────────────────

    async def get(self, ticket_id: int) -> Ticket:
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise NotFound(f"Ticket {ticket_id} not found")
        return ticket

    async def list_tickets(
        self,
        property_id: str,
        status: str | None = None,
        assigned_to: str | None = None,
    ) -> list[Ticket]:
        parsed = lifecycle.parse_status(status) if status else None
        return await self._tickets.list_by_property(property_id, status=parsed, assigned_to=assigned_to)

    async def list_activity(self, ticket_id: int) -> list[ActivityLogEntry]:
        await self.get(ticket_id)
        return await self._activity.list_for_ticket(ticket_id)

    # ─── Transitions ─────────────────────────────────────────────────

    async def _load(self, ticket_id: int) -> Ticket:
        ticket = await self._tickets.get_for_update(ticket_id)
        if ticket is None:
            raise NotFound(f"Ticket {ticket_id} not found")
        return ticket

    async def _record(self, ticket: Ticket, outcome: TransitionOutcome) -> TransitionOutcome:
        if not outcome.changed:
            return outcome

        await self._tickets.update(outcome.ticket)
        await self._activity.append(outcome.activity)
        logger.info(
            "Ticket %s: %s by %s (%s → %s)",
            ticket.id, outcome.activity.action.value, outcome.activity.user_id,
            ticket.status.value, outcome.ticket.status.value,
        )
        return outcome

    async def _apply(
        self, ticket_id: int, transition: Callable[[Ticket], TransitionOutcome]
    ) -> TransitionOutcome:
        ticket = await self._load(ticket_id)
        return await self._record(ticket, transition(ticket))

    async def assign(self, ticket_id: int, resolver_id: str, actor: str) -> TransitionOutcome:
        """Manual assignment to a resolver chosen by the caller."""
        return await self._apply(ticket_id, lambda t: lifecycle.assign(t, resolver_id, actor))

    async def accept(self, ticket_id: int, actor: str) -> TransitionOutcome:
        return await self._apply(ticket_id, lambda t: lifecycle.accept(t, actor))

    async def override_classification(
        self, ticket_id: int, category_id: int, actor: str
    ) -> TransitionOutcome:
        category = await self._catalog.get_category(category_id)
        if category is None:
            raise NotFound(f"Category {category_id} not found")
        group = None
        if category.skill_group_id is not None:
            group = await self._catalog.get_skill_group(category.skill_group_id)

        return await self._apply(
            ticket_id,
            lambda t: lifecycle.override_classification(
                t,
                category.id,
                category.skill_group_id,
                actor,
                issue_code=category.code,
                skill_group_code=group.code if group else None,
            ),
        )

    async def reclassify(self, ticket_id: int, actor: str) -> TransitionOutcome:
        ticket = await self._load(ticket_id)
        text = f"{ticket.title} {ticket.description}" if ticket.title else ticket.description
        result = self._dictionary.classify(text)
        category, skill_group_id = await resolve_classification(self._catalog, result)

        return await self._record(
            ticket,
            lifecycle.reclassify(
                ticket, result, category.id if category else None, skill_group_id, actor
            ),
        )

    async def pause_sla(self, ticket_id: int, reason: str | None, actor: str) -> TransitionOutcome:
        return await self._apply(ticket_id, lambda t: lifecycle.pause_sla(t, reason, actor))

    async def resume_sla(self, ticket_id: int, actor: str) -> TransitionOutcome:
        return await self._apply(ticket_id, lambda t: lifecycle.resume_sla(t, actor))

    async def update_status(
        self,
        ticket_id: int,
        new_status: str | TicketStatus,
        actor: str,
        new_assignee=UNSET,
    ) -> TransitionOutcome:
        return await self._apply(
            ticket_id,
            lambda t: lifecycle.update_status(t, new_status, actor, new_assignee=new_assignee),
        )

    async def reassign(
        self,
        ticket_id: int,
        new_assignee: str | None,
        actor: str,
        force: bool = False,
    ) -> ReassignResult:
        """Move the ticket to ``new_assignee`` (or the waitlist when None).

        Unless ``force`` is set, an assignee with no resolver row for the
        ticket's skill group at its property still gets the ticket, but the
        result carries a warning.
        """
        ticket = await self._load(ticket_id)
        transition = lifecycle.reassign(ticket, new_assignee, actor)

        warning = None
        if new_assignee and not force and ticket.skill_group_id is not None:
            stats = await self._stats.list_for_user(new_assignee, ticket.property_id)
            if not any(s.skill_group_id == ticket.skill_group_id for s in stats):
                warning = SKILL_MISMATCH_WARNING
                logger.warning(
                    "Ticket %s: %s has no resolver row for skill group %s",
                    ticket.id, new_assignee, ticket.skill_group_id,
                )

        outcome = await self._record(ticket, transition)
        return ReassignResult(outcome=outcome, warning=warning)

    async def rate(
        self, ticket_id: int, rating: int, actor: str, comment: str | None = None
    ) -> TransitionOutcome:
        return await self._apply(ticket_id, lambda t: lifecycle.rate(t, rating, actor, comment=comment))

    async def attach_photo(self, ticket_id: int, kind: str, url: str, actor: str) -> TransitionOutcome:
        return await self._apply(ticket_id, lambda t: lifecycle.attach_photo(t, kind, url, actor))
