"""AutoAssignTicketUseCase — hand a routable ticket to the best available resolver."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from resolution_engine.application.ports.activity_log_repo import ActivityLogRepository
from resolution_engine.application.ports.resolver_stat_repo import ResolverStatRepository
from resolution_engine.application.ports.ticket_repo import TicketRepository
from resolution_engine.domain.entities.ticket import Ticket
from resolution_engine.domain.errors import InvalidTransition, NotFound, ResolutionError
from resolution_engine.domain.policies import lifecycle
from resolution_engine.domain.policies.lifecycle import PendingNotification, TransitionOutcome
from resolution_engine.domain.policies.sla import utc_now
from resolution_engine.domain.policies.workload_scorer import RankedResolver, dedupe_by_user, rank
from resolution_engine.domain.value_objects.enums import TicketStatus

logger = logging.getLogger(__name__)


class AutoAssignTicketUseCase:
    """Ranks the pool for a ticket's property and skill group and assigns the winner."""

    def __init__(
        self,
        ticket_repo: TicketRepository,
        stat_repo: ResolverStatRepository,
        activity_repo: ActivityLogRepository,
    ):
        self._tickets = ticket_repo
        self._stats = stat_repo
        self._activity = activity_repo

    async def rank_for(self, property_id: str, skill_group_id: int | None) -> list[RankedResolver]:
        """Point-in-time ranking of available resolvers, best first."""
        candidates = dedupe_by_user(
            await self._stats.list_available(property_id, skill_group_id)
        )
        if not candidates:
            return []
        counts = await self._tickets.count_active_by_resolver(property_id)
        return rank(candidates, counts)

    async def assign_best(
        self, ticket: Ticket, actor: str, now: datetime | None = None
    ) -> TransitionOutcome | None:
        """Assign ``ticket`` (already loaded by the caller) to the top-ranked resolver.

        Returns None when nobody is available; the ticket is left untouched
        and stays in its lane until someone checks in.
        """
        ranked = await self.rank_for(ticket.property_id, ticket.skill_group_id)
        if not ranked:
            logger.info(
                "Ticket %s: no available resolver at property %s (skill group %s), deferring",
                ticket.id, ticket.property_id, ticket.skill_group_id,
            )
            return None

        chosen = ranked[0]
        now = now or utc_now()
        outcome = lifecycle.assign(ticket, chosen.user_id, actor, now=now)
        await self._tickets.update(outcome.ticket)
        await self._activity.append(outcome.activity)
        await self._stats.touch_assigned(
            chosen.user_id, ticket.property_id, chosen.stat.skill_group_id, now
        )
        logger.info(
            "Ticket %s → resolver %s (score %.2f, active %d)",
            ticket.id, chosen.user_id, chosen.score, chosen.active_tickets,
        )
        return outcome

    async def execute(self, ticket_id: int, actor: str) -> TransitionOutcome | None:
        ticket = await self._tickets.get_for_update(ticket_id)
        if ticket is None:
            raise NotFound(f"Ticket {ticket_id} not found")
        if ticket.status not in (TicketStatus.OPEN, TicketStatus.WAITLIST):
            raise InvalidTransition(
                f"Ticket {ticket_id} is '{ticket.status.value}'; only open or waitlisted tickets are auto-assigned"
            )
        if ticket.assigned_to is not None:
            raise InvalidTransition(f"Ticket {ticket_id} is already assigned to {ticket.assigned_to}")
        return await self.assign_best(ticket, actor)


@dataclass
class BulkAssignSummary:
    """Summary of one bulk auto-assign run."""

    total: int = 0
    assigned: int = 0
    deferred: int = 0
    errors: int = 0
    notifications: list[PendingNotification] = field(default_factory=list)


class BulkAutoAssignUseCase:
    """Auto-assign every open ticket of a property."""

    def __init__(self, auto_assign: AutoAssignTicketUseCase, ticket_repo: TicketRepository):
        self._auto_assign = auto_assign
        self._tickets = ticket_repo

    async def execute(self, property_id: str, actor: str) -> BulkAssignSummary:
        tickets = await self._tickets.list_by_property(property_id, status=TicketStatus.OPEN)
        logger.info("Bulk assign: %d open tickets at property %s", len(tickets), property_id)

        summary = BulkAssignSummary(total=len(tickets))
        for ticket in tickets:
            if ticket.assigned_to is not None:
                summary.deferred += 1
                continue
            try:
                # Counts are re-read per ticket so one batch spreads across resolvers
                outcome = await self._auto_assign.execute(ticket.id, actor)
            except ResolutionError as e:
                logger.warning("Bulk assign: ticket %s skipped: %s", ticket.id, e.reason)
                summary.errors += 1
                continue
            if outcome is None:
                summary.deferred += 1
            else:
                summary.assigned += 1
                summary.notifications.extend(outcome.notifications)

        logger.info(
            "Bulk assign complete: %d/%d assigned, %d deferred, %d errors",
            summary.assigned, summary.total, summary.deferred, summary.errors,
        )
        return summary
