"""CreateTicketUseCase — classify a raised issue, persist it and try to route it."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from resolution_engine.application.ports.activity_log_repo import ActivityLogRepository
from resolution_engine.application.ports.catalog_repo import CatalogRepository
from resolution_engine.application.ports.ticket_repo import TicketRepository
from resolution_engine.application.use_cases.auto_assign import AutoAssignTicketUseCase
from resolution_engine.domain.entities.catalog import IssueCategory
from resolution_engine.domain.entities.ticket import Ticket
from resolution_engine.domain.policies import lifecycle
from resolution_engine.domain.policies.classifier import (
    DEFAULT_DICTIONARY,
    ClassificationResult,
    IssueDictionary,
)
from resolution_engine.domain.policies.lifecycle import PendingNotification
from resolution_engine.domain.policies.sla import utc_now
from resolution_engine.domain.value_objects.enums import TicketStatus

logger = logging.getLogger(__name__)


@dataclass
class IntakeResult:
    ticket: Ticket
    classification: ClassificationResult
    notifications: tuple[PendingNotification, ...]


async def resolve_classification(
    catalog: CatalogRepository, result: ClassificationResult
) -> tuple[IssueCategory | None, int | None]:
    """Look up the category and skill group rows behind a classification."""
    category = None
    skill_group_id = None
    if result.issue_code is not None:
        category = await catalog.get_category_by_code(result.issue_code)
    if category is not None and category.skill_group_id is not None:
        skill_group_id = category.skill_group_id
    elif result.skill_group_code is not None:
        group = await catalog.get_skill_group_by_code(result.skill_group_code.value)
        skill_group_id = group.id if group else None
    return category, skill_group_id


class CreateTicketUseCase:
    """Intake pipeline.

    1. Classify the description (title + description when both are given)
    2. Resolve category / skill group reference rows
    3. Persist the ticket in ``open`` or ``waitlist`` with its ``created`` entry
    4. Auto-assign open tickets when a resolver is available
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        activity_repo: ActivityLogRepository,
        catalog_repo: CatalogRepository,
        auto_assign: AutoAssignTicketUseCase,
        dictionary: IssueDictionary = DEFAULT_DICTIONARY,
        default_sla_hours: int = 24,
    ):
        self._tickets = ticket_repo
        self._activity = activity_repo
        self._catalog = catalog_repo
        self._auto_assign = auto_assign
        self._dictionary = dictionary
        self._default_sla_hours = default_sla_hours

    async def execute(
        self,
        *,
        property_id: str,
        organization_id: str,
        description: str,
        raised_by: str,
        title: str | None = None,
        auto_assign: bool = True,
    ) -> IntakeResult:
        text = f"{title} {description}" if title else description
        result = self._dictionary.classify(text)
        category, skill_group_id = await resolve_classification(self._catalog, result)

        now = utc_now()
        ticket = lifecycle.open_ticket(
            property_id=property_id,
            organization_id=organization_id,
            description=description,
            raised_by=raised_by,
            result=result,
            title=title,
            category=category,
            skill_group_id=skill_group_id,
            default_sla_hours=self._default_sla_hours,
            now=now,
        )
        ticket = await self._tickets.save(ticket)
        created = lifecycle.record_creation(ticket, raised_by, now=now)
        await self._activity.append(created.activity)
        notifications = list(created.notifications)

        logger.info(
            "Ticket %s created: issue=%s confidence=%s status=%s",
            ticket.id, result.issue_code, result.confidence.value, ticket.status.value,
        )

        if auto_assign and ticket.status == TicketStatus.OPEN:
            outcome = await self._auto_assign.assign_best(ticket, raised_by, now=now)
            if outcome is not None:
                ticket = outcome.ticket
                notifications.extend(outcome.notifications)

        return IntakeResult(
            ticket=ticket,
            classification=result,
            notifications=tuple(notifications),
        )
