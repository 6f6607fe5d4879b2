"""Ticket entity — a facility issue raised against a property."""

from dataclasses import dataclass
from datetime import datetime

from resolution_engine.domain.value_objects.enums import (
    ClassificationSource,
    Confidence,
    Priority,
    TicketStatus,
)


@dataclass
class Ticket:
    id: int | None
    property_id: str
    organization_id: str
    title: str
    description: str
    raised_by: str
    status: TicketStatus
    confidence: Confidence
    classification_source: ClassificationSource = ClassificationSource.RULES
    confidence_score: int = 0
    is_vague: bool = False
    issue_code: str | None = None
    skill_group_code: str | None = None
    category_id: int | None = None
    skill_group_id: int | None = None
    priority: Priority = Priority.MEDIUM
    sla_hours: int = 24
    floor_number: int | None = None
    location: str | None = None
    assigned_to: str | None = None
    assigned_at: datetime | None = None
    accepted_at: datetime | None = None
    work_started_at: datetime | None = None
    resolved_at: datetime | None = None
    closed_at: datetime | None = None
    sla_deadline: datetime | None = None
    sla_paused: bool = False
    sla_paused_at: datetime | None = None
    sla_pause_reason: str | None = None
    total_paused_minutes: int = 0
    rating: int | None = None
    photo_before_url: str | None = None
    photo_after_url: str | None = None
    ticket_number: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_closed(self) -> bool:
        return self.status == TicketStatus.CLOSED

    def is_finished(self) -> bool:
        """Resolved or closed: the SLA clock no longer runs."""
        return self.status in (TicketStatus.RESOLVED, TicketStatus.CLOSED)

    def is_assigned_to(self, user_id: str) -> bool:
        return self.assigned_to is not None and self.assigned_to == user_id
