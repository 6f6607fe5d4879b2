"""Tests for CreateTicketUseCase with in-memory fakes."""

from __future__ import annotations

import pytest

from resolution_engine.application.use_cases.auto_assign import AutoAssignTicketUseCase
from resolution_engine.application.use_cases.create_ticket import CreateTicketUseCase
from resolution_engine.domain.value_objects.enums import (
    ActivityAction,
    Confidence,
    NotificationEvent,
    TicketStatus,
)
from tests.fakes import (
    FakeActivityRepo,
    FakeCatalogRepo,
    FakeStatRepo,
    FakeTicketRepo,
    seeded_catalog,
)


def _build(stats=None, catalog=None):
    tickets = FakeTicketRepo()
    activity = FakeActivityRepo()
    stat_repo = FakeStatRepo(stats)
    auto = AutoAssignTicketUseCase(tickets, stat_repo, activity)
    uc = CreateTicketUseCase(
        ticket_repo=tickets,
        activity_repo=activity,
        catalog_repo=catalog or seeded_catalog(),
        auto_assign=auto,
    )
    return uc, tickets, activity, stat_repo


@pytest.mark.asyncio
async def test_vague_issue_lands_in_waitlist():
    uc, tickets, activity, _ = _build()
    result = await uc.execute(
        property_id="prop-1", organization_id="org-1",
        description="something is wrong", raised_by="tenant-1",
    )

    assert result.ticket.status == TicketStatus.WAITLIST
    assert result.ticket.id == 1
    assert result.ticket.ticket_number == "TKT-000001"
    assert result.classification.confidence == Confidence.LOW
    assert [n.event for n in result.notifications] == [NotificationEvent.WAITLISTED]
    assert [e.action for e in activity.entries] == [ActivityAction.CREATED]
    assert tickets.tickets[1].assigned_to is None


@pytest.mark.asyncio
async def test_confident_issue_is_auto_assigned_to_best_resolver(make_stat):
    stats = [
        make_stat("mst-a", current_floor=3, avg_resolution_minutes=90),
        make_stat("mst-b", current_floor=1, avg_resolution_minutes=30),
        make_stat("staff-c", skill_group_id=4),
    ]
    uc, tickets, activity, stat_repo = _build(stats)
    result = await uc.execute(
        property_id="prop-1", organization_id="org-1",
        description="AC not cooling in room 204", raised_by="tenant-1",
    )

    t = result.ticket
    assert t.status == TicketStatus.ASSIGNED
    assert t.assigned_to == "mst-b"
    assert t.category_id == 10
    assert t.skill_group_id == 1
    assert t.sla_hours == 8
    assert tickets.tickets[t.id].assigned_to == "mst-b"
    assert [e.action for e in activity.entries] == [ActivityAction.CREATED, ActivityAction.ASSIGNED]
    assert [n.event for n in result.notifications] == [NotificationEvent.ASSIGNED]
    assert stat_repo.touched == [("mst-b", "prop-1", 1)]


@pytest.mark.asyncio
async def test_confident_issue_stays_open_when_pool_is_empty():
    uc, _, activity, _ = _build(stats=[])
    result = await uc.execute(
        property_id="prop-1", organization_id="org-1",
        description="burst pipe in the washroom", raised_by="tenant-1",
    )
    assert result.ticket.status == TicketStatus.OPEN
    assert result.ticket.assigned_to is None
    assert result.notifications == ()
    assert len(activity.entries) == 1


@pytest.mark.asyncio
async def test_auto_assign_can_be_disabled(make_stat):
    uc, _, _, _ = _build(stats=[make_stat("mst-a")])
    result = await uc.execute(
        property_id="prop-1", organization_id="org-1",
        description="AC not cooling", raised_by="tenant-1", auto_assign=False,
    )
    assert result.ticket.status == TicketStatus.OPEN


@pytest.mark.asyncio
async def test_missing_category_falls_back_to_skill_group_and_default_sla(make_stat):
    catalog = seeded_catalog()
    catalog.categories.clear()
    uc, _, _, _ = _build(stats=[make_stat("mst-a")], catalog=catalog)
    result = await uc.execute(
        property_id="prop-1", organization_id="org-1",
        description="AC not cooling", raised_by="tenant-1",
    )
    assert result.ticket.category_id is None
    assert result.ticket.skill_group_id == 1
    assert result.ticket.sla_hours == 24
    assert result.ticket.assigned_to == "mst-a"


@pytest.mark.asyncio
async def test_empty_catalog_still_creates_ticket():
    uc, _, _, _ = _build(catalog=FakeCatalogRepo())
    result = await uc.execute(
        property_id="prop-1", organization_id="org-1",
        description="AC not cooling", raised_by="tenant-1",
    )
    assert result.ticket.skill_group_id is None
    assert result.ticket.status == TicketStatus.OPEN
