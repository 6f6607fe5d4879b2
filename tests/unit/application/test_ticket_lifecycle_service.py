"""Tests for TicketLifecycleService with in-memory fakes."""

from __future__ import annotations

from datetime import timedelta

import pytest

from resolution_engine.application.ports.activity_log_repo import ActivityLogRepository
from resolution_engine.application.use_cases.ticket_lifecycle import (
    SKILL_MISMATCH_WARNING,
    TicketLifecycleService,
)
from resolution_engine.domain.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from resolution_engine.domain.value_objects.enums import (
    ActivityAction,
    ClassificationSource,
    TicketStatus,
)
from tests.fakes import FakeActivityRepo, FakeStatRepo, FakeTicketRepo, seeded_catalog


class BrokenActivityRepo(ActivityLogRepository):
    async def append(self, entry):
        raise RuntimeError("insert failed")

    async def list_for_ticket(self, ticket_id):
        return []


def _service(*tickets, activity=None, stats=None):
    repo = FakeTicketRepo(list(tickets))
    activity = activity or FakeActivityRepo()
    service = TicketLifecycleService(repo, activity, seeded_catalog(), FakeStatRepo(stats))
    return service, repo, activity


@pytest.mark.asyncio
async def test_accept_persists_ticket_and_activity(make_ticket):
    service, repo, activity = _service(make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1"))

    outcome = await service.accept(1, "mst-1")

    assert repo.tickets[1].status == TicketStatus.IN_PROGRESS
    assert repo.locked == [1]
    assert [e.action for e in activity.entries] == [ActivityAction.ACCEPTED]
    assert outcome.changed


@pytest.mark.asyncio
async def test_rejected_transition_writes_nothing(make_ticket):
    ticket = make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1")
    service, repo, activity = _service(ticket)

    with pytest.raises(Forbidden):
        await service.accept(1, "mst-2")

    assert repo.tickets[1] == ticket
    assert activity.entries == []


@pytest.mark.asyncio
async def test_missing_ticket_is_not_found():
    service, _, _ = _service()
    with pytest.raises(NotFound):
        await service.pause_sla(42, None, "admin")


@pytest.mark.asyncio
async def test_activity_failure_propagates(make_ticket):
    service, _, _ = _service(make_ticket(), activity=BrokenActivityRepo())
    with pytest.raises(RuntimeError):
        await service.pause_sla(1, None, "admin")


@pytest.mark.asyncio
async def test_override_resolves_category_and_skill_group(make_ticket):
    service, repo, activity = _service(
        make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1")
    )

    await service.override_classification(1, 11, "admin")

    t = repo.tickets[1]
    assert t.category_id == 11
    assert t.skill_group_id == 2
    assert t.issue_code == "water_leakage"
    assert t.skill_group_code == "plumbing"
    assert t.status == TicketStatus.OPEN
    assert t.assigned_to is None
    assert t.classification_source == ClassificationSource.MANUAL


@pytest.mark.asyncio
async def test_override_with_unknown_category_is_not_found(make_ticket):
    service, _, _ = _service(make_ticket())
    with pytest.raises(NotFound):
        await service.override_classification(1, 999, "admin")


@pytest.mark.asyncio
async def test_reclassify_uses_stored_text(make_ticket):
    ticket = make_ticket(
        status=TicketStatus.WAITLIST, title="Help", description="wet floor near the pantry, please mop",
        category_id=None, skill_group_id=None, issue_code=None,
    )
    service, repo, _ = _service(ticket)

    await service.reclassify(1, "admin")

    t = repo.tickets[1]
    assert t.issue_code == "cleaning_request"
    assert t.category_id == 12
    assert t.skill_group_id == 4
    assert t.status == TicketStatus.OPEN
    assert t.classification_source == ClassificationSource.RULES_REEVAL


@pytest.mark.asyncio
async def test_idempotent_pause_writes_single_entry(make_ticket):
    service, _, activity = _service(make_ticket())
    await service.pause_sla(1, "vendor visit", "admin")
    second = await service.pause_sla(1, "again", "admin")

    assert not second.changed
    assert [e.action for e in activity.entries] == [ActivityAction.SLA_PAUSED]


@pytest.mark.asyncio
async def test_resume_extends_stored_deadline(make_ticket, now):
    ticket = make_ticket(sla_paused=True, sla_paused_at=now - timedelta(minutes=30))
    service, repo, _ = _service(ticket)
    await service.resume_sla(1, "admin")

    t = repo.tickets[1]
    assert t.total_paused_minutes >= 30
    assert t.sla_deadline - ticket.sla_deadline == timedelta(minutes=t.total_paused_minutes)


@pytest.mark.asyncio
async def test_update_status_rejects_unknown_status(make_ticket):
    service, _, activity = _service(make_ticket())
    with pytest.raises(ValidationError):
        await service.update_status(1, "finished", "admin")
    assert activity.entries == []


@pytest.mark.asyncio
async def test_list_and_activity_queries(make_ticket):
    service, _, _ = _service(
        make_ticket(id=1),
        make_ticket(id=2, status=TicketStatus.ASSIGNED, assigned_to="mst-1"),
        make_ticket(id=3, property_id="prop-2"),
    )
    await service.pause_sla(1, None, "admin")

    assert [t.id for t in await service.list_tickets("prop-1")] == [1, 2]
    assert [t.id for t in await service.list_tickets("prop-1", status="assigned")] == [2]
    assert [t.id for t in await service.list_tickets("prop-1", assigned_to="mst-1")] == [2]
    assert len(await service.list_activity(1)) == 1
    with pytest.raises(NotFound):
        await service.list_activity(77)


@pytest.mark.asyncio
async def test_assign_accept_resolve_persists_three_entries(make_ticket):
    service, repo, activity = _service(make_ticket(status=TicketStatus.WAITLIST))

    await service.assign(1, "mst-1", "admin")
    await service.accept(1, "mst-1")
    await service.update_status(1, "resolved", "mst-1")

    t = repo.tickets[1]
    assert t.status == TicketStatus.RESOLVED
    assert t.assigned_to == "mst-1"
    assert t.resolved_at is not None
    actions = [e.action for e in activity.entries]
    assert actions == [ActivityAction.ASSIGNED, ActivityAction.ACCEPTED, ActivityAction.STATUS_CHANGE]
    assert repo.locked == [1, 1, 1]


@pytest.mark.asyncio
async def test_assign_over_another_resolver_is_rejected(make_ticket):
    service, repo, activity = _service(make_ticket(assigned_to="mst-1"))

    with pytest.raises(InvalidTransition):
        await service.assign(1, "mst-2", "admin")

    assert repo.tickets[1].assigned_to == "mst-1"
    assert activity.entries == []


@pytest.mark.asyncio
async def test_reassign_to_resolver_without_matching_skill_warns(make_ticket, make_stat):
    ticket = make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1", skill_group_id=2)
    service, repo, activity = _service(ticket, stats=[make_stat("mst-2", skill_group_id=1)])

    result = await service.reassign(1, "mst-2", "admin")

    assert result.warning == SKILL_MISMATCH_WARNING
    assert repo.tickets[1].assigned_to == "mst-2"
    assert [e.action for e in activity.entries] == [ActivityAction.REASSIGNED]


@pytest.mark.asyncio
async def test_forced_reassign_skips_skill_check(make_ticket):
    ticket = make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1", skill_group_id=2)
    service, repo, _ = _service(ticket)

    result = await service.reassign(1, "mst-2", "admin", force=True)

    assert result.warning is None
    assert repo.tickets[1].assigned_to == "mst-2"


@pytest.mark.asyncio
async def test_reassign_to_qualified_resolver_has_no_warning(make_ticket, make_stat):
    ticket = make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1", skill_group_id=2)
    service, _, _ = _service(
        ticket, stats=[make_stat("mst-2", skill_group_id=2, is_available=False)]
    )

    result = await service.reassign(1, "mst-2", "admin")

    assert result.warning is None
    assert result.outcome.changed


@pytest.mark.asyncio
async def test_unassign_never_warns(make_ticket):
    service, repo, _ = _service(make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1"))
    result = await service.reassign(1, None, "admin")
    assert result.warning is None
    assert repo.tickets[1].status == TicketStatus.WAITLIST
