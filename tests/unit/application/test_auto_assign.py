"""Tests for AutoAssignTicketUseCase and BulkAutoAssignUseCase."""

from __future__ import annotations

import pytest

from resolution_engine.application.use_cases.auto_assign import (
    AutoAssignTicketUseCase,
    BulkAutoAssignUseCase,
)
from resolution_engine.domain.errors import InvalidTransition, NotFound
from resolution_engine.domain.value_objects.enums import TicketStatus
from tests.fakes import FakeActivityRepo, FakeStatRepo, FakeTicketRepo


def _build(tickets, stats):
    ticket_repo = FakeTicketRepo(tickets)
    activity = FakeActivityRepo()
    uc = AutoAssignTicketUseCase(ticket_repo, FakeStatRepo(stats), activity)
    return uc, ticket_repo, activity


@pytest.mark.asyncio
async def test_assigns_least_loaded_resolver(make_ticket, make_stat):
    busy = make_ticket(id=1, status=TicketStatus.IN_PROGRESS, assigned_to="mst-a")
    target = make_ticket(id=2)
    uc, repo, activity = _build([busy, target], [make_stat("mst-a"), make_stat("mst-b")])

    outcome = await uc.execute(2, "admin")

    assert outcome.ticket.assigned_to == "mst-b"
    assert repo.tickets[2].status == TicketStatus.ASSIGNED
    assert repo.locked == [2]
    assert len(activity.entries) == 1


@pytest.mark.asyncio
async def test_empty_pool_defers_without_error(make_ticket):
    uc, repo, activity = _build([make_ticket()], [])
    assert await uc.execute(1, "admin") is None
    assert repo.tickets[1].status == TicketStatus.OPEN
    assert activity.entries == []


@pytest.mark.asyncio
async def test_checked_out_resolvers_are_not_candidates(make_ticket, make_stat):
    uc, _, _ = _build([make_ticket()], [make_stat("mst-a", is_checked_in=False, is_available=False)])
    assert await uc.execute(1, "admin") is None


@pytest.mark.asyncio
async def test_unknown_ticket_is_not_found():
    uc, _, _ = _build([], [])
    with pytest.raises(NotFound):
        await uc.execute(99, "admin")


@pytest.mark.asyncio
async def test_ticket_already_in_progress_is_rejected(make_ticket, make_stat):
    uc, _, _ = _build(
        [make_ticket(status=TicketStatus.IN_PROGRESS, assigned_to="mst-a")], [make_stat("mst-b")]
    )
    with pytest.raises(InvalidTransition):
        await uc.execute(1, "admin")


@pytest.mark.asyncio
async def test_rank_for_counts_only_active_tickets(make_ticket, make_stat):
    tickets = [
        make_ticket(id=1, status=TicketStatus.ASSIGNED, assigned_to="mst-a"),
        make_ticket(id=2, status=TicketStatus.RESOLVED, assigned_to="mst-b"),
        make_ticket(id=3, status=TicketStatus.BLOCKED, assigned_to="mst-b"),
    ]
    uc, _, _ = _build(tickets, [make_stat("mst-a"), make_stat("mst-b")])
    ranked = await uc.rank_for("prop-1", 1)
    assert [(r.user_id, r.active_tickets) for r in ranked] == [("mst-b", 0), ("mst-a", 1)]


@pytest.mark.asyncio
async def test_bulk_assign_spreads_tickets_across_pool(make_ticket, make_stat):
    tickets = [make_ticket(id=i) for i in (1, 2, 3, 4)]
    tickets.append(make_ticket(id=5, status=TicketStatus.WAITLIST))
    uc, repo, _ = _build(tickets, [make_stat("mst-a"), make_stat("mst-b")])
    bulk = BulkAutoAssignUseCase(uc, repo)

    summary = await bulk.execute("prop-1", "admin")

    assert (summary.total, summary.assigned, summary.deferred, summary.errors) == (4, 4, 0, 0)
    owners = [repo.tickets[i].assigned_to for i in (1, 2, 3, 4)]
    assert owners == ["mst-a", "mst-b", "mst-a", "mst-b"]
    assert repo.tickets[5].status == TicketStatus.WAITLIST
    assert len(summary.notifications) == 4


@pytest.mark.asyncio
async def test_bulk_assign_with_empty_pool_defers_everything(make_ticket):
    tickets = [make_ticket(id=1), make_ticket(id=2)]
    uc, repo, _ = _build(tickets, [])
    summary = await BulkAutoAssignUseCase(uc, repo).execute("prop-1", "admin")
    assert (summary.total, summary.assigned, summary.deferred) == (2, 0, 2)


@pytest.mark.asyncio
async def test_availability_flag_alone_decides_candidacy(make_ticket, make_stat):
    stats = [make_stat("mst-a", is_checked_in=False), make_stat("mst-b", is_available=False)]
    uc, _, _ = _build([make_ticket()], stats)

    ranked = await uc.rank_for("prop-1", 1)

    assert [r.user_id for r in ranked] == ["mst-a"]
