"""HTTP-level tests: routes wired to in-memory fakes via dependency overrides."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from resolution_engine.adapters.persistence.database import get_session
from resolution_engine.application.services.event_dispatcher import EventDispatcher
from resolution_engine.application.use_cases.auto_assign import (
    AutoAssignTicketUseCase,
    BulkAutoAssignUseCase,
)
from resolution_engine.application.use_cases.create_ticket import CreateTicketUseCase
from resolution_engine.application.use_cases.resolver_pool import ResolverPool
from resolution_engine.application.use_cases.ticket_lifecycle import TicketLifecycleService
from resolution_engine.domain.entities.membership import PropertyMembership
from resolution_engine.domain.value_objects.enums import Role, TicketStatus
from resolution_engine.infrastructure.api.dependencies import (
    get_auto_assign_uc,
    get_bulk_assign_uc,
    get_create_ticket_uc,
    get_dispatcher,
    get_lifecycle_service,
    get_resolver_pool,
)
from resolution_engine.main import app
from tests.fakes import (
    FakeActivityRepo,
    FakeIdentity,
    FakeShiftRepo,
    FakeStatRepo,
    FakeTicketRepo,
    RecordingNotifier,
    seeded_catalog,
)

TENANT = {"X-User-Id": "tenant-1"}
MST = {"X-User-Id": "mst-1"}
ADMIN = {"X-User-Id": "admin-1"}


class FakeSession:
    def __init__(self):
        self.commits = 0

    async def commit(self):
        self.commits += 1

    async def execute(self, statement):
        raise SQLAlchemyError("connection refused")


@pytest.fixture
def api():
    state = SimpleNamespace(
        tickets=FakeTicketRepo(),
        activity=FakeActivityRepo(),
        stats=FakeStatRepo(),
        shifts=FakeShiftRepo(),
        catalog=seeded_catalog(),
        notifier=RecordingNotifier(),
        session=FakeSession(),
        identity=FakeIdentity(
            [PropertyMembership("mst-1", "prop-1", Role.MST)],
            {"mst-1": {"technical"}},
        ),
    )
    auto = AutoAssignTicketUseCase(state.tickets, state.stats, state.activity)

    async def _session():
        yield state.session

    app.dependency_overrides.update({
        get_session: _session,
        get_dispatcher: lambda: EventDispatcher(state.notifier),
        get_auto_assign_uc: lambda: auto,
        get_bulk_assign_uc: lambda: BulkAutoAssignUseCase(auto, state.tickets),
        get_create_ticket_uc: lambda: CreateTicketUseCase(
            state.tickets, state.activity, state.catalog, auto
        ),
        get_lifecycle_service: lambda: TicketLifecycleService(
            state.tickets, state.activity, state.catalog, state.stats
        ),
        get_resolver_pool: lambda: ResolverPool(
            state.identity, state.stats, state.shifts, state.catalog, auto
        ),
    })
    state.client = TestClient(app)
    yield state
    app.dependency_overrides.clear()


def _raise(client, description="AC not cooling in room 204"):
    return client.post(
        "/api/tickets",
        json={"property_id": "prop-1", "organization_id": "org-1", "description": description},
        headers=TENANT,
    )


def test_create_ticket_without_resolvers_stays_open(api):
    response = _raise(api.client)

    assert response.status_code == 201
    body = response.json()
    assert body["ticket"]["status"] == "open"
    assert body["ticket"]["ticket_number"] == "TKT-000001"
    assert body["ticket"]["priority"] == "high"
    assert body["ticket"]["sla"]["hours"] == 8
    assert body["classification"]["issue_code"] == "ac_breakdown"
    assert body["classification"]["confidence"] == "high"
    assert api.session.commits == 1
    assert api.notifier.sent == []


def test_check_in_then_raise_assigns_and_notifies(api):
    check_in = api.client.post("/api/resolvers/check-in", json={"property_id": "prop-1"}, headers=MST)
    assert check_in.json() == {
        "user_id": "mst-1", "property_id": "prop-1", "eligible": True, "skill_groups": ["technical"],
    }

    body = _raise(api.client).json()

    assert body["ticket"]["status"] == "assigned"
    assert body["ticket"]["assigned_to"] == "mst-1"
    assert api.notifier.sent == [("assigned", 1)]


def test_vague_ticket_is_waitlisted(api):
    body = _raise(api.client, "something is wrong please help").json()
    assert body["ticket"]["status"] == "waitlist"
    assert body["ticket"]["classification"]["is_vague"] is True
    assert api.notifier.sent == [("waitlisted", 1)]


def test_missing_user_header_is_forbidden(api):
    response = api.client.post(
        "/api/tickets",
        json={"property_id": "prop-1", "organization_id": "org-1", "description": "leak"},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


def test_blank_description_fails_request_validation(api):
    response = api.client.post(
        "/api/tickets",
        json={"property_id": "prop-1", "organization_id": "org-1", "description": ""},
        headers=TENANT,
    )
    assert response.status_code == 422


def test_unknown_ticket_is_404(api):
    response = api.client.get("/api/tickets/404")
    assert response.status_code == 404
    assert response.json() == {"error": "not_found", "detail": "Ticket 404 not found"}


def test_accept_by_someone_else_is_403(api, make_ticket):
    api.tickets.tickets[1] = make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1")

    denied = api.client.post("/api/tickets/1/accept", headers={"X-User-Id": "mst-2"})
    accepted = api.client.post("/api/tickets/1/accept", headers=MST)

    assert denied.status_code == 403
    assert accepted.status_code == 200
    assert accepted.json()["changed"] is True
    assert accepted.json()["ticket"]["status"] == "in_progress"


def test_status_keeps_assignee_unless_explicitly_cleared(api, make_ticket):
    api.tickets.tickets[1] = make_ticket(status=TicketStatus.IN_PROGRESS, assigned_to="mst-1")

    kept = api.client.post("/api/tickets/1/status", json={"status": "blocked"}, headers=ADMIN)
    assert kept.json()["ticket"]["assigned_to"] == "mst-1"

    cleared = api.client.post(
        "/api/tickets/1/status", json={"status": "blocked", "assignee": None}, headers=ADMIN
    )
    assert cleared.json()["ticket"]["assigned_to"] is None


def test_status_in_progress_without_assignee_is_409(api, make_ticket):
    api.tickets.tickets[1] = make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1")
    response = api.client.post(
        "/api/tickets/1/status", json={"status": "in_progress", "assignee": None}, headers=ADMIN
    )
    assert response.status_code == 409
    assert response.json()["error"] == "invalid_transition"
    assert api.session.commits == 0


def test_closed_ticket_rejects_status_change(api, make_ticket):
    api.tickets.tickets[1] = make_ticket(status=TicketStatus.CLOSED, assigned_to="mst-1")
    response = api.client.post("/api/tickets/1/status", json={"status": "open"}, headers=ADMIN)
    assert response.status_code == 409


def test_out_of_range_rating_is_400(api, make_ticket):
    api.tickets.tickets[1] = make_ticket(status=TicketStatus.RESOLVED, assigned_to="mst-1")
    response = api.client.post("/api/tickets/1/rating", json={"rating": 7}, headers=TENANT)
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_second_pause_reports_no_change(api, make_ticket):
    api.tickets.tickets[1] = make_ticket()
    first = api.client.post("/api/tickets/1/pause-sla", json={"reason": "vendor"}, headers=ADMIN)
    second = api.client.post("/api/tickets/1/pause-sla", json={}, headers=ADMIN)

    assert first.json()["changed"] is True
    assert first.json()["ticket"]["sla"]["breached"] is False
    assert second.json()["changed"] is False

    activity = api.client.get("/api/tickets/1/activity").json()["activity"]
    assert [a["action"] for a in activity] == ["sla_paused"]


def test_auto_assign_with_empty_pool(api, make_ticket):
    api.tickets.tickets[1] = make_ticket()
    response = api.client.post("/api/tickets/1/auto-assign", headers=ADMIN)
    assert response.json() == {"ticket_id": 1, "assigned": False, "reason": "No resolver available"}


def test_bulk_assign_summary(api, make_ticket, make_stat):
    api.tickets.tickets[1] = make_ticket(id=1)
    api.tickets.tickets[2] = make_ticket(id=2, skill_group_id=2)
    api.stats.stats.append(make_stat("mst-1"))

    response = api.client.post("/api/tickets/bulk-assign", json={"property_id": "prop-1"}, headers=ADMIN)

    assert response.json() == {"total": 2, "assigned": 1, "deferred": 1, "errors": 0}
    assert api.notifier.sent == [("assigned", 1)]


def test_workload_and_shift_status(api, make_stat):
    api.client.post("/api/resolvers/check-in", json={"property_id": "prop-1"}, headers=MST)

    status = api.client.get("/api/resolvers/shift-status", params={"property_id": "prop-1"}, headers=MST)
    workload = api.client.get("/api/resolvers/workload", params={"property_id": "prop-1"})

    assert status.json()["is_checked_in"] is True
    assert [r["user_id"] for r in workload.json()["resolvers"]] == ["mst-1"]

    out = api.client.post("/api/resolvers/check-out", json={"property_id": "prop-1"}, headers=MST)
    assert out.json()["rows_updated"] == 1
    assert api.client.get("/api/resolvers/workload", params={"property_id": "prop-1"}).json()["resolvers"] == []


def test_health_reports_degraded_database(api):
    body = api.client.get("/api/health").json()
    assert body["status"] == "degraded"
    assert body["service"] == "resolution-engine"


def test_manual_assign_then_double_assign_conflicts(api, make_ticket):
    api.tickets.tickets[1] = make_ticket(status=TicketStatus.WAITLIST)

    first = api.client.post("/api/tickets/1/assign", json={"resolver_id": "mst-1"}, headers=ADMIN)
    second = api.client.post("/api/tickets/1/assign", json={"resolver_id": "mst-2"}, headers=ADMIN)

    assert first.status_code == 200
    assert first.json()["ticket"]["status"] == "assigned"
    assert first.json()["ticket"]["assigned_to"] == "mst-1"
    assert second.status_code == 409
    assert api.notifier.sent == [("assigned", 1)]


def test_reassign_reports_skill_mismatch_unless_forced(api, make_ticket, make_stat):
    api.tickets.tickets[1] = make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1")
    api.stats.stats.append(make_stat("mst-2", skill_group_id=4))

    warned = api.client.post("/api/tickets/1/reassign", json={"assignee": "mst-2"}, headers=ADMIN)
    forced = api.client.post(
        "/api/tickets/1/reassign", json={"assignee": "mst-3", "force": True}, headers=ADMIN
    )

    assert warned.json()["warning"] == "Assignee may not have the required skill for this ticket"
    assert warned.json()["ticket"]["assigned_to"] == "mst-2"
    assert forced.json()["warning"] is None
    assert forced.json()["ticket"]["assigned_to"] == "mst-3"


def test_status_with_assignee_into_open_lane_assigns(api, make_ticket):
    api.tickets.tickets[1] = make_ticket(status=TicketStatus.ASSIGNED, assigned_to="mst-1")
    response = api.client.post(
        "/api/tickets/1/status", json={"status": "open", "assignee": "mst-2"}, headers=ADMIN
    )
    assert response.status_code == 200
    assert response.json()["ticket"]["status"] == "assigned"
    assert response.json()["ticket"]["assigned_to"] == "mst-2"
