"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import pytest

from resolution_engine.domain.entities.resolver_stat import ResolverStat
from resolution_engine.domain.entities.ticket import Ticket
from resolution_engine.domain.value_objects.enums import Confidence, TicketStatus

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_ticket():
    def _make(**overrides) -> Ticket:
        fields = dict(
            id=1,
            property_id="prop-1",
            organization_id="org-1",
            title="AC not cooling",
            description="AC not cooling in room 204",
            raised_by="tenant-1",
            status=TicketStatus.OPEN,
            confidence=Confidence.HIGH,
            confidence_score=90,
            issue_code="ac_breakdown",
            skill_group_code="technical",
            category_id=10,
            skill_group_id=1,
            sla_deadline=datetime(2026, 3, 2, 17, 0, tzinfo=timezone.utc),
            created_at=NOW,
            updated_at=NOW,
        )
        fields.update(overrides)
        return Ticket(**fields)

    return _make


@pytest.fixture
def make_stat():
    def _make(user_id: str, **overrides) -> ResolverStat:
        fields = dict(
            id=None,
            user_id=user_id,
            property_id="prop-1",
            skill_group_id=1,
            is_available=True,
            is_checked_in=True,
        )
        fields.update(overrides)
        return ResolverStat(**fields)

    return _make


@pytest.fixture
def sample_description():
    return "AC not cooling in room 204"
