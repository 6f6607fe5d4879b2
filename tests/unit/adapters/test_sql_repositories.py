"""Query shape tests for the SQL repositories, run against a recording session."""

import pytest

from resolution_engine.adapters.persistence.repositories import SqlResolverStatRepository


class _EmptyResult:
    def scalars(self):
        return []


class RecordingSession:
    def __init__(self):
        self.statements = []

    async def execute(self, statement):
        self.statements.append(statement)
        return _EmptyResult()


@pytest.mark.asyncio
async def test_list_available_filters_on_availability_only():
    session = RecordingSession()

    assert await SqlResolverStatRepository(session).list_available("prop-1", 2) == []

    where = str(session.statements[0].whereclause)
    assert "is_available" in where
    assert "skill_group_id" in where
    assert "is_checked_in" not in where
