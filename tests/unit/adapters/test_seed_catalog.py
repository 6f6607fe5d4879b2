"""Tests for seeding reference data from the classifier dictionary."""

import pytest

from resolution_engine.domain.policies.classifier import DEFAULT_DICTIONARY
from resolution_engine.domain.value_objects.enums import Priority
from resolution_engine.tools.seed_db import CATEGORY_DEFAULTS, seed_catalog
from tests.fakes import FakeCatalogRepo, seeded_catalog


@pytest.mark.asyncio
async def test_seeds_every_group_and_issue_code():
    catalog = FakeCatalogRepo()

    counts = await seed_catalog(catalog)

    assert counts == {"skill_groups": 4, "issue_categories": len(DEFAULT_DICTIONARY.issue_codes())}
    leak = await catalog.get_category_by_code("water_leakage")
    plumbing = await catalog.get_skill_group_by_code("plumbing")
    assert leak.skill_group_id == plumbing.id
    assert (leak.priority, leak.sla_hours) == CATEGORY_DEFAULTS["water_leakage"]


@pytest.mark.asyncio
async def test_seeding_is_idempotent():
    catalog = FakeCatalogRepo()
    await seed_catalog(catalog)
    assert await seed_catalog(catalog) == {"skill_groups": 0, "issue_categories": 0}


@pytest.mark.asyncio
async def test_existing_rows_are_left_alone():
    catalog = seeded_catalog()
    counts = await seed_catalog(catalog)

    assert counts["skill_groups"] == 0
    assert counts["issue_categories"] == len(DEFAULT_DICTIONARY.issue_codes()) - 3
    cleaning = await catalog.get_category_by_code("cleaning_request")
    assert cleaning.id == 12
    assert cleaning.priority == Priority.LOW
