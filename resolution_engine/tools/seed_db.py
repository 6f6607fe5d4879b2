"""Seed skill groups and issue categories from the classifier dictionary.

Usage:
    python -m resolution_engine.tools.seed_db
    python -m resolution_engine.tools.seed_db --drop  # drop reference data first
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from resolution_engine.adapters.persistence.database import async_session_factory
from resolution_engine.adapters.persistence.models import (
    IssueCategoryModel,
    ResolverStatModel,
    SkillGroupModel,
    TicketModel,
)
from resolution_engine.adapters.persistence.repositories import SqlCatalogRepository
from resolution_engine.application.ports.catalog_repo import CatalogRepository
from resolution_engine.domain.entities.catalog import IssueCategory, SkillGroup
from resolution_engine.domain.policies.classifier import DEFAULT_DICTIONARY, IssueDictionary
from resolution_engine.domain.value_objects.enums import Priority, SkillGroupCode

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)

SKILL_GROUP_NAMES: dict[SkillGroupCode, str] = {
    SkillGroupCode.TECHNICAL: "Technical",
    SkillGroupCode.PLUMBING: "Plumbing",
    SkillGroupCode.VENDOR: "Vendor",
    SkillGroupCode.SOFT_SERVICES: "Soft Services",
}

# issue code → (priority, sla hours); unlisted codes get medium / 24h
CATEGORY_DEFAULTS: dict[str, tuple[Priority, int]] = {
    "ac_breakdown": (Priority.HIGH, 8),
    "power_outage": (Priority.CRITICAL, 4),
    "wifi_down": (Priority.HIGH, 8),
    "lighting_issue": (Priority.MEDIUM, 24),
    "door_window_repair": (Priority.MEDIUM, 24),
    "water_leakage": (Priority.HIGH, 6),
    "washroom_issue": (Priority.HIGH, 8),
    "lift_breakdown": (Priority.CRITICAL, 4),
    "fire_safety": (Priority.CRITICAL, 2),
    "security_systems": (Priority.HIGH, 12),
    "parking_access": (Priority.MEDIUM, 24),
    "cleaning_request": (Priority.LOW, 24),
    "pest_control": (Priority.MEDIUM, 48),
    "pantry_service": (Priority.LOW, 24),
    "waste_disposal": (Priority.LOW, 12),
    "hygiene_supplies": (Priority.LOW, 12),
}


def _category_name(issue_code: str) -> str:
    return issue_code.replace("_", " ").title()


async def seed_catalog(
    catalog: CatalogRepository,
    dictionary: IssueDictionary = DEFAULT_DICTIONARY,
) -> dict[str, int]:
    """Insert missing skill groups and categories. Existing rows are left alone."""
    counts = {"skill_groups": 0, "issue_categories": 0}

    group_ids: dict[str, int] = {}
    for code, name in SKILL_GROUP_NAMES.items():
        existing = await catalog.get_skill_group_by_code(code.value)
        if existing:
            logger.debug("Skill group '%s' already exists, skipping", code.value)
            group_ids[code.value] = existing.id
            continue
        group = await catalog.save_skill_group(SkillGroup(id=None, code=code.value, name=name))
        group_ids[code.value] = group.id
        counts["skill_groups"] += 1

    for issue_code in dictionary.issue_codes():
        if await catalog.get_category_by_code(issue_code):
            logger.debug("Category '%s' already exists, skipping", issue_code)
            continue
        skill = dictionary.skill_group_for(issue_code)
        priority, sla_hours = CATEGORY_DEFAULTS.get(issue_code, (Priority.MEDIUM, 24))
        await catalog.save_category(
            IssueCategory(
                id=None,
                code=issue_code,
                name=_category_name(issue_code),
                skill_group_id=group_ids.get(skill.value) if skill else None,
                priority=priority,
                sla_hours=sla_hours,
            )
        )
        counts["issue_categories"] += 1

    return counts


async def _drop_data(session: AsyncSession) -> None:
    """Delete reference data, detaching tickets and resolver rows that point to it."""
    await session.execute(update(TicketModel).values(category_id=None, skill_group_id=None))
    await session.execute(delete(ResolverStatModel))
    await session.execute(delete(IssueCategoryModel))
    await session.execute(delete(SkillGroupModel))
    await session.commit()
    logger.info("Dropped skill groups, categories and resolver rows")


async def seed(drop: bool = False) -> dict[str, int]:
    async with async_session_factory() as session:
        if drop:
            await _drop_data(session)
        counts = await seed_catalog(SqlCatalogRepository(session))
        await session.commit()
    logger.info(
        "Seeded %d skill groups, %d issue categories",
        counts["skill_groups"], counts["issue_categories"],
    )
    return counts


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed reference data for the resolution engine")
    parser.add_argument("--drop", action="store_true", help="Drop existing reference data first")
    args = parser.parse_args()

    try:
        asyncio.run(seed(drop=args.drop))
    except Exception:
        logger.exception("Seeding failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
