"""Requirement fetching."""

import pytest

from conftest import seed_request
from modules.validation.core.exceptions import NoRequirementsError
from modules.validation.requirements.fetcher import (
    REQUIREMENT_TYPES,
    RequirementFetcher,
    requirement_types_for,
)
from src.database.models import UnitRequirement


def test_full_validation_covers_every_type_in_order():
    assert requirement_types_for("full_validation") == REQUIREMENT_TYPES


def test_category_aliases():
    assert requirement_types_for("KE") == ["knowledge_evidence"]
    assert requirement_types_for("elements-criteria") == ["elements_performance_criteria"]


def test_unknown_category():
    with pytest.raises(ValueError):
        requirement_types_for("mystery")


@pytest.mark.asyncio
async def test_fetch_single_category(session_factory):
    await seed_request(session_factory, requirement_count=3)

    requirements = await RequirementFetcher(session_factory).fetch("TLIF0025", "knowledge_evidence")

    assert [r.number for r in requirements] == ["1", "2", "3"]
    assert all(r.requirement_type == "knowledge_evidence" for r in requirements)


@pytest.mark.asyncio
async def test_full_validation_groups_by_type_order(session_factory):
    async with session_factory() as session:
        for req_type, number in [
            ("performance_evidence", "PE1"),
            ("knowledge_evidence", "KE1"),
            ("assessment_conditions", "AC1"),
            ("knowledge_evidence", "KE2"),
        ]:
            session.add(
                UnitRequirement(
                    unit_code="TLIF0025",
                    requirement_type=req_type,
                    requirement_number=number,
                    requirement_text=f"{number} text",
                )
            )

    requirements = await RequirementFetcher(session_factory).fetch("TLIF0025", "full_validation")

    assert [r.number for r in requirements] == ["KE1", "KE2", "PE1", "AC1"]


@pytest.mark.asyncio
async def test_unit_link_takes_precedence(session_factory):
    link = "https://training.gov.au/Training/Details/TLIF0025"
    await seed_request(session_factory, unit_link=link, requirement_count=2)

    by_link = await RequirementFetcher(session_factory).fetch("OTHER", "knowledge_evidence", unit_link=link)

    assert len(by_link) == 2


@pytest.mark.asyncio
async def test_no_requirements_raises_with_unit_code(session_factory):
    with pytest.raises(NoRequirementsError, match="TLIF0025"):
        await RequirementFetcher(session_factory).fetch("TLIF0025", "knowledge_evidence")


@pytest.mark.asyncio
async def test_unknown_category_raises_no_requirements(session_factory):
    await seed_request(session_factory)
    with pytest.raises(NoRequirementsError):
        await RequirementFetcher(session_factory).fetch("TLIF0025", "mystery")
