"""Result persistence and progress counters."""

import pytest

from conftest import seed_request
from modules.validation.core.exceptions import StoreError
from modules.validation.core.interfaces import (
    Citation,
    ParseMode,
    Requirement,
    RequirementValidation,
    ResultStatus,
)
from modules.validation.storage.result_store import ResultStore, progress_percentage
from src.database.repositories.validation_request_repository import ValidationRequestRepository
from src.database.repositories.validation_result_repository import ValidationResultRepository

REQUIREMENT = Requirement(id=1, requirement_type="knowledge_evidence", number="1", text="Fatigue causes")


def test_progress_percentage():
    assert progress_percentage(1, 3) == 33.33
    assert progress_percentage(3, 3) == 100.0
    assert progress_percentage(0, 0) == 0.0


@pytest.mark.asyncio
async def test_store_appends_row_for_run(session_factory):
    request_id = await seed_request(session_factory)
    store = ResultStore(session_factory, run_id="run-1")

    await store.store(
        request_id,
        RequirementValidation(
            requirement_id=1,
            requirement_number="1",
            requirement_type="knowledge_evidence",
            requirement_text="Fatigue causes",
            status=ResultStatus.COMPLIANT,
            reasoning="Covered by Q1",
            citations=[Citation(document_name="a.pdf", page_numbers=[2], excerpt="Q1")],
        ),
        parse_mode=ParseMode.FALLBACK,
    )
    await store.store_error(request_id, REQUIREMENT, "timed out")

    async with session_factory() as session:
        rows = await ValidationResultRepository(session).list_for_request(request_id, run_id="run-1")

    assert [r.status for r in rows] == ["compliant", "error"]
    assert rows[0].parse_mode == "fallback"
    assert rows[0].citations == [{"document_name": "a.pdf", "page_numbers": [2], "excerpt": "Q1"}]
    assert rows[1].parse_mode == "none"
    assert rows[1].error_message == "timed out"


@pytest.mark.asyncio
async def test_advance_progress_updates_counters(session_factory):
    request_id = await seed_request(session_factory)
    store = ResultStore(session_factory, run_id="run-1")

    await store.advance_progress(request_id, 2, 4)

    async with session_factory() as session:
        row = await ValidationRequestRepository(session).get_by_id(request_id)

    assert row.validation_count == 2
    assert row.validation_total == 4
    assert float(row.validation_progress) == 50.0


@pytest.mark.asyncio
async def test_advance_progress_rejects_out_of_range(session_factory):
    request_id = await seed_request(session_factory)
    with pytest.raises(StoreError):
        await ResultStore(session_factory, run_id="run-1").advance_progress(request_id, 5, 4)


@pytest.mark.asyncio
async def test_advance_progress_on_missing_request(session_factory):
    with pytest.raises(StoreError, match="not found"):
        await ResultStore(session_factory, run_id="run-1").advance_progress(999, 1, 1)
