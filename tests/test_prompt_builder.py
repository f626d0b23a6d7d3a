"""Validation prompt construction."""

import pytest

from modules.validation.core.interfaces import RequestContext, Requirement
from modules.validation.inference.prompt_builder import (
    DEFAULT_SYSTEM_INSTRUCTION,
    PromptBuilder,
    render_template,
)
from src.database.models import PromptTemplate

CONTEXT = RequestContext(
    validation_request_id=1,
    unit_code="TLIF0025",
    validation_category="knowledge_evidence",
    document_type="unit",
    unit_title="Apply fatigue management strategies",
)
KE = Requirement(id=1, requirement_type="knowledge_evidence", number="3", text="Signs of fatigue")
PE = Requirement(id=2, requirement_type="performance_evidence", number="1", text="Complete a work diary")


def test_render_template_replaces_known_placeholders():
    rendered = render_template("{{a}} and {{b}} and {{c}}", {"a": "one", "b": None})
    assert rendered == "one and  and {{c}}"


@pytest.mark.asyncio
async def test_default_template_without_database():
    prompt = await PromptBuilder().build(KE, CONTEXT, content="[Page 2] Question 3")

    assert prompt.source == "default"
    assert prompt.system_instruction == DEFAULT_SYSTEM_INSTRUCTION
    assert "TLIF0025" in prompt.text
    assert "Signs of fatigue" in prompt.text
    assert "[Page 2] Question 3" in prompt.text
    assert '"smart_question"' in prompt.text


@pytest.mark.asyncio
async def test_performance_evidence_asks_for_task():
    prompt = await PromptBuilder().build(PE, CONTEXT)
    assert '"smart_task"' in prompt.text
    assert '"smart_question"' not in prompt.text


@pytest.mark.asyncio
async def test_stored_prompt_is_preferred_and_cached(session_factory):
    async with session_factory() as session:
        session.add(
            PromptTemplate(
                name="ke-unit",
                prompt_type="validation",
                requirement_type="knowledge_evidence",
                document_type="unit",
                prompt_text="Check {{requirement_number}} of {{unit_code}}",
                system_instruction="Stored instruction",
                is_active=True,
                is_default=True,
            )
        )

    builder = PromptBuilder(session_factory)
    first = await builder.build(KE, CONTEXT)

    assert first.source == "database"
    assert first.text.startswith("Check 3 of TLIF0025")
    assert first.system_instruction == "Stored instruction"

    async with session_factory() as session:
        await session.execute(PromptTemplate.__table__.delete())

    second = await builder.build(KE, CONTEXT)
    assert second.source == "database"


@pytest.mark.asyncio
async def test_general_prompt_used_when_no_specific_one(session_factory):
    async with session_factory() as session:
        session.add(
            PromptTemplate(
                name="general",
                prompt_type="validation",
                prompt_text="General check of {{requirement_text}}",
                is_active=True,
                is_default=True,
            )
        )
        session.add(
            PromptTemplate(
                name="inactive-pe",
                prompt_type="validation",
                requirement_type="performance_evidence",
                prompt_text="Inactive",
                is_active=False,
                is_default=True,
            )
        )

    prompt = await PromptBuilder(session_factory).build(PE, CONTEXT)

    assert prompt.text.startswith("General check of Complete a work diary")
    assert prompt.system_instruction == DEFAULT_SYSTEM_INSTRUCTION
