"""Inference invocation."""

import asyncio

import pytest

from conftest import FakeValidator, SleepRecorder
from modules.validation.core.exceptions import ProviderError
from modules.validation.core.interfaces import (
    InferenceRequest,
    IRequirementValidator,
    RawResponse,
    RequestContext,
    Requirement,
)
from modules.validation.inference.invoker import InferenceInvoker
from modules.validation.inference.prompt_builder import PromptBuilder
from modules.validation.inference.rate_limiter import FixedIntervalRateLimiter, NoDelayRateLimiter

CONTEXT = RequestContext(
    validation_request_id=1,
    unit_code="TLIF0025",
    validation_category="knowledge_evidence",
    file_search_store_name="fileSearchStores/tlif0025",
)
REQUIREMENT = Requirement(id=1, requirement_type="knowledge_evidence", number="1", text="Fatigue causes")


class SlowValidator(IRequirementValidator):
    name = "slow"

    async def validate_requirement(self, request: InferenceRequest) -> RawResponse:
        await asyncio.sleep(5)
        return RawResponse(text="{}", provider=self.name)


class BrokenValidator(IRequirementValidator):
    name = "broken"

    async def validate_requirement(self, request: InferenceRequest) -> RawResponse:
        raise RuntimeError("socket closed")


@pytest.mark.asyncio
async def test_invoke_passes_prompt_content_and_store():
    validator = FakeValidator()
    invoker = InferenceInvoker(validator, NoDelayRateLimiter(), PromptBuilder())

    response = await invoker.invoke(REQUIREMENT, "[Page 1] Q1", CONTEXT)

    assert response.provider == "fake"
    [request] = validator.requests
    assert request.content == "[Page 1] Q1"
    assert "[Page 1] Q1" in request.prompt
    assert request.file_search_store_name == "fileSearchStores/tlif0025"
    assert invoker.calls == 1


@pytest.mark.asyncio
async def test_timeout_becomes_provider_error():
    invoker = InferenceInvoker(SlowValidator(), NoDelayRateLimiter(), PromptBuilder(), timeout_seconds=0.05)

    with pytest.raises(ProviderError, match="timed out"):
        await invoker.invoke(REQUIREMENT, "", CONTEXT)


@pytest.mark.asyncio
async def test_unexpected_error_becomes_provider_error():
    invoker = InferenceInvoker(BrokenValidator(), NoDelayRateLimiter(), PromptBuilder())

    with pytest.raises(ProviderError, match="socket closed"):
        await invoker.invoke(REQUIREMENT, "", CONTEXT)


@pytest.mark.asyncio
async def test_rate_limiter_spaces_calls():
    sleep = SleepRecorder()
    invoker = InferenceInvoker(FakeValidator(), FixedIntervalRateLimiter(15.0, sleep=sleep), PromptBuilder())

    for _ in range(3):
        await invoker.invoke(REQUIREMENT, "", CONTEXT)

    assert sleep.delays == [15.0, 15.0]
