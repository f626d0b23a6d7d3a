"""Provider adapters over mocked transports."""

import json

import httpx
import pytest
from langchain_core.messages import AIMessage

from modules.validation.core.exceptions import ExtractionError, ProviderError
from modules.validation.core.interfaces import InferenceRequest, Requirement
from modules.validation.providers.azure_openai import (
    AzureOpenAIValidator,
    DocumentIntelligenceBackend,
    layout_to_output,
)
from modules.validation.providers.google_file_search import GoogleFileSearchValidator
from shared.providers.azure_openai_provider import AzureOpenAIProvider
from shared.providers.base_provider import ConnectionConfig, ProviderRequestError
from shared.providers.document_intelligence_provider import DocumentIntelligenceProvider
from shared.providers.gemini_provider import GeminiProvider

REQUIREMENT = Requirement(id=1, requirement_type="knowledge_evidence", number="1", text="Fatigue causes")

GEMINI_CONFIG = ConnectionConfig(
    provider_name="google_generation",
    api_key="gem-key",
    model="gemini-2.5-flash",
    base_url="https://generativelanguage.googleapis.com/v1beta",
    max_retries=2,
    retry_delay_seconds=0,
    max_output_tokens=8192,
)

DOC_INTEL_CONFIG = ConnectionConfig(
    provider_name="azure_extraction",
    api_key="di-key",
    model="prebuilt-layout",
    base_url="https://di.example.com/",
    api_version="2024-11-30",
    max_retries=2,
    retry_delay_seconds=0,
    options={"poll_interval_seconds": 0, "max_wait_seconds": 5},
)

GEMINI_BODY = {
    "candidates": [
        {
            "content": {"parts": [{"text": '{"status": '}, {"text": '"Met"}'}]},
            "finishReason": "STOP",
            "groundingMetadata": {
                "groundingChunks": [
                    {
                        "retrievedContext": {
                            "title": "assessment.pdf",
                            "text": "Question 4 asks about fatigue causes",
                        }
                    },
                    {"web": {"uri": "https://ignored.example.com"}},
                ]
            },
        }
    ],
    "usageMetadata": {"totalTokenCount": 812},
}

LAYOUT_RESULT = {
    "content": "Fatigue booklet\nQuestion 1",
    "pages": [{"pageNumber": 1}, {"pageNumber": 2}],
    "paragraphs": [
        {"content": "Company header", "role": "pageHeader", "boundingRegions": [{"pageNumber": 1}]},
        {"content": "Fatigue booklet", "role": "title", "boundingRegions": [{"pageNumber": 1}]},
        {"content": "Question 1", "boundingRegions": [{"pageNumber": 2}]},
        {"content": "3", "role": "pageNumber", "boundingRegions": [{"pageNumber": 2}]},
    ],
}


def inference_request(store="fileSearchStores/tlif0025"):
    return InferenceRequest(
        prompt="Validate requirement 1",
        content="",
        requirement=REQUIREMENT,
        system_instruction="Answer in JSON",
        file_search_store_name=store,
    )


# ==============================================================================
# GOOGLE
# ==============================================================================

@pytest.mark.asyncio
async def test_gemini_grounded_generation_request_and_citations():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=GEMINI_BODY)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    validator = GoogleFileSearchValidator(GeminiProvider(GEMINI_CONFIG, client=client))

    response = await validator.validate_requirement(inference_request())
    await validator.close()

    assert response.text == '{"status": "Met"}'
    assert response.provider == "google"
    assert len(response.citations) == 1
    assert response.citations[0].document_name == "assessment.pdf"
    assert response.citations[0].excerpt == "Question 4 asks about fatigue causes"
    assert response.metadata["attempts"] == 1

    [request] = seen
    assert request.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert request.url.params["key"] == "gem-key"
    payload = json.loads(request.content)
    assert payload["tools"] == [
        {"file_search": {"file_search_store_names": ["fileSearchStores/tlif0025"]}}
    ]
    assert payload["systemInstruction"] == {"parts": [{"text": "Answer in JSON"}]}
    assert payload["generationConfig"]["response_mime_type"] == "application/json"
    assert payload["generationConfig"]["maxOutputTokens"] == 8192


@pytest.mark.asyncio
async def test_gemini_retries_retryable_status():
    responses = [httpx.Response(503, text="overloaded"), httpx.Response(200, json=GEMINI_BODY)]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    provider = GeminiProvider(GEMINI_CONFIG, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    result = await provider.generate_grounded("prompt", ["fileSearchStores/tlif0025"])

    assert result.metadata["attempts"] == 2
    assert responses == []


@pytest.mark.asyncio
async def test_gemini_client_error_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, text="bad request")

    validator = GoogleFileSearchValidator(
        GeminiProvider(GEMINI_CONFIG, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    )

    with pytest.raises(ProviderError) as exc_info:
        await validator.validate_requirement(inference_request())

    assert exc_info.value.status_code == 400
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_gemini_requires_store_name():
    validator = GoogleFileSearchValidator(
        GeminiProvider(GEMINI_CONFIG, client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: None)))
    )

    with pytest.raises(ProviderError, match="file search store"):
        await validator.validate_requirement(inference_request(store=None))


@pytest.mark.asyncio
async def test_gemini_without_candidates():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    provider = GeminiProvider(GEMINI_CONFIG, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    with pytest.raises(ProviderRequestError, match="SAFETY"):
        await provider.generate_grounded("prompt", ["fileSearchStores/tlif0025"])


def test_gemini_requires_api_key():
    config = ConnectionConfig(provider_name="google_generation", api_key="", model="m", base_url="https://x")
    with pytest.raises(ValueError):
        GeminiProvider(config)


# ==============================================================================
# AZURE
# ==============================================================================

def test_layout_to_output_skips_page_furniture():
    output = layout_to_output(LAYOUT_RESULT)

    assert output.text == "Fatigue booklet\nQuestion 1"
    assert output.page_count == 2
    assert [(f.text, f.page_number, f.role) for f in output.fragments] == [
        ("Fatigue booklet", 1, "title"),
        ("Question 1", 2, None),
    ]
    assert [f.ordinal for f in output.fragments] == [0, 1]


@pytest.mark.asyncio
async def test_document_intelligence_submits_and_polls():
    polls = [{"status": "running"}, {"status": "succeeded", "analyzeResult": LAYOUT_RESULT}]
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "POST":
            return httpx.Response(
                202, headers={"Operation-Location": "https://di.example.com/operations/abc"}
            )
        return httpx.Response(200, json=polls.pop(0))

    backend = DocumentIntelligenceBackend(
        DocumentIntelligenceProvider(
            DOC_INTEL_CONFIG, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
    )

    output = await backend.extract_document(b"%PDF-1.7", "booklet.pdf", "application/pdf")
    await backend.close()

    assert len(output.fragments) == 2
    submit = seen[0]
    assert submit.url.path == "/documentintelligence/documentModels/prebuilt-layout:analyze"
    assert submit.url.params["api-version"] == "2024-11-30"
    assert submit.headers["Ocp-Apim-Subscription-Key"] == "di-key"
    assert submit.headers["Content-Type"] == "application/pdf"
    assert submit.content == b"%PDF-1.7"
    assert len(seen) == 3


@pytest.mark.asyncio
async def test_document_intelligence_failed_analysis():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(202, headers={"Operation-Location": "https://di.example.com/operations/abc"})
        return httpx.Response(200, json={"status": "failed", "error": {"message": "corrupt file"}})

    backend = DocumentIntelligenceBackend(
        DocumentIntelligenceProvider(
            DOC_INTEL_CONFIG, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
    )

    with pytest.raises(ExtractionError, match="corrupt file"):
        await backend.extract_document(b"%PDF", "booklet.pdf", "application/pdf")


@pytest.mark.asyncio
async def test_document_intelligence_missing_operation_location():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(202)

    provider = DocumentIntelligenceProvider(
        DOC_INTEL_CONFIG, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )

    with pytest.raises(ProviderRequestError, match="Operation-Location"):
        await provider.analyze_layout(b"%PDF")


class FakeChatModel:
    """Stands in for the bound AzureChatOpenAI runnable."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.messages = []

    async def ainvoke(self, messages):
        self.messages.append(messages)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return AIMessage(content=reply)


AZURE_OPENAI_CONFIG = ConnectionConfig(
    provider_name="azure_generation",
    api_key="oai-key",
    model="gpt-4o",
    base_url="https://oai.example.com",
    api_version="2024-08-01-preview",
    max_retries=2,
    retry_delay_seconds=0,
)


@pytest.mark.asyncio
async def test_azure_openai_validator_returns_message_content():
    llm = FakeChatModel(['{"status": "Met"}'])
    validator = AzureOpenAIValidator(AzureOpenAIProvider(AZURE_OPENAI_CONFIG, llm=llm))

    response = await validator.validate_requirement(inference_request(store=None))

    assert response.text == '{"status": "Met"}'
    assert response.provider == "azure"
    [messages] = llm.messages
    assert messages[0].content == "Answer in JSON"
    assert messages[1].content == "Validate requirement 1"


@pytest.mark.asyncio
async def test_azure_openai_retries_then_fails():
    llm = FakeChatModel([RuntimeError("rate limited"), RuntimeError("rate limited")])
    validator = AzureOpenAIValidator(AzureOpenAIProvider(AZURE_OPENAI_CONFIG, llm=llm))

    with pytest.raises(ProviderError, match="rate limited"):
        await validator.validate_requirement(inference_request(store=None))

    assert len(llm.messages) == 2
