"""
Shared fixtures for the validation test suite.

Every test gets its own in-memory SQLite database (aiosqlite) with the full
schema created from the models, plus fakes for storage, providers and the
provider registry.
"""

import json
from typing import Dict, List, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import src.database.models  # noqa: F401
from modules.validation.config import ProviderConfig
from modules.validation.core.exceptions import ProviderError
from modules.validation.core.interfaces import (
    ExtractionOutput,
    Fragment,
    IExtractionBackend,
    InferenceRequest,
    IRequirementValidator,
    OrchestrationMode,
    RawResponse,
)
from modules.validation.core.registry import ProviderRegistry
from shared.storage.object_storage import IObjectStorage, ObjectStorageError
from src.database.connection import Base, session_scope
from src.database.models import (
    SourceDocument,
    UnitRequirement,
    ValidationRequest,
    ValidationSummary,
)


# ==============================================================================
# DATABASE
# ==============================================================================

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return session_scope(session_maker)


async def seed_request(
    session_factory,
    unit_code: str = "TLIF0025",
    category: str = "knowledge_evidence",
    requirement_count: int = 3,
    requirement_type: str = "knowledge_evidence",
    documents: Optional[List[Dict[str, str]]] = None,
    file_search_store_name: Optional[str] = None,
    unit_link: Optional[str] = None,
) -> int:
    """Insert a summary, a request, its documents and the unit's requirements."""
    if documents is None:
        documents = [{"file_name": "assessment.pdf", "storage_path": "requests/assessment.pdf"}]

    async with session_factory() as session:
        summary = ValidationSummary(
            unit_code=unit_code,
            unit_title="Apply fatigue management strategies",
            unit_link=unit_link,
            organization_code="RTO-1001",
        )
        session.add(summary)
        await session.flush()

        request = ValidationRequest(
            summary_id=summary.id,
            validation_category=category,
            document_type="unit",
            file_search_store_name=file_search_store_name,
            status="pending",
        )
        session.add(request)
        await session.flush()

        for doc in documents:
            session.add(
                SourceDocument(
                    validation_request_id=request.id,
                    file_name=doc["file_name"],
                    storage_path=doc["storage_path"],
                    mime_type="application/pdf",
                )
            )

        for n in range(1, requirement_count + 1):
            session.add(
                UnitRequirement(
                    unit_code=unit_code,
                    unit_link=unit_link,
                    requirement_type=requirement_type,
                    requirement_number=str(n),
                    requirement_text=f"Requirement {n}: explain fatigue management procedures part {n}",
                )
            )

        await session.flush()
        return request.id


# ==============================================================================
# FAKES
# ==============================================================================

class FakeStorage(IObjectStorage):
    """In-memory object storage."""

    def __init__(self, objects: Optional[Dict[str, bytes]] = None):
        self.objects = objects if objects is not None else {}
        self.downloads = 0

    async def download(self, path: str) -> bytes:
        self.downloads += 1
        if path not in self.objects:
            raise ObjectStorageError(f"Object not found: {path}")
        return self.objects[path]


class FakeExtractionBackend(IExtractionBackend):
    """Turns bytes into one fragment per line, all on page 1 onward."""

    name = "fake_extraction"

    def __init__(self):
        self.calls = 0
        self.closed = False

    async def extract_document(self, file_bytes: bytes, file_name: str, mime_type: str) -> ExtractionOutput:
        self.calls += 1
        lines = [line for line in file_bytes.decode("utf-8").splitlines() if line.strip()]
        return ExtractionOutput(
            text="\n".join(lines),
            fragments=[
                Fragment(text=line, page_number=index + 1, ordinal=index)
                for index, line in enumerate(lines)
            ],
            page_count=len(lines),
        )

    async def close(self) -> None:
        self.closed = True


def verdict_json(number: str, status: str = "Met") -> str:
    return json.dumps(
        {
            "requirement_number": number,
            "status": status,
            "reasoning": f"Question {number} covers the requirement",
            "mapped_content": f"Q{number} on page {number}",
            "citations": [{"document_name": "assessment.pdf", "page_numbers": [int(number)], "excerpt": "..."}],
            "smart_question": "Describe a fatigue risk control",
            "benchmark_answer": "Take regular breaks",
            "unmapped_content": "",
        }
    )


class FakeValidator(IRequirementValidator):
    """
    Answers every requirement with a JSON verdict.

    ``fail_on`` lists requirement numbers that raise ProviderError.
    ``responses`` overrides the raw text for specific requirement numbers.
    """

    name = "fake"

    def __init__(self, fail_on=(), responses: Optional[Dict[str, str]] = None, on_call=None):
        self.fail_on = set(fail_on)
        self.responses = responses or {}
        self.on_call = on_call
        self.requests: List[InferenceRequest] = []
        self.closed = False

    async def validate_requirement(self, request: InferenceRequest) -> RawResponse:
        self.requests.append(request)
        if self.on_call is not None:
            await self.on_call(request)

        number = request.requirement.number
        if number in self.fail_on:
            raise ProviderError(f"HTTP 503 on requirement {number}", provider=self.name, status_code=503)

        text = self.responses.get(number, verdict_json(number))
        return RawResponse(text=text, provider=self.name)

    async def close(self) -> None:
        self.closed = True


class FakeRegistry(ProviderRegistry):
    """Registry isolated from the real providers."""

    _REGISTRY = {}


class StaticResolver:
    """Resolver returning a fixed ProviderConfig."""

    def __init__(self, config: ProviderConfig):
        self.config = config

    def resolve(self, provider_override=None) -> ProviderConfig:
        return self.config


def fake_config(
    provider: str = "fake",
    mode: OrchestrationMode = OrchestrationMode.DIRECT,
    **overrides,
) -> ProviderConfig:
    values = dict(
        provider=provider,
        orchestration_mode=mode,
        call_delay_seconds=15.0,
        request_timeout_seconds=5.0,
    )
    values.update(overrides)
    return ProviderConfig(**values)


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


ASSESSMENT_TEXT = (
    "Assessment task booklet\n"
    "Question 1: Explain the fatigue management procedures used at your workplace.\n"
    "Question 2: Describe the warning signs of fatigue.\n"
    "Question 3: List the records kept under fatigue management procedures.\n"
)


@pytest.fixture
def storage():
    return FakeStorage({"requests/assessment.pdf": ASSESSMENT_TEXT.encode("utf-8")})


@pytest.fixture
def registry():
    FakeRegistry._REGISTRY.clear()
    yield FakeRegistry
    FakeRegistry._REGISTRY.clear()
