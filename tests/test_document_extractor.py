"""Document extraction and its cache."""

import pytest

from conftest import ASSESSMENT_TEXT, FakeExtractionBackend, FakeStorage, seed_request
from modules.validation.core.exceptions import ExtractionError
from modules.validation.core.interfaces import Document
from modules.validation.extraction.document_extractor import DocumentExtractor
from src.database.repositories.source_document_repository import SourceDocumentRepository


async def load_documents(session_factory, request_id):
    async with session_factory() as session:
        rows = await SourceDocumentRepository(session).list_for_request(request_id)
    return [
        Document(
            id=row.id,
            file_name=row.file_name,
            storage_path=row.storage_path,
            extracted_content=row.extracted_content,
        )
        for row in rows
    ]


@pytest.mark.asyncio
async def test_extraction_is_cached_across_extractors(session_factory, storage):
    request_id = await seed_request(session_factory)
    backend = FakeExtractionBackend()

    first = DocumentExtractor(backend, storage, session_factory)
    corpus = await first.build_corpus(await load_documents(session_factory, request_id))

    assert backend.calls == 1
    assert corpus.text.startswith("--- Document: assessment.pdf ---\n")
    assert len(corpus.fragments) == 4
    assert corpus.fragments[1].page_number == 2
    assert corpus.fragments[1].document_name == "assessment.pdf"

    second = DocumentExtractor(backend, storage, session_factory)
    cached = await second.build_corpus(await load_documents(session_factory, request_id))

    assert backend.calls == 1
    assert second.backend_calls == 0
    assert cached.text == corpus.text
    assert [f.text for f in cached.fragments] == [f.text for f in corpus.fragments]


@pytest.mark.asyncio
async def test_failing_document_is_skipped(session_factory, storage):
    request_id = await seed_request(
        session_factory,
        documents=[
            {"file_name": "missing.pdf", "storage_path": "requests/missing.pdf"},
            {"file_name": "assessment.pdf", "storage_path": "requests/assessment.pdf"},
        ],
    )

    extractor = DocumentExtractor(FakeExtractionBackend(), storage, session_factory)
    corpus = await extractor.build_corpus(await load_documents(session_factory, request_id))

    assert corpus.documents_failed == 1
    assert corpus.documents_extracted == 1
    assert "Question 2" in corpus.text


@pytest.mark.asyncio
async def test_empty_corpus_raises(session_factory):
    request_id = await seed_request(session_factory)
    storage = FakeStorage({"requests/assessment.pdf": b"   \n"})

    extractor = DocumentExtractor(FakeExtractionBackend(), storage, session_factory)

    with pytest.raises(ExtractionError, match="No content"):
        await extractor.build_corpus(await load_documents(session_factory, request_id))


@pytest.mark.asyncio
async def test_extract_sets_content_on_document(session_factory, storage):
    request_id = await seed_request(session_factory)
    [document] = await load_documents(session_factory, request_id)

    text, fragments = await DocumentExtractor(FakeExtractionBackend(), storage, session_factory).extract(document)

    assert document.extracted_content == text
    assert text == ASSESSMENT_TEXT.strip()
    assert [f.ordinal for f in fragments] == [0, 1, 2, 3]
