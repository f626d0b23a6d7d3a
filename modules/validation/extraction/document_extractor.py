"""
Document extraction with a persistent cache.

A document whose ``extracted_content`` is already set is never sent to the
extraction backend again; its cached fragments are read back instead.
"""

from typing import List, Tuple

from modules.validation.core.exceptions import ExtractionError
from modules.validation.core.interfaces import (
    Corpus,
    Document,
    Fragment,
    IExtractionBackend,
)
from shared.storage.object_storage import IObjectStorage, ObjectStorageError
from shared.utils.logger import setup_logger, log_error
from src.database.connection import SessionFactory
from src.database.repositories.source_document_repository import SourceDocumentRepository

logger = setup_logger(__name__)


def document_header(file_name: str) -> str:
    return f"--- Document: {file_name} ---"


class DocumentExtractor:
    """
    Extracts documents through a backend and caches the output on the document row.
    """

    def __init__(
        self,
        backend: IExtractionBackend,
        storage: IObjectStorage,
        session_factory: SessionFactory,
    ):
        """
        Args:
            backend: Extraction backend of the active provider
            storage: Object storage holding the document bytes
            session_factory: Database session factory
        """
        self.backend = backend
        self.storage = storage
        self.session_factory = session_factory
        self.backend_calls = 0

    async def extract(self, document: Document) -> Tuple[str, List[Fragment]]:
        """
        Extract one document, using the cache when present.

        Args:
            document: Document to extract (updated in place on success)

        Returns:
            (text, fragments)

        Raises:
            ExtractionError: If download, extraction or caching fails
        """
        if document.extracted_content is not None:
            logger.debug(f"Using cached extraction for {document.file_name}")
            return document.extracted_content, await self._load_fragments(document)

        logger.info(f"Extracting {document.file_name} with {self.backend.name}")

        try:
            file_bytes = await self.storage.download(document.storage_path)
        except ObjectStorageError as e:
            raise ExtractionError(f"Cannot download {document.file_name}: {e}")

        self.backend_calls += 1
        try:
            output = await self.backend.extract_document(
                file_bytes, document.file_name, document.mime_type
            )
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Failed to extract {document.file_name}: {e}")

        fragments = [
            Fragment(
                text=fragment.text,
                page_number=fragment.page_number,
                ordinal=index,
                role=fragment.role,
                document_name=document.file_name,
            )
            for index, fragment in enumerate(output.fragments)
        ]

        try:
            async with self.session_factory() as session:
                await SourceDocumentRepository(session).save_extraction(
                    document.id,
                    output.text,
                    [
                        {
                            "ordinal": f.ordinal,
                            "page_number": f.page_number,
                            "role": f.role,
                            "text": f.text,
                        }
                        for f in fragments
                    ],
                )
        except Exception as e:
            raise ExtractionError(f"Failed to cache extraction of {document.file_name}: {e}")

        document.extracted_content = output.text
        logger.info(
            f"Extracted {document.file_name}: {len(output.text)} chars, "
            f"{len(fragments)} fragments"
        )
        return output.text, fragments

    async def _load_fragments(self, document: Document) -> List[Fragment]:
        try:
            async with self.session_factory() as session:
                rows = await SourceDocumentRepository(session).get_fragments(document.id)
        except Exception as e:
            raise ExtractionError(f"Failed to load cached fragments of {document.file_name}: {e}")

        return [
            Fragment(
                text=row.text,
                page_number=row.page_number,
                ordinal=row.ordinal,
                role=row.role,
                document_name=document.file_name,
            )
            for row in rows
        ]

    async def build_corpus(self, documents: List[Document]) -> Corpus:
        """
        Extract every document and combine the output.

        Documents that fail are logged and skipped.

        Args:
            documents: Documents of the validation request, in order

        Returns:
            Corpus with combined text and all fragments

        Raises:
            ExtractionError: If no document produced any text
        """
        sections = []
        fragments: List[Fragment] = []
        extracted = 0
        failed = 0

        for document in documents:
            try:
                text, doc_fragments = await self.extract(document)
            except ExtractionError as e:
                failed += 1
                log_error(logger, e, f"Skipping document {document.file_name}")
                continue

            extracted += 1
            if text.strip():
                sections.append(f"{document_header(document.file_name)}\n{text}")
            fragments.extend(doc_fragments)

        corpus = Corpus(
            text="\n\n".join(sections),
            fragments=fragments,
            documents_extracted=extracted,
            documents_failed=failed,
        )

        if corpus.is_empty:
            raise ExtractionError(
                f"No content could be extracted from {len(documents)} document(s)"
            )

        logger.info(
            f"Corpus built: {extracted} extracted, {failed} failed, "
            f"{len(corpus.text)} chars, {len(fragments)} fragments"
        )
        return corpus
