"""
Repository for source documents and their cached extraction fragments.
"""

from datetime import datetime, timezone
from typing import List, Sequence

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.models.extraction_fragment import ExtractionFragment
from src.database.models.source_document import SourceDocument
from src.database.repositories.base import BaseRepository
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class SourceDocumentRepository(BaseRepository[SourceDocument]):
    """Repository for documents attached to validation requests."""

    def __init__(self, session: AsyncSession):
        super().__init__(SourceDocument, session)

    async def list_for_request(self, request_id: int) -> List[SourceDocument]:
        """Documents of a validation request, in upload order."""
        return await self.list_where(SourceDocument.validation_request_id == request_id)

    async def get_fragments(self, document_id: int) -> List[ExtractionFragment]:
        """Cached fragments of a document, in document order."""
        fragments = BaseRepository(ExtractionFragment, self.session)
        return await fragments.list_where(
            ExtractionFragment.document_id == document_id,
            order_by=ExtractionFragment.ordinal,
        )

    async def save_extraction(
        self,
        document_id: int,
        text: str,
        fragments: Sequence[dict],
    ) -> None:
        """
        Cache extraction output for a document.

        Existing fragments are replaced; concurrent writers race and the
        last one wins.

        Args:
            document_id: Document ID
            text: Full extracted text
            fragments: Fragment rows (ordinal, page_number, role, text)
        """
        await self.update(
            document_id,
            extracted_content=text,
            extracted_at=datetime.now(timezone.utc),
        )

        await self.session.execute(
            delete(ExtractionFragment).where(ExtractionFragment.document_id == document_id)
        )
        self.session.add_all(
            ExtractionFragment(document_id=document_id, **fragment) for fragment in fragments
        )
        await self.session.flush()

        logger.debug(f"Cached extraction for document {document_id}: {len(fragments)} fragments")
