"""
Repository for validation requests and their summaries.
"""

from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.models.validation_request import ValidationRequest
from src.database.models.validation_summary import ValidationSummary
from src.database.repositories.base import BaseRepository
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class ValidationRequestRepository(BaseRepository[ValidationRequest]):
    """Repository for managing validation requests."""

    def __init__(self, session: AsyncSession):
        super().__init__(ValidationRequest, session)

    async def get_with_summary(
        self, request_id: int
    ) -> Optional[Tuple[ValidationRequest, ValidationSummary]]:
        """
        Load a validation request together with its summary.

        Args:
            request_id: Validation request ID

        Returns:
            (request, summary) or None when the request does not exist
        """
        result = await self.session.execute(
            select(ValidationRequest, ValidationSummary)
            .join(ValidationSummary, ValidationRequest.summary_id == ValidationSummary.id)
            .where(ValidationRequest.id == request_id)
        )
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def update_progress(self, request_id: int, count: int, total: int, progress: float) -> int:
        """
        Write progress counters.

        Args:
            request_id: Validation request ID
            count: Requirements processed so far
            total: Requirements in the run
            progress: Percentage complete

        Returns:
            Number of rows updated
        """
        return await self.update(
            request_id,
            validation_count=count,
            validation_total=total,
            validation_progress=round(progress, 2),
        )
