"""
Repository for validation results.
"""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.database.models.validation_result import ValidationResult
from src.database.repositories.base import BaseRepository


class ValidationResultRepository(BaseRepository[ValidationResult]):
    """Append-only access to per-requirement results."""

    def __init__(self, session: AsyncSession):
        super().__init__(ValidationResult, session)

    async def list_for_request(
        self, request_id: int, run_id: Optional[str] = None
    ) -> List[ValidationResult]:
        """
        Results of a validation request, in write order.

        Args:
            request_id: Validation request ID
            run_id: Restrict to one run

        Returns:
            Result rows
        """
        criteria = [ValidationResult.validation_request_id == request_id]
        if run_id:
            criteria.append(ValidationResult.run_id == run_id)
        return await self.list_where(*criteria)
