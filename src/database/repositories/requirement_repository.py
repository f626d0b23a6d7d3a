"""
Repository for unit requirements.
"""

from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.database.models.unit_requirement import UnitRequirement
from src.database.repositories.base import BaseRepository


class RequirementRepository(BaseRepository[UnitRequirement]):
    """Read access to requirement reference data."""

    def __init__(self, session: AsyncSession):
        super().__init__(UnitRequirement, session)

    async def list_for_unit(
        self,
        unit_code: str,
        requirement_types: Sequence[str],
        unit_link: Optional[str] = None,
    ) -> List[UnitRequirement]:
        """
        Requirements of a unit for the given types, ordered by id.

        Args:
            unit_code: Unit code (used when no link is given)
            requirement_types: Requirement types to include
            unit_link: Unit link to match instead of the code

        Returns:
            Matching requirement rows
        """
        unit_filter = (
            UnitRequirement.unit_link == unit_link
            if unit_link
            else UnitRequirement.unit_code == unit_code
        )
        return await self.list_where(
            unit_filter,
            UnitRequirement.requirement_type.in_(list(requirement_types)),
        )
