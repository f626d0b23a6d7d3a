"""
Requirement fetching by unit and validation category.
"""

from typing import List, Optional

from modules.validation.core.exceptions import NoRequirementsError
from modules.validation.core.interfaces import Requirement
from shared.utils.logger import setup_logger
from src.database.connection import SessionFactory
from src.database.repositories.requirement_repository import RequirementRepository

logger = setup_logger(__name__)

# Fixed order used for full validation
REQUIREMENT_TYPES = [
    "knowledge_evidence",
    "performance_evidence",
    "foundation_skills",
    "elements_performance_criteria",
    "assessment_conditions",
]

CATEGORY_ALIASES = {
    "knowledge_evidence": "knowledge_evidence",
    "ke": "knowledge_evidence",
    "performance_evidence": "performance_evidence",
    "pe": "performance_evidence",
    "foundation_skills": "foundation_skills",
    "fs": "foundation_skills",
    "elements_criteria": "elements_performance_criteria",
    "elements_performance_criteria": "elements_performance_criteria",
    "epc": "elements_performance_criteria",
    "assessment_conditions": "assessment_conditions",
    "ac": "assessment_conditions",
    "full_validation": "full_validation",
    "assessment": "full_validation",
}


def requirement_types_for(category: str) -> List[str]:
    """
    Requirement types covered by a validation category.

    Args:
        category: Validation category or alias

    Returns:
        Requirement types in processing order

    Raises:
        ValueError: If the category is unknown
    """
    normalized = CATEGORY_ALIASES.get(category.strip().lower().replace(" ", "_").replace("-", "_"))
    if normalized is None:
        raise ValueError(f"Unknown validation category: {category}")
    if normalized == "full_validation":
        return list(REQUIREMENT_TYPES)
    return [normalized]


class RequirementFetcher:
    """Loads the ordered requirement list for a run."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def fetch(
        self,
        unit_code: str,
        category: str,
        unit_link: Optional[str] = None,
    ) -> List[Requirement]:
        """
        Fetch requirements for a unit and category.

        Args:
            unit_code: Unit code (e.g. TLIF0025)
            category: Validation category
            unit_link: Unit link to match on instead of the code

        Returns:
            Requirements, grouped by type in fixed order, by id within a type

        Raises:
            NoRequirementsError: If nothing matches (including unknown categories)
        """
        try:
            types = requirement_types_for(category)
        except ValueError as e:
            logger.warning(str(e))
            raise NoRequirementsError(unit_code, category)

        async with self.session_factory() as session:
            rows = await RequirementRepository(session).list_for_unit(
                unit_code, types, unit_link=unit_link
            )

        order = {t: i for i, t in enumerate(types)}
        rows.sort(key=lambda r: (order[r.requirement_type], r.id))

        requirements = [
            Requirement(
                id=row.id,
                requirement_type=row.requirement_type,
                number=row.requirement_number,
                text=row.requirement_text,
                element_text=row.element_text,
            )
            for row in rows
        ]

        if not requirements:
            raise NoRequirementsError(unit_code, category)

        logger.info(
            f"Fetched {len(requirements)} requirements for {unit_code} ({category})"
        )
        return requirements
