"""
Database ORM models package.
"""

from src.database.models.validation_summary import ValidationSummary
from src.database.models.validation_request import ValidationRequest
from src.database.models.source_document import SourceDocument
from src.database.models.extraction_fragment import ExtractionFragment
from src.database.models.unit_requirement import UnitRequirement
from src.database.models.validation_result import ValidationResult
from src.database.models.prompt_template import PromptTemplate

__all__ = [
    "ValidationSummary",
    "ValidationRequest",
    "SourceDocument",
    "ExtractionFragment",
    "UnitRequirement",
    "ValidationResult",
    "PromptTemplate",
]
