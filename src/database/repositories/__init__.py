"""
Database repositories for data access.
"""

from .base import BaseRepository
from .validation_request_repository import ValidationRequestRepository
from .source_document_repository import SourceDocumentRepository
from .requirement_repository import RequirementRepository
from .validation_result_repository import ValidationResultRepository
from .prompt_repository import PromptRepository

__all__ = [
    "BaseRepository",
    "ValidationRequestRepository",
    "SourceDocumentRepository",
    "RequirementRepository",
    "ValidationResultRepository",
    "PromptRepository",
]
