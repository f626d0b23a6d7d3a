"""
Repository for stored prompt templates.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.models.prompt_template import PromptTemplate
from src.database.repositories.base import BaseRepository


class PromptRepository(BaseRepository[PromptTemplate]):
    """Lookup of active validation prompts."""

    def __init__(self, session: AsyncSession):
        super().__init__(PromptTemplate, session)

    async def find_validation_prompt(
        self,
        requirement_type: Optional[str],
        document_type: Optional[str],
    ) -> Optional[PromptTemplate]:
        """
        Most specific active default validation prompt.

        Lookup order: (requirement type, document type), then requirement
        type alone, then a general prompt with neither set.

        Args:
            requirement_type: Requirement type of the requirement being validated
            document_type: Document type of the validation request

        Returns:
            PromptTemplate or None
        """
        candidates = [
            (requirement_type, document_type),
            (requirement_type, None),
            (None, None),
        ]

        for req_type, doc_type in candidates:
            query_req = (
                PromptTemplate.requirement_type.is_(None)
                if req_type is None
                else PromptTemplate.requirement_type == req_type
            )

            query_doc = (
                PromptTemplate.document_type.is_(None)
                if doc_type is None
                else PromptTemplate.document_type == doc_type
            )

            result = await self.session.execute(
                select(PromptTemplate)
                .where(
                    PromptTemplate.prompt_type == "validation",
                    PromptTemplate.is_active.is_(True),
                    PromptTemplate.is_default.is_(True),
                    query_req,
                    query_doc,
                )
                .order_by(PromptTemplate.id)
                .limit(1)
            )
            prompt = result.scalar_one_or_none()
            if prompt is not None:
                return prompt

        return None
