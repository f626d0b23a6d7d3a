"""
Google provider: Gemini answering from a pre-indexed File Search store.

No extraction backend is registered; the store already holds the documents.
"""

from typing import Optional

from modules.validation.config import ProviderConfig
from modules.validation.core.exceptions import ProviderError
from modules.validation.core.interfaces import (
    Citation,
    InferenceRequest,
    IRequirementValidator,
    RawResponse,
)
from modules.validation.core.registry import ProviderRegistry
from shared.providers.base_provider import ProviderRequestError
from shared.providers.gemini_provider import GeminiProvider
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class GoogleFileSearchValidator(IRequirementValidator):
    """ValidateRequirement backed by Gemini File Search grounding."""

    name = "google"

    def __init__(self, provider: GeminiProvider):
        self.provider = provider

    async def validate_requirement(self, request: InferenceRequest) -> RawResponse:
        if not request.file_search_store_name:
            raise ProviderError(
                "Grounded validation needs a file search store name",
                provider=self.name,
            )

        try:
            result = await self.provider.generate_grounded(
                prompt=request.prompt,
                file_search_store_names=[request.file_search_store_name],
                system_instruction=request.system_instruction,
            )
        except ProviderRequestError as e:
            raise ProviderError(str(e), provider=self.name, status_code=e.status_code)

        citations = [
            Citation(
                document_name=chunk.document_name,
                page_numbers=chunk.page_numbers,
                excerpt=chunk.content[:500],
            )
            for chunk in result.grounding_chunks
        ]

        return RawResponse(
            text=result.text,
            provider=self.name,
            citations=citations,
            metadata=result.metadata,
        )

    async def close(self) -> None:
        await self.provider.close()


def _create_validator(config: ProviderConfig) -> IRequirementValidator:
    return GoogleFileSearchValidator(GeminiProvider(config.service("generation")))


ProviderRegistry.register(
    "google",
    validator_factory=_create_validator,
    requires_document_store=True,
)
