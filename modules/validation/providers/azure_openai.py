"""
Azure provider: Document Intelligence extraction plus Azure OpenAI validation.
"""

from typing import Any, Dict, List

from modules.validation.config import ProviderConfig
from modules.validation.core.exceptions import ExtractionError, ProviderError
from modules.validation.core.interfaces import (
    ExtractionOutput,
    Fragment,
    IExtractionBackend,
    InferenceRequest,
    IRequirementValidator,
    RawResponse,
)
from modules.validation.core.registry import ProviderRegistry
from shared.providers.azure_openai_provider import AzureOpenAIProvider
from shared.providers.base_provider import ProviderRequestError
from shared.providers.document_intelligence_provider import DocumentIntelligenceProvider
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

# Layout roles that carry no assessment content
SKIPPED_ROLES = {"pageHeader", "pageFooter", "pageNumber"}


def layout_to_output(analyze_result: Dict[str, Any]) -> ExtractionOutput:
    """
    Convert a layout ``analyzeResult`` into text and fragments.

    Args:
        analyze_result: Document Intelligence analysis result

    Returns:
        ExtractionOutput (one fragment per paragraph)
    """
    fragments: List[Fragment] = []

    for paragraph in analyze_result.get("paragraphs") or []:
        content = (paragraph.get("content") or "").strip()
        role = paragraph.get("role")
        if not content or role in SKIPPED_ROLES:
            continue

        regions = paragraph.get("boundingRegions") or []
        page_number = regions[0].get("pageNumber") if regions else None

        fragments.append(
            Fragment(
                text=content,
                page_number=page_number,
                ordinal=len(fragments),
                role=role,
            )
        )

    return ExtractionOutput(
        text=analyze_result.get("content") or "\n".join(f.text for f in fragments),
        fragments=fragments,
        page_count=len(analyze_result.get("pages") or []),
    )


class DocumentIntelligenceBackend(IExtractionBackend):
    """ExtractDocument backed by the prebuilt-layout model."""

    name = "azure_document_intelligence"

    def __init__(self, provider: DocumentIntelligenceProvider):
        self.provider = provider

    async def extract_document(self, file_bytes: bytes, file_name: str, mime_type: str) -> ExtractionOutput:
        try:
            result = await self.provider.analyze_layout(file_bytes, content_type=mime_type or "application/pdf")
        except ProviderRequestError as e:
            raise ExtractionError(f"Layout analysis of {file_name} failed: {e}")

        output = layout_to_output(result)
        logger.info(
            f"Layout analysis of {file_name}: {output.page_count} pages, "
            f"{len(output.fragments)} paragraphs"
        )
        return output

    async def close(self) -> None:
        await self.provider.close()


class AzureOpenAIValidator(IRequirementValidator):
    """ValidateRequirement backed by an Azure OpenAI chat deployment."""

    name = "azure"

    def __init__(self, provider: AzureOpenAIProvider):
        self.provider = provider

    async def validate_requirement(self, request: InferenceRequest) -> RawResponse:
        try:
            text = await self.provider.complete_json(
                system_prompt=request.system_instruction or "",
                user_prompt=request.prompt,
            )
        except ProviderRequestError as e:
            raise ProviderError(str(e), provider=self.name, status_code=e.status_code)

        return RawResponse(text=text, provider=self.name)

    async def close(self) -> None:
        await self.provider.close()


def _create_validator(config: ProviderConfig) -> IRequirementValidator:
    return AzureOpenAIValidator(AzureOpenAIProvider(config.service("generation")))


def _create_extraction_backend(config: ProviderConfig) -> IExtractionBackend:
    return DocumentIntelligenceBackend(DocumentIntelligenceProvider(config.service("extraction")))


ProviderRegistry.register(
    "azure",
    validator_factory=_create_validator,
    extraction_factory=_create_extraction_backend,
)
