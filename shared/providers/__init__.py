"""
Shared Provider Infrastructure.

Provider implementations for the external AI services used by the
validation pipeline. Modules use these without talking to the services
directly.

Key Providers:
- GeminiProvider: Gemini generation grounded in File Search stores
- AzureOpenAIProvider: Azure OpenAI chat completion (LangChain)
- DocumentIntelligenceProvider: Azure Document Intelligence layout analysis
- BaseProvider: Abstract base class for all providers
"""

from shared.providers.base_provider import (
    BaseProvider,
    ConnectionConfig,
    ProviderRequestError,
    ProviderResponse,
)
from shared.providers.gemini_provider import GeminiProvider, GroundedGeneration, GroundingChunk
from shared.providers.azure_openai_provider import AzureOpenAIProvider
from shared.providers.document_intelligence_provider import DocumentIntelligenceProvider

__all__ = [
    "BaseProvider",
    "ConnectionConfig",
    "ProviderRequestError",
    "ProviderResponse",
    "GeminiProvider",
    "GroundedGeneration",
    "GroundingChunk",
    "AzureOpenAIProvider",
    "DocumentIntelligenceProvider",
]
