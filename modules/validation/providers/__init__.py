"""
Provider adapters.

Importing this package registers every provider with ProviderRegistry.
"""

from modules.validation.providers.google_file_search import GoogleFileSearchValidator
from modules.validation.providers.azure_openai import (
    AzureOpenAIValidator,
    DocumentIntelligenceBackend,
    layout_to_output,
)

__all__ = [
    "GoogleFileSearchValidator",
    "AzureOpenAIValidator",
    "DocumentIntelligenceBackend",
    "layout_to_output",
]
