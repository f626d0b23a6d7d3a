"""
Core types, interfaces and registries of the validation module.
"""

from modules.validation.core.exceptions import (
    ValidationPipelineException,
    ConfigurationError,
    ValidationRequestNotFoundError,
    NoRequirementsError,
    ExtractionError,
    ProviderError,
    ParseError,
    StoreError,
    DelegationError,
    InvalidTransitionError,
)
from modules.validation.core.interfaces import (
    ValidationStatus,
    ResultStatus,
    ParseMode,
    OrchestrationMode,
    RequestContext,
    Document,
    Fragment,
    ExtractionOutput,
    Corpus,
    Requirement,
    Citation,
    RawResponse,
    RequirementValidation,
    ValidationResponse,
    ParseOutcome,
    InferenceRequest,
    RunSummary,
    IRequirementValidator,
    IExtractionBackend,
)
from modules.validation.core.registry import ProviderRegistry, ProviderCapabilities
from modules.validation.core.state import RunStateMachine, terminal_status_for

__all__ = [
    "ValidationPipelineException",
    "ConfigurationError",
    "ValidationRequestNotFoundError",
    "NoRequirementsError",
    "ExtractionError",
    "ProviderError",
    "ParseError",
    "StoreError",
    "DelegationError",
    "InvalidTransitionError",
    "ValidationStatus",
    "ResultStatus",
    "ParseMode",
    "OrchestrationMode",
    "RequestContext",
    "Document",
    "Fragment",
    "ExtractionOutput",
    "Corpus",
    "Requirement",
    "Citation",
    "RawResponse",
    "RequirementValidation",
    "ValidationResponse",
    "ParseOutcome",
    "InferenceRequest",
    "RunSummary",
    "IRequirementValidator",
    "IExtractionBackend",
    "ProviderRegistry",
    "ProviderCapabilities",
    "RunStateMachine",
    "terminal_status_for",
]
