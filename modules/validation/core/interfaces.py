"""
Core interfaces for the validation module.

Result types shared by every pipeline component, plus the capability
interfaces providers implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# ==============================================================================
# ENUMS
# ==============================================================================

class ValidationStatus(str, Enum):
    """Validation request status"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class ResultStatus(str, Enum):
    """Per-requirement judgement"""
    COMPLIANT = "compliant"
    NON_COMPLIANT = "non_compliant"
    NEEDS_REVIEW = "needs_review"
    ERROR = "error"


class ParseMode(str, Enum):
    """How a provider response was turned into results"""
    PRIMARY = "primary"
    FALLBACK = "fallback"
    NONE = "none"


class OrchestrationMode(str, Enum):
    """Who drives the per-requirement loop"""
    DIRECT = "direct"
    DELEGATED = "delegated"


# ==============================================================================
# INPUT TYPES
# ==============================================================================

@dataclass
class RequestContext:
    """Everything the engine needs to know about one validation request."""
    validation_request_id: int
    unit_code: str
    validation_category: str
    document_type: str = "unit"
    unit_title: Optional[str] = None
    unit_link: Optional[str] = None
    organization_code: Optional[str] = None
    file_search_store_name: Optional[str] = None


@dataclass
class Document:
    """A stored source document. ``extracted_content`` is None until extracted."""
    id: int
    file_name: str
    storage_path: str
    mime_type: str = "application/pdf"
    extracted_content: Optional[str] = None


@dataclass
class Fragment:
    """A positioned piece of extracted text."""
    text: str
    page_number: Optional[int] = None
    ordinal: int = 0
    role: Optional[str] = None
    document_name: str = ""


@dataclass
class ExtractionOutput:
    """Output of an extraction backend for one document."""
    text: str
    fragments: List[Fragment] = field(default_factory=list)
    page_count: int = 0


@dataclass
class Corpus:
    """Combined extracted content of all documents in a request."""
    text: str
    fragments: List[Fragment] = field(default_factory=list)
    documents_extracted: int = 0
    documents_failed: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass
class Requirement:
    """One compliance rule for a unit."""
    id: int
    requirement_type: str
    number: str
    text: str
    element_text: Optional[str] = None


# ==============================================================================
# RESULT TYPES
# ==============================================================================

@dataclass
class Citation:
    """Evidence reference supporting a judgement."""
    document_name: str = ""
    page_numbers: List[int] = field(default_factory=list)
    excerpt: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "document_name": self.document_name,
            "page_numbers": self.page_numbers,
            "excerpt": self.excerpt,
        }


@dataclass
class RawResponse:
    """Unparsed provider output for one inference call."""
    text: str
    provider: str
    citations: List[Citation] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RequirementValidation:
    """Normalized judgement for one requirement."""
    requirement_id: Optional[int]
    requirement_number: str
    requirement_type: str
    requirement_text: str
    status: ResultStatus
    reasoning: str = ""
    mapped_content: str = ""
    citations: List[Citation] = field(default_factory=list)
    smart_questions: str = ""
    benchmark_answer: str = ""
    recommendations: str = ""


@dataclass
class ValidationResponse:
    """Parsed response: results for the requirements in one call."""
    validation_category: str
    unit_code: str
    results: List[RequirementValidation] = field(default_factory=list)


@dataclass
class ParseOutcome:
    """Parsed response tagged with the path that produced it."""
    response: ValidationResponse
    mode: ParseMode


@dataclass
class InferenceRequest:
    """Everything a validator needs for one requirement."""
    prompt: str
    content: str
    requirement: Requirement
    system_instruction: Optional[str] = None
    file_search_store_name: Optional[str] = None


@dataclass
class RunSummary:
    """Outcome of one engine run."""
    validation_request_id: int
    run_id: str
    status: ValidationStatus
    provider: str = ""
    orchestration_mode: str = OrchestrationMode.DIRECT.value
    total_requirements: int = 0
    successful_validations: int = 0
    failed_validations: int = 0
    fallback_parses: int = 0
    status_distribution: Dict[str, int] = field(default_factory=dict)
    elapsed_ms: int = 0
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dictionary returned to callers"""
        return {
            "validationRequestId": self.validation_request_id,
            "runId": self.run_id,
            "status": self.status.value,
            "provider": self.provider,
            "orchestrationMode": self.orchestration_mode,
            "totalRequirements": self.total_requirements,
            "successfulValidations": self.successful_validations,
            "failedValidations": self.failed_validations,
            "fallbackParses": self.fallback_parses,
            "statusDistribution": dict(self.status_distribution),
            "elapsedMs": self.elapsed_ms,
            "errorMessage": self.error_message,
        }


# ==============================================================================
# CAPABILITY INTERFACES
# ==============================================================================

class IRequirementValidator(ABC):
    """
    Validates one requirement against evidence.

    Implemented once per inference provider and registered with the
    ProviderRegistry.
    """

    name: str = ""

    @abstractmethod
    async def validate_requirement(self, request: InferenceRequest) -> RawResponse:
        """
        Run one inference call.

        Args:
            request: Prompt, selected content and requirement

        Returns:
            RawResponse with text and any grounding citations

        Raises:
            ProviderError: If the provider call fails
        """
        pass

    async def close(self) -> None:
        """Release provider resources."""
        return None


class IExtractionBackend(ABC):
    """Turns document bytes into text and positioned fragments."""

    name: str = ""

    @abstractmethod
    async def extract_document(
        self, file_bytes: bytes, file_name: str, mime_type: str
    ) -> ExtractionOutput:
        """
        Extract a document.

        Args:
            file_bytes: Document content
            file_name: Original file name
            mime_type: MIME type

        Returns:
            ExtractionOutput with text and fragments

        Raises:
            ExtractionError: If the backend cannot process the document
        """
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None
