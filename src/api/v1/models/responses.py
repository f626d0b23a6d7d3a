"""
API response models.

Pydantic models for API responses.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """
    Standard error response.
    """

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(default=None, description="Detailed error information")


class RunSummaryResponse(BaseModel):
    """
    Outcome of a validation run (camelCase, as returned by the engine).
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "validationRequestId": 42,
                "runId": "5f0c7a52-8f0e-4b0f-9a53-0f0b3f3d2a10",
                "status": "completed",
                "provider": "google",
                "orchestrationMode": "direct",
                "totalRequirements": 3,
                "successfulValidations": 3,
                "failedValidations": 0,
                "fallbackParses": 0,
                "statusDistribution": {"compliant": 2, "needs_review": 1},
                "elapsedMs": 48211,
                "errorMessage": None,
            }
        }
    )

    validationRequestId: int
    runId: str
    status: str
    provider: str
    orchestrationMode: str
    totalRequirements: int
    successfulValidations: int
    failedValidations: int
    fallbackParses: int
    statusDistribution: Dict[str, int] = Field(default_factory=dict)
    elapsedMs: int
    errorMessage: Optional[str] = None


class TriggerAcceptedResponse(BaseModel):
    """
    Response for a validation run started in the background.
    """

    validation_request_id: int
    status: str = Field(default="accepted")
    message: str = Field(default="Validation started")


class ValidationStatusResponse(BaseModel):
    """
    Status and progress of a validation request.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    validation_category: str
    document_type: str
    validation_count: int
    validation_total: int
    validation_progress: float
    provider: Optional[str] = None
    orchestration_mode: Optional[str] = None
    last_run_id: Optional[str] = None
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ValidationResultItem(BaseModel):
    """
    One per-requirement result row.
    """

    id: int
    run_id: str
    requirement_id: Optional[int] = None
    requirement_type: Optional[str] = None
    requirement_number: Optional[str] = None
    requirement_text: Optional[str] = None
    status: str
    reasoning: Optional[str] = None
    mapped_content: Optional[str] = None
    citations: List[Dict[str, Any]] = Field(default_factory=list)
    smart_questions: Optional[str] = None
    benchmark_answer: Optional[str] = None
    recommendations: Optional[str] = None
    parse_mode: str
    error_message: Optional[str] = None


class ValidationResultsResponse(BaseModel):
    """
    Results of a validation request.
    """

    validation_request_id: int
    run_id: Optional[str] = None
    total: int
    results: List[ValidationResultItem] = Field(default_factory=list)
