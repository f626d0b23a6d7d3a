"""
API request models.

Pydantic models for API request validation.
"""

from typing import Optional

from pydantic import BaseModel, Field


class TriggerValidationRequest(BaseModel):
    """
    Request to start a validation run.
    """

    provider: Optional[str] = Field(
        default=None,
        description="Inference provider for this run (google or azure). Defaults to AI_PROVIDER.",
    )
    run_in_background: bool = Field(
        default=False,
        description="Return immediately and run validation as a background task",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "provider": "google",
                "run_in_background": False,
            }
        }
    }


class RevalidateRequirementRequest(BaseModel):
    """
    Request to validate one requirement again.
    """

    provider: Optional[str] = Field(
        default=None,
        description="Inference provider for this revalidation. Defaults to AI_PROVIDER.",
    )
