"""
Custom exceptions for the validation module.
"""

from typing import Optional


class ValidationPipelineException(Exception):
    """Base exception for validation module."""
    pass


class ConfigurationError(ValidationPipelineException):
    """Unrecognized provider or mode, or a missing credential. Never retried."""
    pass


class ValidationRequestNotFoundError(ValidationPipelineException):
    """Raised when the validation request does not exist."""

    def __init__(self, validation_request_id: int):
        super().__init__(f"Validation request {validation_request_id} not found")
        self.validation_request_id = validation_request_id


class RequirementNotFoundError(ValidationPipelineException):
    """Raised when a requirement does not exist or belongs to another unit."""

    def __init__(self, requirement_id: int, unit_code: str):
        super().__init__(f"Requirement {requirement_id} not found for unit {unit_code}")
        self.requirement_id = requirement_id
        self.unit_code = unit_code


class NoRequirementsError(ValidationPipelineException):
    """Raised when a unit has no requirements for the requested category."""

    def __init__(self, unit_code: str, category: str):
        super().__init__(
            f"No requirements found for unit {unit_code} (category: {category})"
        )
        self.unit_code = unit_code
        self.category = category


class ExtractionError(ValidationPipelineException):
    """Raised when a document cannot be downloaded or extracted."""
    pass


class ProviderError(ValidationPipelineException):
    """Raised when an inference call fails, times out, or returns non-success."""

    def __init__(self, message: str, provider: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ParseError(ValidationPipelineException):
    """Raised when a response cannot be parsed, even by the fallback path."""
    pass


class StoreError(ValidationPipelineException):
    """Raised when a result or progress write fails."""
    pass


class DelegationError(ValidationPipelineException):
    """Raised when the workflow webhook rejects or cannot receive a payload."""
    pass


class InvalidTransitionError(ValidationPipelineException):
    """Raised on a status change the run state machine does not allow."""
    pass
