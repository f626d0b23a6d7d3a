"""
Validation Module

Validates assessment documents against the requirements of a unit of
competency using interchangeable inference providers.
"""

__version__ = "1.0.0"

from modules.validation.core.interfaces import RunSummary, ValidationStatus
from modules.validation.config import ProviderConfig, ProviderConfigResolver

__all__ = [
    "RunSummary",
    "ValidationStatus",
    "ProviderConfig",
    "ProviderConfigResolver",
]
