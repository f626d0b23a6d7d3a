"""
Registry of provider capabilities.

Each provider module registers a validator factory and, when the provider
needs explicit extraction, an extraction backend factory. The engine asks
the registry once per run, using the resolved ProviderConfig.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from modules.validation.core.exceptions import ConfigurationError
from modules.validation.core.interfaces import IExtractionBackend, IRequirementValidator
from shared.utils.logger import setup_logger

if TYPE_CHECKING:
    from modules.validation.config import ProviderConfig

logger = setup_logger(__name__)

ValidatorFactory = Callable[["ProviderConfig"], IRequirementValidator]
ExtractionFactory = Callable[["ProviderConfig"], IExtractionBackend]


@dataclass(frozen=True)
class ProviderCapabilities:
    """
    What a provider can do.

    Attributes:
        validator_factory: Builds the ValidateRequirement capability
        extraction_factory: Builds the ExtractDocument capability (None when
            the provider reads documents from a pre-indexed store)
        requires_document_store: Validation needs a file search store handle
    """
    validator_factory: ValidatorFactory
    extraction_factory: Optional[ExtractionFactory] = None
    requires_document_store: bool = False

    @property
    def needs_extraction(self) -> bool:
        return self.extraction_factory is not None


class ProviderRegistry:
    """
    Registry for provider capabilities.

    Providers self-register by calling register() at import time.
    """

    _REGISTRY: Dict[str, ProviderCapabilities] = {}

    @classmethod
    def register(
        cls,
        name: str,
        validator_factory: ValidatorFactory,
        extraction_factory: Optional[ExtractionFactory] = None,
        requires_document_store: bool = False,
    ) -> None:
        """
        Register a provider.

        Args:
            name: Canonical provider name (must match config/providers.yaml)
            validator_factory: Function taking ProviderConfig, returning IRequirementValidator
            extraction_factory: Function taking ProviderConfig, returning IExtractionBackend
            requires_document_store: Whether validation needs a file search store
        """
        if name in cls._REGISTRY:
            logger.warning(f"Provider '{name}' already registered, overwriting")

        cls._REGISTRY[name] = ProviderCapabilities(
            validator_factory=validator_factory,
            extraction_factory=extraction_factory,
            requires_document_store=requires_document_store,
        )
        logger.debug(f"Registered provider: {name}")

    @classmethod
    def get(cls, name: str) -> ProviderCapabilities:
        """
        Capabilities of a registered provider.

        Raises:
            ConfigurationError: If provider not registered
        """
        capabilities = cls._REGISTRY.get(name)
        if capabilities is None:
            raise ConfigurationError(
                f"Provider '{name}' not registered. "
                f"Available: {cls.list_providers()}"
            )
        return capabilities

    @classmethod
    def create_validator(cls, config: "ProviderConfig") -> IRequirementValidator:
        return cls.get(config.provider).validator_factory(config)

    @classmethod
    def create_extraction_backend(cls, config: "ProviderConfig") -> Optional[IExtractionBackend]:
        capabilities = cls.get(config.provider)
        if capabilities.extraction_factory is None:
            return None
        return capabilities.extraction_factory(config)

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._REGISTRY

    @classmethod
    def list_providers(cls) -> List[str]:
        return list(cls._REGISTRY.keys())

    @classmethod
    def unregister(cls, name: str) -> None:
        """Remove a provider (used by tests that register fakes)."""
        cls._REGISTRY.pop(name, None)
