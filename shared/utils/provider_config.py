"""
Provider catalogue loader.

Loads provider definitions from config/providers.yaml.
"""

import yaml
from functools import lru_cache
from typing import Dict, Any, Optional, List
from pathlib import Path

from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class ProviderCatalogue:
    """Provider catalogue loader and accessor."""

    def __init__(self, config_path: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        """
        Initialize provider catalogue.

        Args:
            config_path: Path to providers.yaml (defaults to config/providers.yaml)
            data: Pre-loaded catalogue dictionary (skips file loading)
        """
        if data is not None:
            self.config_path = None
            self._config = data
            return

        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "providers.yaml"

        self.config_path = Path(config_path)
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load provider catalogue from YAML file.

        Returns:
            Catalogue dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Provider configuration not found: {self.config_path}"
            )

        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}

            logger.info(f"Loaded provider configuration from: {self.config_path}")
            return config

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse provider config YAML: {e}")
            raise

    def get_default_provider(self) -> str:
        """Provider used when AI_PROVIDER is not set."""
        return self._config.get('active_provider', 'google')

    def get_default_orchestration_mode(self) -> str:
        """Orchestration mode used when ORCHESTRATION_MODE is not set."""
        return self._config.get('orchestration_mode', 'direct')

    def list_providers(self) -> List[str]:
        return list(self._config.get('providers', {}).keys())

    def get_provider_config(self, provider_name: str) -> Dict[str, Any]:
        """
        Get configuration for a specific provider.

        Args:
            provider_name: Name of provider (google, azure)

        Returns:
            Provider configuration dictionary

        Raises:
            ValueError: If provider not found in config
        """
        providers = self._config.get('providers', {})

        if provider_name not in providers:
            raise ValueError(
                f"Provider '{provider_name}' not found in config. "
                f"Available providers: {', '.join(providers.keys())}"
            )

        return providers[provider_name]

    def is_enabled(self, provider_name: str) -> bool:
        return bool(self.get_provider_config(provider_name).get('enabled', True))

    def get_services(self, provider_name: str) -> Dict[str, Dict[str, Any]]:
        """
        Get the service definitions (extraction, generation) of a provider.

        Args:
            provider_name: Name of provider

        Returns:
            Mapping of service name to its settings
        """
        return self.get_provider_config(provider_name).get('services', {})

    def get_retry_policy(self) -> Dict[str, Any]:
        """
        Get retry policy configuration.

        Returns:
            Retry policy dictionary
        """
        return self._config.get('retry_policy', {
            'max_retries': 2,
            'retry_delay_seconds': 2,
            'exponential_backoff': True,
        })


@lru_cache()
def get_provider_catalogue(config_path: Optional[str] = None) -> ProviderCatalogue:
    """
    Get cached provider catalogue instance.

    Returns:
        ProviderCatalogue singleton
    """
    return ProviderCatalogue(config_path)
