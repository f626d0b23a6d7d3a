"""
Validation module configuration.

Resolves which inference provider and orchestration mode a run uses and
builds the frozen ProviderConfig handed to every component of that run.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from modules.validation.core.exceptions import ConfigurationError
from modules.validation.core.interfaces import OrchestrationMode
from shared.providers.base_provider import ConnectionConfig
from shared.utils.config import Settings, settings as default_settings
from shared.utils.logger import setup_logger
from shared.utils.provider_config import ProviderCatalogue, get_provider_catalogue

logger = setup_logger(__name__)

PROVIDER_ALIASES = {
    "google": "google",
    "gemini": "google",
    "azure": "azure",
    "azure_openai": "azure",
}

MODE_ALIASES = {
    "direct": OrchestrationMode.DIRECT,
    "delegated": OrchestrationMode.DELEGATED,
    "n8n": OrchestrationMode.DELEGATED,
}


@dataclass(frozen=True)
class ProviderConfig:
    """
    Provider configuration resolved once per run.

    Attributes:
        provider: Canonical provider name (google, azure)
        orchestration_mode: direct or delegated
        services: Connection settings per service (generation, extraction)
        webhook_url: Workflow engine webhook (delegated mode)
        call_delay_seconds: Minimum spacing between inference calls
        request_timeout_seconds: Upper bound on one inference call
        max_fragments: Relevant-content fragment cap
        fallback_chars: Relevant-content fallback length
    """
    provider: str
    orchestration_mode: OrchestrationMode
    services: Dict[str, ConnectionConfig] = field(default_factory=dict)
    webhook_url: Optional[str] = None
    webhook_timeout_seconds: float = 30.0
    call_delay_seconds: float = 15.0
    request_timeout_seconds: float = 180.0
    max_fragments: int = 30
    fallback_chars: int = 30000

    def service(self, name: str) -> ConnectionConfig:
        """
        Connection settings of one service.

        Raises:
            ConfigurationError: If the provider has no such service
        """
        if name not in self.services:
            raise ConfigurationError(
                f"Provider '{self.provider}' has no '{name}' service configured"
            )
        return self.services[name]

    def has_service(self, name: str) -> bool:
        return name in self.services

    def summary(self) -> Dict[str, Any]:
        """Sanitized view for logging."""
        return {
            "provider": self.provider,
            "orchestration_mode": self.orchestration_mode.value,
            "services": {
                name: {"model": svc.model, "base_url": svc.base_url}
                for name, svc in self.services.items()
            },
            "call_delay_seconds": self.call_delay_seconds,
            "request_timeout_seconds": self.request_timeout_seconds,
        }


class ProviderConfigResolver:
    """
    Builds ProviderConfig from application settings and the provider catalogue.

    Resolution order for the provider: explicit override, AI_PROVIDER,
    catalogue default. Orchestration mode: ORCHESTRATION_MODE, catalogue default.
    """

    def __init__(
        self,
        app_settings: Optional[Settings] = None,
        catalogue: Optional[ProviderCatalogue] = None,
    ):
        self.settings = app_settings or default_settings
        self._catalogue = catalogue

    @property
    def catalogue(self) -> ProviderCatalogue:
        if self._catalogue is None:
            try:
                self._catalogue = get_provider_catalogue(self.settings.PROVIDER_CONFIG_PATH)
            except (FileNotFoundError, ValueError) as e:
                raise ConfigurationError(f"Cannot load provider catalogue: {e}")
        return self._catalogue

    def resolve(self, provider_override: Optional[str] = None) -> ProviderConfig:
        """
        Resolve the provider configuration for one run.

        Args:
            provider_override: Provider name taking precedence over settings

        Returns:
            Frozen ProviderConfig

        Raises:
            ConfigurationError: Unknown provider or mode, disabled provider,
                or a missing credential
        """
        catalogue = self.catalogue

        raw_provider = provider_override or self.settings.AI_PROVIDER or catalogue.get_default_provider()
        provider = PROVIDER_ALIASES.get(str(raw_provider).strip().lower())
        if provider is None:
            raise ConfigurationError(
                f"Unrecognized AI provider '{raw_provider}'. "
                f"Supported: {', '.join(sorted(set(PROVIDER_ALIASES.values())))}"
            )

        raw_mode = self.settings.ORCHESTRATION_MODE or catalogue.get_default_orchestration_mode()
        mode = MODE_ALIASES.get(str(raw_mode).strip().lower())
        if mode is None:
            raise ConfigurationError(
                f"Unrecognized orchestration mode '{raw_mode}'. Supported: direct, delegated"
            )

        try:
            provider_def = catalogue.get_provider_config(provider)
        except ValueError as e:
            raise ConfigurationError(str(e))

        if not provider_def.get("enabled", True):
            raise ConfigurationError(f"Provider '{provider}' is disabled in config")

        retry_policy = catalogue.get_retry_policy()

        if mode == OrchestrationMode.DELEGATED:
            if not self.settings.N8N_WEBHOOK_URL:
                raise ConfigurationError(
                    "N8N_WEBHOOK_URL must be set for delegated orchestration"
                )
            services: Dict[str, ConnectionConfig] = {}
        else:
            services = {
                name: self._build_connection(provider, name, definition, retry_policy)
                for name, definition in (provider_def.get("services") or {}).items()
            }

        config = ProviderConfig(
            provider=provider,
            orchestration_mode=mode,
            services=services,
            webhook_url=self.settings.N8N_WEBHOOK_URL,
            webhook_timeout_seconds=float(self.settings.WEBHOOK_TIMEOUT_SECONDS),
            call_delay_seconds=float(self.settings.VALIDATION_CALL_DELAY_SECONDS),
            request_timeout_seconds=float(self.settings.PROVIDER_REQUEST_TIMEOUT_SECONDS),
            max_fragments=self.settings.RELEVANT_CONTENT_MAX_FRAGMENTS,
            fallback_chars=self.settings.RELEVANT_CONTENT_FALLBACK_CHARS,
        )

        logger.info(f"Resolved provider configuration: {config.summary()}")
        return config

    def _lookup(self, env_name: Optional[str]) -> Optional[str]:
        if not env_name:
            return None
        value = getattr(self.settings, env_name, None)
        return value or os.getenv(env_name)

    def _build_connection(
        self,
        provider: str,
        service: str,
        definition: Dict[str, Any],
        retry_policy: Dict[str, Any],
    ) -> ConnectionConfig:
        api_key = self._lookup(definition.get("api_key_env"))
        if not api_key:
            raise ConfigurationError(
                f"Missing credential for {provider}/{service}: "
                f"set {definition.get('api_key_env', 'an API key')}"
            )

        base_url = self._lookup(definition.get("base_url_env")) or definition.get("base_url")
        if not base_url:
            raise ConfigurationError(
                f"Missing endpoint for {provider}/{service}: "
                f"set {definition.get('base_url_env', 'base_url')}"
            )

        model = self._lookup(definition.get("model_env")) or definition.get("model")
        if not model:
            raise ConfigurationError(f"No model configured for {provider}/{service}")

        return ConnectionConfig(
            provider_name=f"{provider}_{service}",
            api_key=api_key,
            model=model,
            base_url=base_url,
            api_version=self._lookup(definition.get("api_version_env")) or definition.get("api_version"),
            timeout=float(definition.get("timeout", 120)),
            max_retries=int(definition.get("max_retries", retry_policy.get("max_retries", 2))),
            retry_delay_seconds=float(retry_policy.get("retry_delay_seconds", 2)),
            temperature=float(definition.get("temperature", 0.0)),
            max_output_tokens=definition.get("max_output_tokens"),
            options=dict(definition.get("options") or {}),
        )
