"""
Base Provider Interface.

Abstract base class for all external AI service providers.
Enforces consistent interface across different provider implementations.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
import logging

logger = logging.getLogger(__name__)


@dataclass
class ConnectionConfig:
    """
    Connection parameters for one provider service.

    Attributes:
        provider_name: Name of the provider service (e.g., "google", "azure_openai")
        api_key: API key for authentication
        model: Model or deployment identifier
        base_url: Base URL / endpoint for the API
        api_version: API version string where the service requires one
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts for one operation
        retry_delay_seconds: Base delay for exponential backoff between attempts
        temperature: LLM temperature (0.0-1.0)
        max_output_tokens: Upper bound on generated tokens
        options: Additional provider-specific options
    """
    provider_name: str
    api_key: str
    model: str
    base_url: Optional[str] = None
    api_version: Optional[str] = None
    timeout: float = 120
    max_retries: int = 3
    retry_delay_seconds: float = 1.0
    temperature: float = 0.0
    max_output_tokens: Optional[int] = None
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ProviderResponse:
    """
    Standard response from provider operations.

    Attributes:
        success: Whether operation succeeded
        data: Response data (provider-specific)
        error: Error message if failed
        metadata: Additional metadata (attempts, status code, etc.)
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ProviderRequestError(Exception):
    """
    Raised by providers when a remote call fails.

    Attributes:
        provider: Provider name
        status_code: HTTP status code, if the failure came from a response
        retryable: Whether another attempt may succeed
    """

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.retryable = retryable


class BaseProvider(ABC):
    """
    Abstract base class for all providers.

    Provides common functionality:
    - Configuration validation
    - Retry logic with exponential backoff
    - Logging

    All providers (Gemini, Azure OpenAI, Azure Document Intelligence) inherit from this.
    """

    def __init__(self, config: ConnectionConfig):
        """
        Initialize provider with configuration.

        Args:
            config: Connection configuration
        """
        self.config = config
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self._validate_config()
        self._initialize_client()

        self.logger.info(
            f"Initialized {self.config.provider_name} provider "
            f"with model: {self.config.model}"
        )

    @abstractmethod
    def _validate_config(self) -> None:
        """
        Validate provider configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        pass

    @abstractmethod
    def _initialize_client(self) -> None:
        """Initialize provider-specific client."""
        pass

    async def close(self) -> None:
        """Release client resources. Providers without resources keep the default."""
        return None

    async def _retry_operation(
        self,
        operation,
        operation_name: str,
        *args,
        **kwargs
    ) -> ProviderResponse:
        """
        Execute operation with retry logic.

        Errors marked as non-retryable stop the loop immediately.

        Args:
            operation: Async callable to execute
            operation_name: Name of operation (for logging)
            *args: Positional arguments for operation
            **kwargs: Keyword arguments for operation

        Returns:
            ProviderResponse with result or error
        """
        last_error: Optional[Exception] = None
        attempts = max(1, self.config.max_retries)
        attempt = 0

        for attempt in range(attempts):
            try:
                self.logger.debug(
                    f"Executing {operation_name} (attempt {attempt + 1}/{attempts})"
                )

                result = await operation(*args, **kwargs)

                self.logger.debug(f"{operation_name} succeeded on attempt {attempt + 1}")

                return ProviderResponse(
                    success=True,
                    data=result,
                    metadata={"attempts": attempt + 1}
                )

            except ProviderRequestError as e:
                last_error = e
                self.logger.warning(
                    f"{operation_name} failed on attempt {attempt + 1}: {e}"
                )
                if not e.retryable:
                    break

            except Exception as e:
                last_error = e
                self.logger.warning(
                    f"{operation_name} failed on attempt {attempt + 1}: {e}"
                )

            # Don't wait after the last attempt
            if attempt < attempts - 1:
                wait_time = self.config.retry_delay_seconds * (2 ** attempt)
                self.logger.debug(f"Retrying in {wait_time}s...")
                await asyncio.sleep(wait_time)

        self.logger.error(
            f"{operation_name} failed after {attempt + 1} attempts: {last_error}"
        )

        return ProviderResponse(
            success=False,
            error=str(last_error),
            metadata={
                "attempts": attempt + 1,
                "status_code": getattr(last_error, "status_code", None),
            }
        )
