"""
Azure OpenAI chat-completion provider.

Wraps LangChain's ``AzureChatOpenAI`` and requests JSON-object responses.
"""

from typing import Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.runnables import Runnable
from langchain_openai import AzureChatOpenAI

from shared.providers.base_provider import (
    BaseProvider,
    ConnectionConfig,
    ProviderRequestError,
)
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class AzureOpenAIProvider(BaseProvider):
    """
    Azure OpenAI provider built on LangChain.

    ``config.model`` holds the deployment name, ``config.base_url`` the
    resource endpoint.

    Example:
        >>> provider = AzureOpenAIProvider(config)
        >>> text = await provider.complete_json(
        ...     system_prompt="You are an assessment validator.",
        ...     user_prompt="Validate requirement 1.1 ...",
        ... )
    """

    def __init__(self, config: ConnectionConfig, llm: Optional[Runnable] = None):
        """
        Initialize provider.

        Args:
            config: Connection configuration
            llm: Pre-built runnable (tests inject a fake chat model)
        """
        self.llm = llm
        super().__init__(config)

    def _validate_config(self) -> None:
        """Validate Azure OpenAI configuration."""
        if not self.config.api_key:
            raise ValueError("API key required for Azure OpenAI")

        if not self.config.base_url:
            raise ValueError("Azure OpenAI endpoint is required")

        if not self.config.model:
            raise ValueError("Deployment name is required")

        if not (0.0 <= self.config.temperature <= 1.0):
            raise ValueError(
                f"Temperature must be between 0.0 and 1.0, got {self.config.temperature}"
            )

    def _initialize_client(self) -> None:
        """Initialize LangChain chat model bound to JSON-object output."""
        if self.llm is None:
            self.llm = self._create_llm().bind(response_format={"type": "json_object"})

    def _create_llm(self) -> BaseChatModel:
        return AzureChatOpenAI(
            azure_endpoint=self.config.base_url,
            azure_deployment=self.config.model,
            api_key=self.config.api_key,
            api_version=self.config.api_version,
            temperature=self.config.temperature,
            max_tokens=self.config.max_output_tokens,
            timeout=self.config.timeout,
            max_retries=0,  # retries handled by _retry_operation
        )

    async def complete_json(self, system_prompt: str, user_prompt: str) -> str:
        """
        Run one chat completion and return the raw message content.

        Args:
            system_prompt: System message
            user_prompt: User message

        Returns:
            Message content (expected to be a JSON object string)

        Raises:
            ProviderRequestError: If the call fails after retries
        """
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]

        response = await self._retry_operation(
            self.llm.ainvoke, "complete_json", messages
        )

        if not response.success:
            raise ProviderRequestError(
                f"Azure OpenAI completion failed: {response.error}",
                provider=self.config.provider_name,
                status_code=(response.metadata or {}).get("status_code"),
            )

        content = response.data.content
        if isinstance(content, list):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )

        return content
