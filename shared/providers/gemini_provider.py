"""
Google Gemini Provider with File Search grounding.

Calls the Gemini REST API ``generateContent`` endpoint with the
``file_search`` tool so answers are grounded in a pre-indexed document
store. Grounding chunks are returned alongside the generated text.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from shared.providers.base_provider import (
    BaseProvider,
    ConnectionConfig,
    ProviderRequestError,
)
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


@dataclass
class GroundingChunk:
    """
    One retrieved passage the model grounded its answer on.

    Attributes:
        document_name: Display name of the indexed document
        page_numbers: Pages the passage came from (may be empty)
        content: Passage text
    """
    document_name: str
    page_numbers: List[int] = field(default_factory=list)
    content: str = ""


@dataclass
class GroundedGeneration:
    """
    Result from a grounded generation call.

    Attributes:
        text: Generated text (concatenated candidate parts)
        grounding_chunks: Retrieved passages backing the answer
        metadata: Usage metadata, finish reason, attempts
    """
    text: str
    grounding_chunks: List[GroundingChunk] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class GeminiProvider(BaseProvider):
    """
    Google Gemini provider for document-grounded generation.

    Example:
        >>> config = ConnectionConfig(
        ...     provider_name="google",
        ...     api_key=os.getenv("GEMINI_API_KEY"),
        ...     model="gemini-2.5-flash",
        ...     base_url="https://generativelanguage.googleapis.com/v1beta",
        ... )
        >>> provider = GeminiProvider(config)
        >>> result = await provider.generate_grounded(
        ...     prompt="Validate requirement 1.1 ...",
        ...     file_search_store_names=["fileSearchStores/unit-tlif0025"],
        ... )
    """

    def __init__(self, config: ConnectionConfig, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize Gemini provider.

        Args:
            config: Connection configuration
            client: Pre-built HTTP client (tests pass one with a mock transport)
        """
        self.client = client
        super().__init__(config)

    def _validate_config(self) -> None:
        """Validate Gemini provider configuration."""
        if not self.config.api_key:
            raise ValueError(
                "Gemini API key required. Set GEMINI_API_KEY environment variable"
            )

        if not self.config.model:
            raise ValueError("Model name is required")

        if not self.config.base_url:
            raise ValueError("Gemini base URL is required")

    def _initialize_client(self) -> None:
        """Initialize HTTP client."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                timeout=httpx.Timeout(timeout=self.config.timeout, connect=30.0),
            )

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()

    # ==========================================================================
    # GROUNDED GENERATION
    # ==========================================================================

    async def generate_grounded(
        self,
        prompt: str,
        file_search_store_names: List[str],
        system_instruction: Optional[str] = None,
        json_output: bool = True,
    ) -> GroundedGeneration:
        """
        Generate text grounded in one or more File Search stores.

        Args:
            prompt: User prompt
            file_search_store_names: Store resource names to search
            system_instruction: Optional system instruction
            json_output: Ask the model for an ``application/json`` response

        Returns:
            GroundedGeneration with text and grounding chunks

        Raises:
            ProviderRequestError: If the call fails after retries
        """
        payload = self._build_payload(
            prompt, file_search_store_names, system_instruction, json_output
        )

        response = await self._retry_operation(
            self._post_generate, "generate_grounded", payload
        )

        if not response.success:
            raise ProviderRequestError(
                f"Gemini generateContent failed: {response.error}",
                provider=self.config.provider_name,
                status_code=(response.metadata or {}).get("status_code"),
            )

        result: GroundedGeneration = response.data
        result.metadata["attempts"] = (response.metadata or {}).get("attempts", 1)
        return result

    def _build_payload(
        self,
        prompt: str,
        file_search_store_names: List[str],
        system_instruction: Optional[str],
        json_output: bool,
    ) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {"temperature": self.config.temperature}
        if self.config.max_output_tokens:
            generation_config["maxOutputTokens"] = self.config.max_output_tokens
        if json_output:
            generation_config["response_mime_type"] = "application/json"

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

        if file_search_store_names:
            payload["tools"] = [
                {"file_search": {"file_search_store_names": list(file_search_store_names)}}
            ]

        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        return payload

    async def _post_generate(self, payload: Dict[str, Any]) -> GroundedGeneration:
        url = f"{self.config.base_url}/models/{self.config.model}:generateContent"

        try:
            response = await self.client.post(
                url, params={"key": self.config.api_key}, json=payload
            )
        except httpx.TimeoutException as e:
            raise ProviderRequestError(
                f"Gemini request timed out: {e}", provider=self.config.provider_name
            )
        except httpx.HTTPError as e:
            raise ProviderRequestError(
                f"Failed to connect to Gemini: {e}", provider=self.config.provider_name
            )

        if response.status_code >= 400:
            raise ProviderRequestError(
                f"Gemini API error {response.status_code}: {response.text[:500]}",
                provider=self.config.provider_name,
                status_code=response.status_code,
                retryable=response.status_code in RETRYABLE_STATUS_CODES,
            )

        return self._parse_response(response.json())

    def _parse_response(self, body: Dict[str, Any]) -> GroundedGeneration:
        candidates = body.get("candidates") or []
        if not candidates:
            block_reason = (body.get("promptFeedback") or {}).get("blockReason", "unknown")
            raise ProviderRequestError(
                f"Gemini returned no candidates (block reason: {block_reason})",
                provider=self.config.provider_name,
                retryable=False,
            )

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)

        chunks = []
        grounding = candidate.get("groundingMetadata") or {}
        for chunk in grounding.get("groundingChunks") or []:
            source = chunk.get("fileSearchChunk") or chunk.get("retrievedContext")
            if not source:
                continue
            chunks.append(
                GroundingChunk(
                    document_name=source.get("documentName") or source.get("title") or "",
                    page_numbers=[int(p) for p in source.get("pageNumbers") or []],
                    content=source.get("content") or source.get("text") or "",
                )
            )

        self.logger.debug(
            f"Gemini response: {len(text)} chars, {len(chunks)} grounding chunks"
        )

        return GroundedGeneration(
            text=text,
            grounding_chunks=chunks,
            metadata={
                "finish_reason": candidate.get("finishReason"),
                "usage": body.get("usageMetadata", {}),
            },
        )
