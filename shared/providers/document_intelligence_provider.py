"""
Azure Document Intelligence provider.

Submits a document to the ``prebuilt-layout`` model and polls the
operation until the analysis result is available.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from shared.providers.base_provider import (
    BaseProvider,
    ConnectionConfig,
    ProviderRequestError,
)
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class DocumentIntelligenceProvider(BaseProvider):
    """
    Azure Document Intelligence layout analysis over REST.

    ``config.options`` understands:
        poll_interval_seconds: delay between status polls (default 2)
        max_wait_seconds: give up after this long (default 120)
    """

    def __init__(self, config: ConnectionConfig, client: Optional[httpx.AsyncClient] = None):
        self.client = client
        super().__init__(config)

    def _validate_config(self) -> None:
        if not self.config.api_key:
            raise ValueError(
                "Document Intelligence key required. Set AZURE_DOC_INTEL_KEY"
            )
        if not self.config.base_url:
            raise ValueError(
                "Document Intelligence endpoint required. Set AZURE_DOC_INTEL_ENDPOINT"
            )

    def _initialize_client(self) -> None:
        if self.client is None:
            self.client = httpx.AsyncClient(
                timeout=httpx.Timeout(timeout=self.config.timeout, connect=30.0),
            )
        self.poll_interval = float(self.config.options.get("poll_interval_seconds", 2))
        self.max_wait = float(self.config.options.get("max_wait_seconds", 120))

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()

    def _endpoint(self) -> str:
        return self.config.base_url.rstrip("/")

    def _headers(self, content_type: Optional[str] = None) -> Dict[str, str]:
        headers = {"Ocp-Apim-Subscription-Key": self.config.api_key}
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    async def analyze_layout(
        self,
        file_bytes: bytes,
        content_type: str = "application/pdf",
    ) -> Dict[str, Any]:
        """
        Analyze a document with the layout model.

        Args:
            file_bytes: Document content
            content_type: MIME type of the document

        Returns:
            The ``analyzeResult`` object (content, pages, paragraphs)

        Raises:
            ProviderRequestError: If submission, polling or analysis fails
        """
        response = await self._retry_operation(
            self._submit, "submit_analysis", file_bytes, content_type
        )
        if not response.success:
            raise ProviderRequestError(
                f"Document Intelligence submission failed: {response.error}",
                provider=self.config.provider_name,
                status_code=(response.metadata or {}).get("status_code"),
            )

        operation_url = response.data
        logger.debug(f"Analysis submitted, polling {operation_url}")

        return await self._poll(operation_url)

    async def _submit(self, file_bytes: bytes, content_type: str) -> str:
        url = (
            f"{self._endpoint()}/documentintelligence/documentModels/"
            f"{self.config.model}:analyze"
        )

        try:
            response = await self.client.post(
                url,
                params={"api-version": self.config.api_version},
                headers=self._headers(content_type),
                content=file_bytes,
            )
        except httpx.HTTPError as e:
            raise ProviderRequestError(
                f"Failed to reach Document Intelligence: {e}",
                provider=self.config.provider_name,
            )

        if response.status_code >= 400:
            raise ProviderRequestError(
                f"Document Intelligence error {response.status_code}: {response.text[:500]}",
                provider=self.config.provider_name,
                status_code=response.status_code,
                retryable=response.status_code == 429 or response.status_code >= 500,
            )

        operation_url = response.headers.get("Operation-Location")
        if not operation_url:
            raise ProviderRequestError(
                "Document Intelligence response has no Operation-Location header",
                provider=self.config.provider_name,
                retryable=False,
            )

        return operation_url

    async def _poll(self, operation_url: str) -> Dict[str, Any]:
        waited = 0.0

        while waited <= self.max_wait:
            try:
                response = await self.client.get(operation_url, headers=self._headers())
            except httpx.HTTPError as e:
                raise ProviderRequestError(
                    f"Polling Document Intelligence failed: {e}",
                    provider=self.config.provider_name,
                )

            if response.status_code >= 400:
                raise ProviderRequestError(
                    f"Document Intelligence poll error {response.status_code}",
                    provider=self.config.provider_name,
                    status_code=response.status_code,
                )

            body = response.json()
            status = body.get("status")

            if status == "succeeded":
                return body.get("analyzeResult") or {}

            if status == "failed":
                error = body.get("error") or {}
                raise ProviderRequestError(
                    f"Document analysis failed: {error.get('message', 'unknown error')}",
                    provider=self.config.provider_name,
                    retryable=False,
                )

            await asyncio.sleep(self.poll_interval)
            waited += self.poll_interval or 1

        raise ProviderRequestError(
            f"Document analysis did not finish within {self.max_wait:.0f}s",
            provider=self.config.provider_name,
        )
