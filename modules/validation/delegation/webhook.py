"""
Delegated orchestration through a workflow engine webhook.
"""

from typing import Any, Dict, List, Optional

import httpx

from modules.validation.core.exceptions import DelegationError
from modules.validation.core.interfaces import Document, RequestContext, Requirement
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


def build_payload(
    context: RequestContext,
    documents: List[Document],
    requirements: List[Requirement],
    run_id: str,
) -> Dict[str, Any]:
    """
    Payload posted to the workflow engine.

    Args:
        context: Validation request context
        documents: Documents attached to the request
        requirements: Fetched requirements
        run_id: Run identifier

    Returns:
        JSON-serializable payload
    """
    return {
        "validationRequestId": context.validation_request_id,
        "runId": run_id,
        "unitCode": context.unit_code,
        "unitLink": context.unit_link,
        "unitTitle": context.unit_title,
        "organizationCode": context.organization_code,
        "validationCategory": context.validation_category,
        "documentType": context.document_type,
        "fileSearchStoreName": context.file_search_store_name,
        "documents": [
            {"id": d.id, "fileName": d.file_name, "storagePath": d.storage_path}
            for d in documents
        ],
        "requirements": [
            {
                "id": r.id,
                "type": r.requirement_type,
                "number": r.number,
                "text": r.text,
                "elementText": r.element_text,
            }
            for r in requirements
        ],
        "requirementCount": len(requirements),
    }


class WebhookDispatcher:
    """Posts a validation job to the workflow engine. Fire and forget."""

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def dispatch(self, payload: Dict[str, Any]) -> None:
        """
        Post the payload.

        Raises:
            DelegationError: If the request fails or is rejected
        """
        client = self._client or httpx.AsyncClient(timeout=self.timeout_seconds)

        try:
            response = await client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            raise DelegationError(f"Webhook request failed: {e}")
        finally:
            if self._client is None:
                await client.aclose()

        if response.status_code >= 400:
            raise DelegationError(
                f"Webhook rejected payload: HTTP {response.status_code} {response.text[:300]}"
            )

        logger.info(
            f"Delegated validation request {payload.get('validationRequestId')} "
            f"({payload.get('requirementCount')} requirements)"
        )
