"""
Inference invocation with rate limiting and a per-call timeout.
"""

import asyncio
import time

from modules.validation.core.exceptions import ProviderError
from modules.validation.core.interfaces import (
    InferenceRequest,
    IRequirementValidator,
    RawResponse,
    RequestContext,
    Requirement,
)
from modules.validation.inference.prompt_builder import PromptBuilder
from modules.validation.inference.rate_limiter import RateLimiter
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class InferenceInvoker:
    """
    Calls the active provider's validator for one requirement at a time.

    Every call first takes a slot from the run's rate limiter and is then
    bounded by ``timeout_seconds``.
    """

    def __init__(
        self,
        validator: IRequirementValidator,
        rate_limiter: RateLimiter,
        prompt_builder: PromptBuilder,
        timeout_seconds: float = 180.0,
    ):
        self.validator = validator
        self.rate_limiter = rate_limiter
        self.prompt_builder = prompt_builder
        self.timeout_seconds = timeout_seconds
        self.calls = 0

    async def invoke(
        self,
        requirement: Requirement,
        content: str,
        context: RequestContext,
    ) -> RawResponse:
        """
        Validate one requirement through the provider.

        Args:
            requirement: Requirement being validated
            content: Relevant content selected for it
            context: Validation request context (document type, store handle)

        Returns:
            RawResponse

        Raises:
            ProviderError: On timeout or any provider failure
        """
        prompt = await self.prompt_builder.build(requirement, context, content)
        request = InferenceRequest(
            prompt=prompt.text,
            content=content,
            requirement=requirement,
            system_instruction=prompt.system_instruction,
            file_search_store_name=context.file_search_store_name,
        )

        await self.rate_limiter.acquire()

        self.calls += 1
        started = time.monotonic()
        logger.info(
            f"Invoking {self.validator.name} for requirement {requirement.number} "
            f"({len(content)} chars of content, {prompt.source} prompt)"
        )

        try:
            response = await asyncio.wait_for(
                self.validator.validate_requirement(request),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise ProviderError(
                f"Provider {self.validator.name} timed out after {self.timeout_seconds:g}s "
                f"on requirement {requirement.number}",
                provider=self.validator.name,
            )
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(
                f"Provider {self.validator.name} failed on requirement {requirement.number}: {e}",
                provider=self.validator.name,
            )

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Requirement {requirement.number}: {len(response.text)} chars in {elapsed_ms}ms"
        )
        return response
