"""
Validation Engine - Main orchestrator.

Drives one validation request from pending to a terminal status.
"""

import time
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple, Type

from modules.validation import providers  # noqa: F401  (registers providers)
from modules.validation.config import ProviderConfig, ProviderConfigResolver
from modules.validation.core.exceptions import (
    ConfigurationError,
    DelegationError,
    ExtractionError,
    NoRequirementsError,
    ParseError,
    ProviderError,
    RequirementNotFoundError,
    StoreError,
    ValidationRequestNotFoundError,
)
from modules.validation.core.interfaces import (
    Corpus,
    Document,
    IExtractionBackend,
    IRequirementValidator,
    OrchestrationMode,
    ParseMode,
    RequestContext,
    Requirement,
    ResultStatus,
    RunSummary,
    ValidationStatus,
)
from modules.validation.core.registry import ProviderRegistry
from modules.validation.core.state import RunStateMachine, terminal_status_for
from modules.validation.delegation.webhook import WebhookDispatcher, build_payload
from modules.validation.extraction.document_extractor import DocumentExtractor
from modules.validation.inference.invoker import InferenceInvoker
from modules.validation.inference.prompt_builder import PromptBuilder
from modules.validation.inference.rate_limiter import FixedIntervalRateLimiter, RateLimiter
from modules.validation.parsing.response_parser import ResponseParser
from modules.validation.requirements.fetcher import RequirementFetcher
from modules.validation.retrieval.content_selector import ContentSelector
from modules.validation.storage.result_store import ResultStore
from shared.storage.object_storage import IObjectStorage, get_object_storage
from shared.utils.logger import log_error, log_run_banner, setup_logger
from src.database.connection import SessionFactory, get_session
from src.database.repositories.requirement_repository import RequirementRepository
from src.database.repositories.source_document_repository import SourceDocumentRepository
from src.database.repositories.validation_request_repository import ValidationRequestRepository

logger = setup_logger(__name__)

RateLimiterFactory = Callable[[ProviderConfig], RateLimiter]


def _default_rate_limiter(config: ProviderConfig) -> RateLimiter:
    return FixedIntervalRateLimiter(config.call_delay_seconds)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _Run:
    """Mutable state of one engine run."""

    def __init__(
        self,
        run_id: str,
        context: RequestContext,
        config: ProviderConfig,
        record_status: bool = True,
    ):
        self.run_id = run_id
        self.context = context
        self.config = config
        # Revalidation appends results without touching the request's status
        self.record_status = record_status
        self.state = RunStateMachine()
        self.successes = 0
        self.failures = 0
        self.fallback_parses = 0
        self.total = 0
        self.distribution: Counter = Counter()
        self.error_message: Optional[str] = None


class ValidationEngine:
    """
    Main validation engine.

    Orchestrates the pipeline for one validation request:
    1. Resolve provider configuration
    2. Load the request and its documents
    3. Fetch requirements
    4. Extract documents (cached) or check the document store handle
    5. For each requirement: select content, invoke, parse, store, advance progress
    6. Record the terminal status

    In delegated mode the engine stops after step 3 and hands the job to the
    workflow engine webhook.
    """

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        storage: Optional[IObjectStorage] = None,
        resolver: Optional[ProviderConfigResolver] = None,
        registry: Type[ProviderRegistry] = ProviderRegistry,
        rate_limiter_factory: Optional[RateLimiterFactory] = None,
        webhook_client=None,
    ):
        """
        Initialize validation engine.

        Args:
            session_factory: Database session factory (defaults to get_session)
            storage: Object storage for document bytes (defaults to STORAGE_BACKEND)
            resolver: Provider configuration resolver
            registry: Provider registry to build capabilities from
            rate_limiter_factory: Builds the per-run rate limiter
            webhook_client: httpx.AsyncClient used for delegated dispatch
        """
        self.session_factory = session_factory or get_session
        self._storage = storage
        self.resolver = resolver or ProviderConfigResolver()
        self.registry = registry
        self.rate_limiter_factory = rate_limiter_factory or _default_rate_limiter
        self.webhook_client = webhook_client

    @property
    def storage(self) -> IObjectStorage:
        if self._storage is None:
            self._storage = get_object_storage()
        return self._storage

    async def run(
        self,
        validation_request_id: int,
        provider_override: Optional[str] = None,
    ) -> RunSummary:
        """
        Run validation for one request.

        Args:
            validation_request_id: Validation request to process
            provider_override: Provider to use instead of the configured one

        Returns:
            RunSummary (always, once the request has been found)

        Raises:
            ConfigurationError: If the provider configuration is invalid
            ValidationRequestNotFoundError: If the request does not exist
        """
        start_time = time.monotonic()
        run_id = str(uuid.uuid4())

        # 1. Resolve provider configuration (fatal, before any request I/O)
        config = self.resolver.resolve(provider_override)

        # 2. Load request context
        context, documents = await self._load_request(validation_request_id)

        run = _Run(run_id, context, config)
        log_run_banner(
            logger,
            f"Validation run {run_id} started",
            request=validation_request_id,
            unit=context.unit_code,
            category=context.validation_category,
            provider=config.provider,
            mode=config.orchestration_mode.value,
        )

        try:
            await self._update_request(
                validation_request_id,
                status=ValidationStatus.PENDING.value,
                error_message=None,
                provider=config.provider,
                orchestration_mode=config.orchestration_mode.value,
                last_run_id=run_id,
                completed_at=None,
            )
            await self._execute(run, documents)
        except Exception as e:
            log_error(logger, e, f"Validation run {run_id} aborted")
            await self._fail(run, f"Unexpected error: {e}")

        summary = self._summarize(run, start_time)
        log_run_banner(
            logger,
            f"Validation run {run_id} finished: {summary.status.value}",
            succeeded=f"{summary.successful_validations}/{summary.total_requirements}",
            failed=summary.failed_validations,
            fallback_parses=summary.fallback_parses,
            elapsed_ms=summary.elapsed_ms,
        )
        return summary

    async def revalidate(
        self,
        validation_request_id: int,
        requirement_id: int,
        provider_override: Optional[str] = None,
    ) -> RunSummary:
        """
        Re-run one requirement of a request and append its new result.

        Extraction comes from the document cache, so only the inference call
        is repeated. The request's status and progress counters are left as
        they are; the new row carries a fresh run id, returned in the summary.

        Args:
            validation_request_id: Validation request the requirement belongs to
            requirement_id: Unit requirement to validate again
            provider_override: Provider to use instead of the configured one

        Returns:
            RunSummary with a single requirement

        Raises:
            ConfigurationError: If the provider configuration is invalid or delegated
            ValidationRequestNotFoundError: If the request does not exist
            RequirementNotFoundError: If the requirement is not part of the request's unit
        """
        start_time = time.monotonic()
        run_id = str(uuid.uuid4())

        config = self.resolver.resolve(provider_override)
        if config.orchestration_mode != OrchestrationMode.DIRECT:
            raise ConfigurationError("Requirement revalidation needs the direct orchestration mode")

        context, documents = await self._load_request(validation_request_id)
        requirement = await self._load_requirement(context, requirement_id)

        run = _Run(run_id, context, config, record_status=False)
        run.total = 1
        logger.info(
            f"Revalidating {requirement.requirement_type} {requirement.number} "
            f"of request {validation_request_id} (run {run_id}, provider {config.provider})"
        )

        try:
            if await self._process(run, documents, [requirement]):
                final_status = self._settle(run)
                if final_status is not None:
                    run.state.transition(final_status)
        except Exception as e:
            log_error(logger, e, f"Revalidation run {run_id} aborted")
            await self._fail(run, f"Unexpected error: {e}")

        summary = self._summarize(run, start_time)
        logger.info(
            f"Revalidation of requirement {requirement.number} finished: {summary.status.value}"
        )
        return summary

    def _summarize(self, run: _Run, start_time: float) -> RunSummary:
        return RunSummary(
            validation_request_id=run.context.validation_request_id,
            run_id=run.run_id,
            status=run.state.status,
            provider=run.config.provider,
            orchestration_mode=run.config.orchestration_mode.value,
            total_requirements=run.total,
            successful_validations=run.successes,
            failed_validations=run.failures,
            fallback_parses=run.fallback_parses,
            status_distribution=dict(run.distribution),
            elapsed_ms=int((time.monotonic() - start_time) * 1000),
            error_message=run.error_message,
        )

    # ==========================================================================
    # PIPELINE STEPS
    # ==========================================================================

    async def _execute(self, run: _Run, documents: List[Document]) -> None:
        context = run.context

        # 3. Fetch requirements
        try:
            requirements = await RequirementFetcher(self.session_factory).fetch(
                context.unit_code, context.validation_category, context.unit_link
            )
        except NoRequirementsError as e:
            await self._fail(run, str(e))
            return

        run.total = len(requirements)

        if run.config.orchestration_mode == OrchestrationMode.DELEGATED:
            if self._lacks_document_store(run):
                await self._fail(run, self._missing_store_message(run))
                return
            await self._delegate(run, documents, requirements)
            return

        # 4-5. Provider, evidence and requirement loop
        if not await self._process(run, documents, requirements):
            return

        # 6. Terminal status
        final_status = self._settle(run)
        if final_status is None:
            return
        await self._update_request(
            context.validation_request_id,
            status=final_status.value,
            error_message=run.error_message,
            completed_at=_now(),
        )
        run.state.transition(final_status)

    async def _process(
        self,
        run: _Run,
        documents: List[Document],
        requirements: List[Requirement],
    ) -> bool:
        """
        Build the provider, prepare evidence and validate ``requirements``.

        Returns False when the run was failed before the requirement loop.
        """
        try:
            self.registry.get(run.config.provider)
        except ConfigurationError as e:
            await self._fail(run, str(e))
            return False

        if run.record_status:
            # Row first, in-memory state second
            await self._update_request(
                run.context.validation_request_id,
                status=ValidationStatus.PROCESSING.value,
                started_at=_now(),
                validation_count=0,
                validation_total=run.total,
                validation_progress=0,
            )
        run.state.transition(ValidationStatus.PROCESSING)

        validator: Optional[IRequirementValidator] = None
        backend: Optional[IExtractionBackend] = None
        try:
            try:
                validator = self.registry.create_validator(run.config)
                backend = self.registry.create_extraction_backend(run.config)
            except (ConfigurationError, ValueError) as e:
                await self._fail(run, f"Cannot initialize provider {run.config.provider}: {e}")
                return False

            corpus = await self._prepare_corpus(run, backend, documents)
            if corpus is None:
                return False

            await self._validate_requirements(run, validator, requirements, corpus)
        finally:
            if validator is not None:
                await validator.close()
            if backend is not None:
                await backend.close()
        return True

    @staticmethod
    def _settle(run: _Run) -> Optional[ValidationStatus]:
        """Terminal status for a processed run; None if it already has one."""
        final_status = terminal_status_for(run.successes, run.failures)
        if run.failures:
            run.error_message = f"{run.failures} of {run.total} requirements failed"

        if not run.state.can_transition(final_status):
            return None
        return final_status

    async def _prepare_corpus(
        self,
        run: _Run,
        backend: Optional[IExtractionBackend],
        documents: List[Document],
    ) -> Optional[Corpus]:
        """Extracted corpus, an empty one for document-store providers, or None after failing the run."""
        if backend is not None:
            extractor = DocumentExtractor(backend, self.storage, self.session_factory)
            try:
                return await extractor.build_corpus(documents)
            except ExtractionError as e:
                await self._fail(run, str(e))
                return None

        if self._lacks_document_store(run):
            await self._fail(run, self._missing_store_message(run))
            return None
        return Corpus(text="")

    def _lacks_document_store(self, run: _Run) -> bool:
        provider = run.config.provider
        if not self.registry.is_registered(provider):
            return False
        return (
            self.registry.get(provider).requires_document_store
            and not run.context.file_search_store_name
        )

    @staticmethod
    def _missing_store_message(run: _Run) -> str:
        return (
            f"Validation request {run.context.validation_request_id} has no document store "
            f"for provider {run.config.provider}"
        )

    async def _validate_requirements(
        self,
        run: _Run,
        validator: IRequirementValidator,
        requirements: List[Requirement],
        corpus: Corpus,
    ) -> None:
        context = run.context
        selector = ContentSelector(run.config.max_fragments, run.config.fallback_chars)
        invoker = InferenceInvoker(
            validator,
            self.rate_limiter_factory(run.config),
            PromptBuilder(self.session_factory),
            timeout_seconds=run.config.request_timeout_seconds,
        )
        parser = ResponseParser()
        store = ResultStore(self.session_factory, run.run_id)

        for index, requirement in enumerate(requirements, start=1):
            logger.info(
                f"[{index}/{run.total}] Validating {requirement.requirement_type} "
                f"{requirement.number}"
            )

            if await self._validate_one(run, requirement, corpus, selector, invoker, parser, store):
                run.successes += 1
            else:
                run.failures += 1

            if not run.record_status:
                continue
            try:
                await store.advance_progress(context.validation_request_id, index, run.total)
            except StoreError as e:
                log_error(logger, e, f"Progress update after requirement {requirement.number}")

    async def _validate_one(
        self,
        run: _Run,
        requirement: Requirement,
        corpus: Corpus,
        selector: ContentSelector,
        invoker: InferenceInvoker,
        parser: ResponseParser,
        store: ResultStore,
    ) -> bool:
        context = run.context

        try:
            content = selector.select(requirement, corpus.fragments, corpus.text)
            raw = await invoker.invoke(requirement, content, context)
            outcome = parser.parse(
                raw.text,
                context.validation_category,
                context.unit_code,
                [requirement],
                grounding_citations=raw.citations,
            )
            result = outcome.response.results[0]
            await store.store(context.validation_request_id, result, outcome.mode)
        except (ProviderError, ParseError, StoreError) as e:
            log_error(logger, e, f"Requirement {requirement.number} failed")
            await self._store_error(store, context, requirement, str(e))
            run.distribution[ResultStatus.ERROR.value] += 1
            return False
        except Exception as e:
            log_error(logger, e, f"Unexpected error on requirement {requirement.number}")
            await self._store_error(store, context, requirement, f"Unexpected error: {e}")
            run.distribution[ResultStatus.ERROR.value] += 1
            return False

        if outcome.mode == ParseMode.FALLBACK:
            run.fallback_parses += 1
        run.distribution[result.status.value] += 1
        return True

    async def _store_error(
        self,
        store: ResultStore,
        context: RequestContext,
        requirement: Requirement,
        message: str,
    ) -> None:
        try:
            await store.store_error(context.validation_request_id, requirement, message)
        except StoreError as e:
            log_error(logger, e, f"Could not record failure of requirement {requirement.number}")

    async def _delegate(
        self,
        run: _Run,
        documents: List[Document],
        requirements: List[Requirement],
    ) -> None:
        payload = build_payload(run.context, documents, requirements, run.run_id)
        dispatcher = WebhookDispatcher(
            run.config.webhook_url,
            timeout_seconds=run.config.webhook_timeout_seconds,
            client=self.webhook_client,
        )

        try:
            await dispatcher.dispatch(payload)
        except DelegationError as e:
            await self._fail(run, str(e))
            return

        # The workflow engine owns the run from here on
        await self._update_request(
            run.context.validation_request_id,
            validation_count=0,
            validation_total=run.total,
            validation_progress=0,
        )

    # ==========================================================================
    # PERSISTENCE HELPERS
    # ==========================================================================

    async def _load_request(self, validation_request_id: int) -> Tuple[RequestContext, List[Document]]:
        async with self.session_factory() as session:
            found = await ValidationRequestRepository(session).get_with_summary(validation_request_id)
            rows = (
                await SourceDocumentRepository(session).list_for_request(validation_request_id)
                if found is not None
                else []
            )

        if found is None:
            raise ValidationRequestNotFoundError(validation_request_id)

        request, summary = found
        context = RequestContext(
            validation_request_id=request.id,
            unit_code=summary.unit_code,
            validation_category=request.validation_category,
            document_type=request.document_type or "unit",
            unit_title=summary.unit_title,
            unit_link=summary.unit_link,
            organization_code=summary.organization_code,
            file_search_store_name=request.file_search_store_name,
        )
        documents = [
            Document(
                id=row.id,
                file_name=row.file_name,
                storage_path=row.storage_path,
                mime_type=row.mime_type or "application/pdf",
                extracted_content=row.extracted_content,
            )
            for row in rows
        ]
        return context, documents

    async def _load_requirement(self, context: RequestContext, requirement_id: int) -> Requirement:
        async with self.session_factory() as session:
            row = await RequirementRepository(session).get_by_id(requirement_id)

        belongs = row is not None and (
            row.unit_link == context.unit_link
            if context.unit_link
            else row.unit_code == context.unit_code
        )
        if not belongs:
            raise RequirementNotFoundError(requirement_id, context.unit_code)

        return Requirement(
            id=row.id,
            requirement_type=row.requirement_type,
            number=row.requirement_number,
            text=row.requirement_text,
            element_text=row.element_text,
        )

    async def _update_request(self, validation_request_id: int, **fields) -> None:
        async with self.session_factory() as session:
            await ValidationRequestRepository(session).update(validation_request_id, **fields)

    async def _fail(self, run: _Run, message: str) -> None:
        """Move the run to failed and record why. Never raises."""
        logger.error(f"Validation request {run.context.validation_request_id} failed: {message}")
        run.error_message = message

        if not run.state.can_transition(ValidationStatus.FAILED):
            return
        run.state.transition(ValidationStatus.FAILED)

        if not run.record_status:
            return
        try:
            await self._update_request(
                run.context.validation_request_id,
                status=ValidationStatus.FAILED.value,
                error_message=message,
                completed_at=_now(),
            )
        except Exception as e:
            log_error(logger, e, "Could not record failed status")
