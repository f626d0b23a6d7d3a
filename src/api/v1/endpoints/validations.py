"""
Validations API endpoints.

Trigger validation runs and read their status and results.
"""

from typing import Optional, Union

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from modules.validation.core.exceptions import (
    ConfigurationError,
    RequirementNotFoundError,
    ValidationRequestNotFoundError,
)
from modules.validation.engine import ValidationEngine
from shared.utils.logger import log_error, setup_logger
from src.api.v1.dependencies.auth import verify_api_key
from src.api.v1.dependencies.services import get_db_session, get_validation_engine
from src.api.v1.models.requests import RevalidateRequirementRequest, TriggerValidationRequest
from src.api.v1.models.responses import (
    RunSummaryResponse,
    TriggerAcceptedResponse,
    ValidationResultItem,
    ValidationResultsResponse,
    ValidationStatusResponse,
)
from src.database.repositories.validation_request_repository import ValidationRequestRepository
from src.database.repositories.validation_result_repository import ValidationResultRepository

logger = setup_logger(__name__)

router = APIRouter(prefix="/validations", tags=["validations"])


async def _run_in_background(
    engine: ValidationEngine, validation_request_id: int, provider: Optional[str]
) -> None:
    try:
        await engine.run(validation_request_id, provider_override=provider)
    except (ConfigurationError, ValidationRequestNotFoundError) as e:
        logger.error(f"Background validation of request {validation_request_id} not started: {e}")
    except Exception as e:
        log_error(logger, e, f"Background validation of request {validation_request_id} crashed")


@router.post(
    "/{validation_request_id}/trigger",
    response_model=Union[RunSummaryResponse, TriggerAcceptedResponse],
    summary="Trigger validation",
    description="Run the validation pipeline for a validation request",
    responses={
        404: {"description": "Validation request not found"},
        500: {"description": "Provider configuration error"},
    },
)
async def trigger_validation(
    validation_request_id: int,
    background_tasks: BackgroundTasks,
    request: Optional[TriggerValidationRequest] = None,
    api_key: str = Depends(verify_api_key),
    session: AsyncSession = Depends(get_db_session),
    engine: ValidationEngine = Depends(get_validation_engine),
):
    """
    Start a validation run.

    Runs inline by default and returns the run summary. With
    ``run_in_background`` the run is scheduled and 202-style acceptance is
    returned immediately; progress is then read from the status endpoint.
    """
    request = request or TriggerValidationRequest()

    if request.run_in_background:
        if not await ValidationRequestRepository(session).get_by_id(validation_request_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Validation request {validation_request_id} not found",
            )
        background_tasks.add_task(
            _run_in_background, engine, validation_request_id, request.provider
        )
        logger.info(f"Validation request {validation_request_id} scheduled")
        return TriggerAcceptedResponse(validation_request_id=validation_request_id)

    try:
        summary = await engine.run(validation_request_id, provider_override=request.provider)
    except ValidationRequestNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Provider configuration error: {e}",
        )

    return RunSummaryResponse(**summary.to_dict())


@router.post(
    "/{validation_request_id}/requirements/{requirement_id}/revalidate",
    response_model=RunSummaryResponse,
    summary="Revalidate one requirement",
    description="Validate a single requirement again and append the new result",
    responses={
        404: {"description": "Validation request or requirement not found"},
        500: {"description": "Provider configuration error"},
    },
)
async def revalidate_requirement(
    validation_request_id: int,
    requirement_id: int,
    request: Optional[RevalidateRequirementRequest] = None,
    api_key: str = Depends(verify_api_key),
    engine: ValidationEngine = Depends(get_validation_engine),
):
    """
    Re-run one requirement against the cached documents.

    The new result is stored under the run id in the response; the request's
    status and latest run are unchanged.
    """
    request = request or RevalidateRequirementRequest()

    try:
        summary = await engine.revalidate(
            validation_request_id, requirement_id, provider_override=request.provider
        )
    except (ValidationRequestNotFoundError, RequirementNotFoundError) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Provider configuration error: {e}",
        )

    return RunSummaryResponse(**summary.to_dict())


@router.get(
    "/{validation_request_id}",
    response_model=ValidationStatusResponse,
    summary="Get validation status",
)
async def get_validation_status(
    validation_request_id: int,
    api_key: str = Depends(verify_api_key),
    session: AsyncSession = Depends(get_db_session),
):
    """Status and progress counters of a validation request."""
    validation_request = await ValidationRequestRepository(session).get_by_id(validation_request_id)
    if validation_request is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Validation request {validation_request_id} not found",
        )

    return ValidationStatusResponse.model_validate(validation_request)


@router.get(
    "/{validation_request_id}/results",
    response_model=ValidationResultsResponse,
    summary="Get validation results",
)
async def get_validation_results(
    validation_request_id: int,
    run_id: Optional[str] = Query(default=None, description="Run to return (defaults to the latest run)"),
    all_runs: bool = Query(default=False, description="Return results of every run"),
    api_key: str = Depends(verify_api_key),
    session: AsyncSession = Depends(get_db_session),
):
    """Per-requirement results of a validation request."""
    validation_request = await ValidationRequestRepository(session).get_by_id(validation_request_id)
    if validation_request is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Validation request {validation_request_id} not found",
        )

    if all_runs:
        run_id = None
    elif run_id is None:
        run_id = validation_request.last_run_id

    rows = await ValidationResultRepository(session).list_for_request(validation_request_id, run_id=run_id)

    return ValidationResultsResponse(
        validation_request_id=validation_request_id,
        run_id=run_id,
        total=len(rows),
        results=[ValidationResultItem(**row.to_dict()) for row in rows],
    )
