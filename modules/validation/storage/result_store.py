"""
Persistence of per-requirement results and run progress.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from modules.validation.core.exceptions import StoreError
from modules.validation.core.interfaces import (
    ParseMode,
    Requirement,
    RequirementValidation,
    ResultStatus,
)
from shared.utils.logger import setup_logger
from src.database.connection import SessionFactory
from src.database.repositories.validation_request_repository import ValidationRequestRepository
from src.database.repositories.validation_result_repository import ValidationResultRepository

logger = setup_logger(__name__)


def progress_percentage(completed_count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(completed_count / total * 100, 2)


class ResultStore:
    """
    Appends result rows for one run and advances the parent's progress counters.
    """

    def __init__(self, session_factory: SessionFactory, run_id: str):
        self.session_factory = session_factory
        self.run_id = run_id

    async def store(
        self,
        validation_request_id: int,
        result: RequirementValidation,
        parse_mode: ParseMode = ParseMode.PRIMARY,
        error_message: Optional[str] = None,
    ) -> None:
        """
        Append one result row.

        Args:
            validation_request_id: Parent validation request
            result: Normalized result
            parse_mode: Parse path that produced the result
            error_message: Failure detail for error rows

        Raises:
            StoreError: If the write fails
        """
        try:
            async with self.session_factory() as session:
                await ValidationResultRepository(session).create(
                    validation_request_id=validation_request_id,
                    run_id=self.run_id,
                    requirement_id=result.requirement_id,
                    requirement_type=result.requirement_type,
                    requirement_number=result.requirement_number,
                    requirement_text=result.requirement_text,
                    status=result.status.value,
                    reasoning=result.reasoning,
                    mapped_content=result.mapped_content,
                    citations=[c.to_dict() for c in result.citations],
                    smart_questions=result.smart_questions,
                    benchmark_answer=result.benchmark_answer,
                    recommendations=result.recommendations,
                    parse_mode=parse_mode.value,
                    error_message=error_message,
                )
        except SQLAlchemyError as e:
            raise StoreError(
                f"Failed to store result for requirement {result.requirement_number}: {e}"
            )

    async def store_error(
        self,
        validation_request_id: int,
        requirement: Requirement,
        error_message: str,
    ) -> None:
        """
        Append an error row for a requirement that produced no result.

        Raises:
            StoreError: If the write fails
        """
        await self.store(
            validation_request_id,
            RequirementValidation(
                requirement_id=requirement.id,
                requirement_number=requirement.number,
                requirement_type=requirement.requirement_type,
                requirement_text=requirement.text,
                status=ResultStatus.ERROR,
            ),
            parse_mode=ParseMode.NONE,
            error_message=error_message,
        )

    async def advance_progress(
        self,
        validation_request_id: int,
        completed_count: int,
        total: int,
    ) -> None:
        """
        Update progress counters on the validation request.

        Args:
            validation_request_id: Validation request
            completed_count: Requirements processed so far
            total: Requirements in the run

        Raises:
            StoreError: If the counters are inconsistent or the write fails
        """
        if completed_count < 0 or completed_count > total:
            raise StoreError(
                f"Progress {completed_count}/{total} is out of range"
            )

        try:
            async with self.session_factory() as session:
                updated = await ValidationRequestRepository(session).update_progress(
                    validation_request_id,
                    count=completed_count,
                    total=total,
                    progress=progress_percentage(completed_count, total),
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update progress: {e}")

        if not updated:
            raise StoreError(f"Validation request {validation_request_id} not found")

        logger.debug(
            f"Progress for request {validation_request_id}: {completed_count}/{total}"
        )
