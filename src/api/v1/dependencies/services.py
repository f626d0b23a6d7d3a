"""
Service dependencies for the validation endpoints.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from modules.validation.engine import ValidationEngine
from src.database.connection import get_session


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session."""
    async with get_session() as session:
        yield session


def get_validation_engine() -> ValidationEngine:
    """Dependency providing a validation engine bound to the global database."""
    return ValidationEngine()
