"""
SQLAlchemy model for validation summaries.

A summary groups the validation requests raised for one unit of competency.
"""

from sqlalchemy import Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.sql import func

from src.database.connection import Base


class ValidationSummary(Base):
    """Unit of competency under validation, parent of validation requests."""

    __tablename__ = "validation_summaries"

    id = Column(Integer, primary_key=True, autoincrement=True)

    unit_code = Column(String(50), nullable=False, index=True)
    unit_title = Column(Text)
    unit_link = Column(Text)  # Canonical training.gov.au link for the unit
    organization_code = Column(String(50), index=True)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return f"<ValidationSummary(id={self.id}, unit_code={self.unit_code})>"
