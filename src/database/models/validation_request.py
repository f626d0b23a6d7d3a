"""
SQLAlchemy model for validation requests.

One row per validation job. Status and progress counters are written only
by the validation engine while a run is in flight.
"""

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text, TIMESTAMP
from sqlalchemy.sql import func

from src.database.connection import Base


class ValidationRequest(Base):
    """
    Model for a validation job.

    Status values: pending, processing, completed, partial, failed.
    """

    __tablename__ = "validation_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    summary_id = Column(
        Integer,
        ForeignKey("validation_summaries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Job definition
    validation_category = Column(String(50), nullable=False)  # knowledge_evidence, full_validation, ...
    document_type = Column(String(50), nullable=False, default="unit")  # unit, learner_guide
    file_search_store_name = Column(Text)  # Pre-indexed store for grounded providers

    # Run state
    status = Column(String(20), nullable=False, default="pending", index=True)
    validation_count = Column(Integer, nullable=False, default=0)
    validation_total = Column(Integer, nullable=False, default=0)
    validation_progress = Column(Numeric(5, 2), nullable=False, default=0)
    error_message = Column(Text)
    provider = Column(String(20))
    orchestration_mode = Column(String(20))
    last_run_id = Column(String(36))

    # Timestamps
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    started_at = Column(TIMESTAMP(timezone=True))
    completed_at = Column(TIMESTAMP(timezone=True))

    def __repr__(self):
        return f"<ValidationRequest(id={self.id}, status={self.status})>"
