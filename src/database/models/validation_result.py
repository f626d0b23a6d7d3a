"""
SQLAlchemy model for per-requirement validation results.

Rows are append-only. A re-run writes a fresh set of rows under its own run_id.
"""

from sqlalchemy import Column, ForeignKey, Integer, String, Text, TIMESTAMP, JSON, Index
from sqlalchemy.sql import func

from src.database.connection import Base


class ValidationResult(Base):
    """Outcome of validating one requirement within one run."""

    __tablename__ = "validation_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    validation_request_id = Column(
        Integer,
        ForeignKey("validation_requests.id", ondelete="CASCADE"),
        nullable=False,
    )
    run_id = Column(String(36), nullable=False)

    # Requirement snapshot
    requirement_id = Column(Integer, ForeignKey("unit_requirements.id"))
    requirement_type = Column(String(50))
    requirement_number = Column(String(50))
    requirement_text = Column(Text)

    # Judgement
    status = Column(String(20), nullable=False)  # compliant, non_compliant, needs_review, error
    reasoning = Column(Text)
    mapped_content = Column(Text)
    citations = Column(JSON, default=list)
    smart_questions = Column(Text)
    benchmark_answer = Column(Text)
    recommendations = Column(Text)

    parse_mode = Column(String(20), nullable=False, default="primary")  # primary, fallback, none
    error_message = Column(Text)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_validation_results_request_run", "validation_request_id", "run_id"),
    )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "validation_request_id": self.validation_request_id,
            "run_id": self.run_id,
            "requirement_id": self.requirement_id,
            "requirement_type": self.requirement_type,
            "requirement_number": self.requirement_number,
            "requirement_text": self.requirement_text,
            "status": self.status,
            "reasoning": self.reasoning,
            "mapped_content": self.mapped_content,
            "citations": self.citations or [],
            "smart_questions": self.smart_questions,
            "benchmark_answer": self.benchmark_answer,
            "recommendations": self.recommendations,
            "parse_mode": self.parse_mode,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
