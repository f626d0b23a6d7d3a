"""
SQLAlchemy model for unit requirements (read-only reference data).
"""

from sqlalchemy import Column, Integer, String, Text, Index

from src.database.connection import Base


class UnitRequirement(Base):
    """One compliance rule for a unit of competency."""

    __tablename__ = "unit_requirements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    unit_code = Column(String(50), nullable=False)
    unit_link = Column(Text)

    # knowledge_evidence, performance_evidence, foundation_skills,
    # elements_performance_criteria, assessment_conditions
    requirement_type = Column(String(50), nullable=False)
    requirement_number = Column(String(50), nullable=False)
    requirement_text = Column(Text, nullable=False)
    element_text = Column(Text)  # Parent element for performance criteria

    __table_args__ = (
        Index("idx_unit_requirements_unit_type", "unit_code", "requirement_type"),
        Index("idx_unit_requirements_link", "unit_link"),
    )

    def __repr__(self):
        return (
            f"<UnitRequirement(unit_code={self.unit_code}, "
            f"type={self.requirement_type}, number={self.requirement_number})>"
        )
