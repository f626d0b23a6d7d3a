"""
SQLAlchemy model for stored prompt templates.
"""

from sqlalchemy import Boolean, Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.sql import func

from src.database.connection import Base


class PromptTemplate(Base):
    """
    Prompt text used to build validation prompts.

    ``requirement_type`` / ``document_type`` NULL means the prompt applies
    to every type.
    """

    __tablename__ = "prompts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    prompt_type = Column(String(50), nullable=False, default="validation")
    requirement_type = Column(String(50))
    document_type = Column(String(50))

    prompt_text = Column(Text, nullable=False)
    system_instruction = Column(Text)

    is_active = Column(Boolean, nullable=False, default=True)
    is_default = Column(Boolean, nullable=False, default=False)

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<PromptTemplate(id={self.id}, name={self.name})>"
