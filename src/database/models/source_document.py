"""
SQLAlchemy model for uploaded source documents.

``extracted_content`` caches the extraction output so a document is only
sent to the extraction backend once.
"""

from sqlalchemy import Column, ForeignKey, Integer, String, Text, TIMESTAMP
from sqlalchemy.sql import func

from src.database.connection import Base


class SourceDocument(Base):
    """Model for a document attached to a validation request."""

    __tablename__ = "source_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    validation_request_id = Column(
        Integer,
        ForeignKey("validation_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    file_name = Column(String(255), nullable=False)
    storage_path = Column(Text, nullable=False)
    mime_type = Column(String(100), default="application/pdf")

    # Extraction cache (NULL = not extracted yet)
    extracted_content = Column(Text)
    extracted_at = Column(TIMESTAMP(timezone=True))

    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<SourceDocument(id={self.id}, file_name={self.file_name})>"
