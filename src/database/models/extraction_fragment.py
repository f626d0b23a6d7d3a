"""
SQLAlchemy model for structured extraction fragments.
"""

from sqlalchemy import Column, ForeignKey, Integer, String, Text, Index

from src.database.connection import Base


class ExtractionFragment(Base):
    """
    One paragraph-level fragment of an extracted document.

    The set of fragments for a document is replaced wholesale on every
    extraction write.
    """

    __tablename__ = "extraction_fragments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(
        Integer,
        ForeignKey("source_documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    ordinal = Column(Integer, nullable=False)  # Position within the document
    page_number = Column(Integer)
    role = Column(String(50))  # title, sectionHeading, pageHeader, ...
    text = Column(Text, nullable=False)

    __table_args__ = (
        Index("idx_extraction_fragments_document", "document_id", "ordinal"),
    )

    def __repr__(self):
        return f"<ExtractionFragment(document_id={self.document_id}, ordinal={self.ordinal})>"
