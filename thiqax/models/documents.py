"""Document model and its verification audit trail."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import BaseModel, new_id, utcnow
from thiqax.config.database import Base


class Document(BaseModel):
    """
    One uploaded file and its verification metadata.

    File storage is handled elsewhere; this row only tracks verification.
    A re-upload creates a new Document, so a rejected or expired row is
    never brought back to life.
    """

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    name = Column(String(255), nullable=False, default="")

    # passport, national-id, driver-license, utility-bill, ... (see workflow.types)
    document_type = Column(String(50), nullable=False)

    # pending, under-review, verified, rejected, expired
    verification_status = Column(String(20), nullable=False, default="pending")
    verification_notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    verified_by = Column(String(36), nullable=True)
    verified_at = Column(DateTime, nullable=True)

    # Expiry tracking
    expiry_date = Column(DateTime, nullable=True)
    expiry_notified = Column(Boolean, nullable=False, default=False)

    # Weak links (lookup only, never cascade)
    application_id = Column(String(36), ForeignKey("applications.id", ondelete="SET NULL"), nullable=True)
    profile_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    # Soft removal
    removed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_documents_owner_status", "owner_id", "verification_status"),
        Index("ix_documents_expiry", "expiry_date"),
    )

    # Relationships
    history = relationship(
        "DocumentHistory",
        back_populates="document",
        order_by="DocumentHistory.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, type={self.document_type}, status={self.verification_status})>"


class DocumentHistory(Base):
    """Append-only verification history for a document."""

    __tablename__ = "document_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(
        String(36),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    status = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    actor_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_document_history_document", "document_id"),
    )

    document = relationship("Document", back_populates="history")

    def __repr__(self) -> str:
        return f"<DocumentHistory(id={self.id}, status={self.status})>"
