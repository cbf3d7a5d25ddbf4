"""Application model, its linked-document set and status history."""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index, JSON
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel, new_id, utcnow
from thiqax.config.database import Base


class Application(BaseModel):
    """
    One job seeker's submission to one job.

    Re-applying after a withdrawal creates a new row.
    """

    __tablename__ = "applications"

    id = Column(String(36), primary_key=True, default=new_id)
    job_id = Column(String(36), ForeignKey("jobs.id"), nullable=False)
    applicant_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    # submitted, under-review, shortlisted, interview-scheduled, offered,
    # accepted, rejected, withdrawn
    status = Column(String(30), nullable=False, default="submitted")

    # Aggregate over linked documents: pending, verified, rejected
    document_status = Column(String(20), nullable=False, default="pending")

    # Profile data copied on sync
    applicant_data = Column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_applications_applicant_job", "applicant_id", "job_id"),
    )

    # Relationships
    job = relationship("Job", back_populates="applications")
    document_links = relationship(
        "ApplicationDocument",
        back_populates="application",
        order_by="ApplicationDocument.id",
        cascade="all, delete-orphan",
    )
    history = relationship(
        "ApplicationHistory",
        back_populates="application",
        order_by="ApplicationHistory.id",
        cascade="all, delete-orphan",
    )

    @property
    def document_ids(self) -> list[str]:
        """Linked document ids in link order."""
        return [link.document_id for link in self.document_links]

    def __repr__(self) -> str:
        return f"<Application(id={self.id}, status={self.status}, documents={self.document_status})>"


class ApplicationDocument(Base):
    """Link row between an application and a document.

    Deleting either side removes only the link.
    """

    __tablename__ = "application_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        String(36),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    document_id = Column(
        String(36),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("application_id", "document_id", name="uq_application_documents"),
    )

    application = relationship("Application", back_populates="document_links")


class ApplicationHistory(Base):
    """
    Append-only application history.

    Events: STATUS_CHANGED, DOCUMENT_STATUS_CHANGED, DOCUMENTS_ADDED.
    """

    __tablename__ = "application_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        String(36),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    event = Column(String(40), nullable=False)
    status = Column(String(30), nullable=False)
    actor_id = Column(String(36), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_application_history_application", "application_id"),
    )

    application = relationship("Application", back_populates="history")

    def __repr__(self) -> str:
        return f"<ApplicationHistory(id={self.id}, event={self.event}, status={self.status})>"
