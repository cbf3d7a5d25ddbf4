"""Notification model."""

from sqlalchemy import Column, String, Boolean, Text, Index, JSON

from .base import BaseModel, new_id


class Notification(BaseModel):
    """Persisted in-app notification.

    Email/push delivery reads from here; it is not part of this service.
    """

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    recipient_id = Column(String(36), nullable=False)

    # DOCUMENT_VERIFICATION, DOCUMENT_LINKED, KYC_VERIFICATION, DOCUMENT_EXPIRING, ...
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    # Related entity ids, e.g. {"documentId": "...", "applicationId": "..."}
    data = Column(JSON, nullable=False, default=dict)
    read = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_notifications_recipient_read", "recipient_id", "read"),
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.type}, recipient={self.recipient_id})>"
