"""Job seeker profile model.

Sections are stored as JSON:
- personal_info: {"fullName", "email", "phone", "dateOfBirth", "currentLocation", ...}
- education: [{"institution", "degree", "fieldOfStudy", "startDate", "endDate"}, ...]
- experience: [{"company", "position", "startDate", "endDate"}, ...]
- skills: ["welding", "forklift", ...]

Completion and KYC columns are derived; they are only written by the
integration services, never by profile edits.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from .base import BaseModel, new_id


class Profile(BaseModel):
    """Structured profile with derived completeness and KYC status."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)

    # Sections
    personal_info = Column(JSON, nullable=False, default=dict)
    education = Column(JSON, nullable=False, default=list)
    experience = Column(JSON, nullable=False, default=list)
    skills = Column(JSON, nullable=False, default=list)
    photo_url = Column(String(500), nullable=True)

    # Derived: completeness
    profile_complete = Column(Boolean, nullable=False, default=False)
    completion_percentage = Column(Integer, nullable=False, default=0)
    missing_fields = Column(JSON, nullable=False, default=list)
    completeness_checked_at = Column(DateTime, nullable=True)

    # Derived: KYC (unverified, pending, partial, verified)
    kyc_status = Column(String(20), nullable=False, default="unverified")
    kyc_breakdown = Column(JSON, nullable=False, default=dict)
    missing_documents = Column(JSON, nullable=False, default=list)
    last_kyc_update = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="profile")

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, user={self.user_id}, kyc={self.kyc_status})>"
