"""User model (the subset of account data the verification workflow reads)."""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from .base import BaseModel, new_id


class User(BaseModel):
    """
    Platform account.

    Registration and token issuance live outside this service; the workflow
    only needs the role and the denormalized KYC flag.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(255), nullable=True)

    # jobSeeker, agent, sponsor, admin
    role = Column(String(20), nullable=False, default="jobSeeker")

    # Mirror of Profile.kyc_status == "verified"
    kyc_verified = Column(Boolean, nullable=False, default=False)

    # Relationships
    profile = relationship("Profile", back_populates="user", uselist=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"
