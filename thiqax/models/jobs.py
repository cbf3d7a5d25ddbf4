"""Job posting model."""

from sqlalchemy import Column, String, Integer, ForeignKey, JSON
from sqlalchemy.orm import relationship

from .base import BaseModel, new_id


class Job(BaseModel):
    """Job posted by a sponsor or agent."""

    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    posted_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Eligibility hints (warnings only)
    required_skills = Column(JSON, nullable=False, default=list)
    experience_years = Column(Integer, nullable=False, default=0)

    # open, closed, filled
    status = Column(String(20), nullable=False, default="open")

    # Relationships
    applications = relationship("Application", back_populates="job")

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, title={self.title})>"
