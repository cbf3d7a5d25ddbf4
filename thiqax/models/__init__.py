"""SQLAlchemy ORM models for the ThiQaX verification service.

All models are imported here to ensure they're registered with Base.metadata
before any database operations.
"""

# Import base first
from thiqax.config.database import Base

from .base import utcnow, new_id

# Accounts and postings
from .users import User
from .jobs import Job

# Verification workflow
from .documents import Document, DocumentHistory
from .profiles import Profile
from .applications import Application, ApplicationDocument, ApplicationHistory

# Notifications
from .notifications import Notification

__all__ = [
    "Base",
    "utcnow",
    "new_id",
    # Accounts
    "User",
    "Job",
    # Workflow
    "Document",
    "DocumentHistory",
    "Profile",
    "Application",
    "ApplicationDocument",
    "ApplicationHistory",
    # Notifications
    "Notification",
]
