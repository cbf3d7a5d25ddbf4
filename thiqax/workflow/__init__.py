"""Verification workflow engine.

Pure functions over immutable snapshots. Nothing in this package touches
the database, the clock or the notification dispatcher; the integration
services in ``thiqax.services`` load state, call in here, and apply the
results.
"""

from .types import (
    Actor,
    ApplicationSnapshot,
    DocumentSnapshot,
    JobSnapshot,
    NotificationIntent,
    ProfileSnapshot,
)

__all__ = [
    "Actor",
    "ApplicationSnapshot",
    "DocumentSnapshot",
    "JobSnapshot",
    "NotificationIntent",
    "ProfileSnapshot",
]
