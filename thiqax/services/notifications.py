"""Notification dispatcher.

The workflow decides who gets told what; this class persists the
notification. Delivery channels (email, push) pick notifications up from
the table and are outside this service.
"""

from typing import Iterable, Optional

import structlog
from sqlalchemy.orm import Session

from thiqax.errors import DependencyError
from thiqax.models import Notification
from thiqax.workflow.types import NotificationIntent

logger = structlog.get_logger()


class NotificationDispatcher:
    """Persists notification intents. Never raises."""

    def __init__(self, db: Session):
        self.db = db

    async def send(self, intent: NotificationIntent) -> Optional[Notification]:
        """Store one notification.

        Failures are rolled back and logged; the state change that produced
        the notification stands.
        """
        try:
            notification = Notification(
                recipient_id=intent.recipient_id,
                type=intent.type,
                title=intent.title,
                message=intent.message,
                data=dict(intent.data),
            )
            self.db.add(notification)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            error = DependencyError("notification", e)
            logger.error(
                "Notification dispatch failed",
                code=error.code,
                recipient_id=intent.recipient_id,
                type=intent.type,
                error=str(e),
            )
            return None

        logger.info(
            "Notification sent",
            notification_id=notification.id,
            recipient_id=intent.recipient_id,
            type=intent.type,
        )
        return notification

    async def send_all(self, intents: Iterable[NotificationIntent]) -> int:
        """Send each intent in order; returns how many were stored."""
        sent = 0
        for intent in intents:
            if await self.send(intent) is not None:
                sent += 1
        return sent
