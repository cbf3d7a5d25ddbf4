"""Application hiring-status changes."""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from thiqax.errors import NotFoundError
from thiqax.models import Application, Job, utcnow
from thiqax.services.notifications import NotificationDispatcher
from thiqax.services.snapshots import (
    add_application_history,
    application_snapshot,
    apply_application,
    job_snapshot,
)
from thiqax.workflow.applications import transition_application
from thiqax.workflow.types import Actor

logger = structlog.get_logger()


class ApplicationWorkflowService:
    """Moves applications through submitted → ... → accepted/rejected/withdrawn."""

    def __init__(self, db: Session, notifications: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifications = notifications or NotificationDispatcher(db)

    def get_application(self, application_id: str) -> Application:
        application = self.db.query(Application).filter(Application.id == application_id).first()
        if not application:
            raise NotFoundError("Application", application_id)
        return application

    async def update_application_status(
        self,
        application_id: str,
        new_status: str,
        actor: Actor,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Application:
        """Change an application's status and record it in its history."""
        now = now or utcnow()
        application = self.get_application(application_id)
        job = self.db.query(Job).filter(Job.id == application.job_id).first()

        previous = application.status
        update = transition_application(
            application_snapshot(application),
            new_status,
            actor,
            notes,
            now,
            job=job_snapshot(job) if job else None,
        )

        apply_application(application, update.application)
        for entry in update.history:
            add_application_history(application, entry)
        self.db.commit()
        self.db.refresh(application)

        logger.info(
            "Application status updated",
            application_id=application.id,
            previous_status=previous,
            status=application.status,
            actor_id=actor.id,
        )
        await self.notifications.send_all(update.notifications)
        return application
