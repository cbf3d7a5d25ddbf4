"""Document integration: verification, application linking, expiry sweep.

Each operation commits its primary write first. Follow-up work (application
document-status, profile KYC, notifications) runs afterwards and is
best-effort: a failure there is logged and left for the next sweep or an
explicit reconcile, never reported as a failure of the primary write.
"""

from datetime import datetime, timedelta
from typing import Any, Awaitable, Optional

import structlog
from sqlalchemy.orm import Session

from thiqax.config.settings import settings
from thiqax.errors import (
    DependencyError,
    ForbiddenError,
    NotFoundError,
    ValidationAPIError,
)
from thiqax.models import Application, ApplicationDocument, Document, Job, Profile, utcnow
from thiqax.services.notifications import NotificationDispatcher
from thiqax.services.profiles import ProfileIntegrationService
from thiqax.services.snapshots import (
    add_application_history,
    add_document_history,
    application_snapshot,
    apply_application,
    apply_document,
    document_snapshot,
    job_snapshot,
)
from thiqax.workflow.applications import TERMINAL_STATUSES, link_documents, recompute_document_status
from thiqax.workflow.documents import (
    expiry_note,
    expiry_notices,
    is_expired,
    is_expiring,
    transition_document,
)
from thiqax.workflow.types import KYC_CATEGORIES, Actor, Role, VerificationStatus

logger = structlog.get_logger()


def system_actor() -> Actor:
    """Actor recorded for changes made by the expiry sweep."""
    return Actor(id=settings.SYSTEM_ACTOR_ID, role=Role.ADMIN.value)


class DocumentIntegrationService:
    """Links documents to applications and drives their verification lifecycle."""

    def __init__(self, db: Session, notifications: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifications = notifications or NotificationDispatcher(db)
        self.profiles = ProfileIntegrationService(db, self.notifications)

    def get_document(self, document_id: str) -> Document:
        document = (
            self.db.query(Document)
            .filter(Document.id == document_id, Document.removed_at.is_(None))
            .first()
        )
        if not document:
            raise NotFoundError("Document", document_id)
        return document

    async def _side_effect(self, step: str, work: Awaitable, **context) -> Any:
        """Await follow-up work, logging instead of raising on failure."""
        try:
            return await work
        except Exception as e:
            self.db.rollback()
            error = DependencyError(step, e)
            logger.error(
                "Follow-up step failed",
                code=error.code,
                step=step,
                error=str(e),
                error_type=type(e).__name__,
                **context,
            )
            return None

    def _sweep_failed(self, step: str, document_id: str, cause: Exception) -> None:
        """Roll back one document's sweep work and log it; the sweep carries on."""
        self.db.rollback()
        error = DependencyError(step, cause)
        logger.error(
            "Expiry sweep failed for document",
            code=error.code,
            step=step,
            document_id=document_id,
            error=str(cause),
            error_type=type(cause).__name__,
        )

    async def _sync_owner_kyc(self, owner_id: str, now: datetime) -> Optional[Profile]:
        if not self.db.query(Profile.id).filter(Profile.user_id == owner_id).first():
            logger.info("No profile for document owner, skipping KYC sync", user_id=owner_id)
            return None
        return await self.profiles.sync_profile_verification_status(owner_id, now=now)

    async def recompute_application_document_status(
        self,
        application_id: str,
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> Optional[Application]:
        """Re-derive an application's document status from its linked documents."""
        now = now or utcnow()
        application = self.db.query(Application).filter(Application.id == application_id).first()
        if not application:
            logger.warning("Linked application not found", application_id=application_id)
            return None

        documents = []
        if application.document_ids:
            documents = (
                self.db.query(Document)
                .filter(Document.id.in_(application.document_ids))
                .all()
            )
        update = recompute_document_status(
            application_snapshot(application),
            [document_snapshot(d) for d in documents],
            actor,
            now,
        )
        if not update.changed:
            return application

        previous = application.document_status
        apply_application(application, update.application)
        for entry in update.history:
            add_application_history(application, entry)
        self.db.commit()
        self.db.refresh(application)

        logger.info(
            "Application document status changed",
            application_id=application.id,
            previous_status=previous,
            document_status=application.document_status,
        )
        await self.notifications.send_all(update.notifications)
        return application

    async def update_verification_status(
        self,
        document_id: str,
        new_status: str,
        actor: Actor,
        notes: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        """Move a document to a new verification status.

        Args:
            document_id: Document to update
            new_status: pending, under-review, verified, rejected or expired
            actor: Verifier performing the change
            notes: Verification notes; required for rejections
            rejection_reason: Short rejection reason
            now: Override for the current time

        Returns:
            {"document": Document, "application": Application or None}
        """
        now = now or utcnow()
        document = self.get_document(document_id)
        transition = transition_document(
            document_snapshot(document),
            new_status,
            actor,
            notes,
            now,
            rejection_reason=rejection_reason,
        )

        apply_document(document, transition.document)
        add_document_history(document, transition.history)
        self.db.commit()
        self.db.refresh(document)

        logger.info(
            "Document verification status updated",
            document_id=document.id,
            previous_status=transition.previous_status,
            verification_status=document.verification_status,
            actor_id=actor.id,
        )

        application = None
        if document.application_id:
            application = await self._side_effect(
                "application_recompute",
                self.recompute_application_document_status(document.application_id, actor, now),
                document_id=document.id,
                application_id=document.application_id,
            )
            if application is None:
                application = (
                    self.db.query(Application)
                    .filter(Application.id == document.application_id)
                    .first()
                )

        if transition.needs_kyc_sync:
            await self._side_effect(
                "kyc_sync",
                self._sync_owner_kyc(document.owner_id, now),
                document_id=document.id,
                user_id=document.owner_id,
            )

        await self.notifications.send_all(transition.notifications)
        return {"document": document, "application": application}

    async def link_documents_to_application(
        self,
        application_id: str,
        document_ids: list[str],
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> Application:
        """Attach the applicant's documents to an application.

        Raises:
            ValidationAPIError: No document ids given
            NotFoundError: Application or any of the documents missing
            ForbiddenError: Documents don't belong to the applicant
        """
        now = now or utcnow()
        if not document_ids:
            raise ValidationAPIError("At least one document ID is required", field="documentIds")
        document_ids = list(dict.fromkeys(document_ids))

        application = self.db.query(Application).filter(Application.id == application_id).first()
        if not application:
            raise NotFoundError("Application", application_id)

        rows = (
            self.db.query(Document)
            .filter(Document.id.in_(document_ids), Document.removed_at.is_(None))
            .all()
        )
        by_id = {d.id: d for d in rows}
        missing = [i for i in document_ids if i not in by_id]
        if missing:
            raise NotFoundError("One or more documents", missing)
        documents = [by_id[i] for i in document_ids]

        held_by = {d.application_id for d in documents if d.application_id and d.application_id != application.id}
        closed_ids = set()
        if held_by:
            closed_ids = {
                row.id
                for row in self.db.query(Application.id).filter(
                    Application.id.in_(held_by),
                    Application.status.in_(sorted(TERMINAL_STATUSES)),
                )
            }

        job = self.db.query(Job).filter(Job.id == application.job_id).first()
        result = link_documents(
            application_snapshot(application),
            [document_snapshot(d) for d in documents],
            actor,
            now,
            job=job_snapshot(job) if job else None,
            closed_application_ids=closed_ids,
        )

        apply_application(application, result.application)
        for document, snapshot in zip(documents, result.documents):
            apply_document(document, snapshot)
        add_application_history(application, result.history)
        self.db.commit()
        self.db.refresh(application)

        logger.info(
            "Documents linked to application",
            application_id=application.id,
            added=list(result.added_ids),
            actor_id=actor.id,
        )

        await self._side_effect(
            "application_recompute",
            self.recompute_application_document_status(application.id, actor, now),
            application_id=application.id,
        )
        await self.notifications.send_all(result.notifications)
        self.db.refresh(application)
        return application

    def _job_poster_for(self, document: Document) -> Optional[str]:
        if not document.application_id:
            return None
        job = (
            self.db.query(Job)
            .join(Application, Application.job_id == Job.id)
            .filter(Application.id == document.application_id)
            .first()
        )
        return job.posted_by if job else None

    async def check_document_expirations(
        self,
        days_threshold: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> dict[str, int]:
        """Warn about documents expiring soon and expire the overdue ones.

        Meant to be triggered periodically from outside. Re-running it does
        not re-notify documents already warned about and skips documents
        that are already rejected or expired. A failure on one document is
        rolled back and logged, and the sweep moves on to the next.
        """
        now = now or utcnow()
        threshold = settings.EXPIRY_NOTICE_DAYS if days_threshold is None else days_threshold
        if threshold < 0:
            raise ValidationAPIError("daysThreshold must not be negative", field="daysThreshold")

        open_statuses = Document.verification_status.notin_(
            [VerificationStatus.REJECTED.value, VerificationStatus.EXPIRED.value]
        )

        # Pass 1: expiring within the window
        expiring = (
            self.db.query(Document)
            .filter(
                Document.removed_at.is_(None),
                Document.expiry_date.isnot(None),
                Document.expiry_date >= now,
                Document.expiry_date <= now + timedelta(days=threshold),
                Document.expiry_notified.is_(False),
                open_statuses,
            )
            .all()
        )
        notified = 0
        for document in expiring:
            document_id = document.id
            try:
                snapshot = document_snapshot(document)
                if not is_expiring(snapshot, now, threshold):
                    continue
                await self.notifications.send_all(
                    expiry_notices(snapshot, now, poster_id=self._job_poster_for(document))
                )
                document.expiry_notified = True
                self.db.commit()
            except Exception as e:
                self._sweep_failed("expiry_notice", document_id, e)
                continue
            notified += 1

        # Pass 2: past their expiry date
        overdue = (
            self.db.query(Document)
            .filter(
                Document.removed_at.is_(None),
                Document.expiry_date.isnot(None),
                Document.expiry_date < now,
                open_statuses,
            )
            .all()
        )
        expired = 0
        actor = system_actor()
        for document in overdue:
            document_id = document.id
            try:
                snapshot = document_snapshot(document)
                if not is_expired(snapshot, now):
                    continue
                await self.update_verification_status(
                    document_id,
                    VerificationStatus.EXPIRED.value,
                    actor,
                    notes=expiry_note(snapshot),
                    now=now,
                )
            except Exception as e:
                self._sweep_failed("expire_document", document_id, e)
                continue
            expired += 1

        result = {
            "processedCount": len(expiring) + len(overdue),
            "notifiedCount": notified,
            "expiredCount": expired,
        }
        logger.info("Document expiration sweep complete", threshold_days=threshold, **result)
        return result

    async def remove_document(self, document_id: str, actor: Actor, now: Optional[datetime] = None) -> Document:
        """Soft-remove a document that no application references."""
        now = now or utcnow()
        document = self.get_document(document_id)
        if actor.id != document.owner_id and actor.role != Role.ADMIN.value:
            raise ForbiddenError("Not authorized to remove this document")

        referenced = (
            document.application_id is not None
            or self.db.query(ApplicationDocument.id)
            .filter(ApplicationDocument.document_id == document.id)
            .first()
            is not None
        )
        if referenced:
            raise ValidationAPIError("Document is linked to an application and cannot be removed")

        was_counted = (
            document.verification_status == VerificationStatus.VERIFIED.value
            and document_snapshot(document).category in KYC_CATEGORIES
        )
        document.removed_at = now
        self.db.commit()
        self.db.refresh(document)
        logger.info("Document removed", document_id=document.id, actor_id=actor.id)

        if was_counted:
            await self._side_effect(
                "kyc_sync",
                self._sync_owner_kyc(document.owner_id, now),
                document_id=document.id,
                user_id=document.owner_id,
            )
        return document
