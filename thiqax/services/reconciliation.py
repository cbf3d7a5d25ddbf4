"""Reconciliation of derived state.

Document updates commit before their follow-up recomputations run, so a
failure part-way leaves an application's document status or a profile's
KYC status stale. ``reconcile`` re-runs every recomputation that depends on
an entity. Each step is idempotent; running it on consistent data changes
nothing.
"""

from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy.orm import Session

from thiqax.errors import NotFoundError, ValidationAPIError
from thiqax.models import Application, ApplicationDocument, Document, Profile, User, utcnow
from thiqax.services.documents import DocumentIntegrationService
from thiqax.services.notifications import NotificationDispatcher
from thiqax.services.profiles import ProfileIntegrationService
from thiqax.workflow.types import Actor

logger = structlog.get_logger()

ENTITY_TYPES = ("document", "application", "user", "profile")


class ReconciliationService:
    def __init__(self, db: Session, notifications: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifications = notifications or NotificationDispatcher(db)
        self.documents = DocumentIntegrationService(db, self.notifications)
        self.profiles = ProfileIntegrationService(db, self.notifications)

    async def reconcile(
        self,
        entity_type: str,
        entity_id: str,
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> dict[str, Any]:
        """Bring everything derived from one entity back in line with it.

        Args:
            entity_type: document, application, user or profile
            entity_id: Id of that entity
            actor: Recorded on any history entries written

        Returns:
            Summary with the applications and KYC/completeness state touched.
        """
        now = now or utcnow()
        if entity_type not in ENTITY_TYPES:
            raise ValidationAPIError(
                f"Unknown entity type '{entity_type}'; expected one of {', '.join(ENTITY_TYPES)}",
                field="entityType",
            )

        summary: dict[str, Any] = {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "applications": [],
            "kyc": None,
            "completeness": None,
        }

        if entity_type == "document":
            document = self.db.query(Document).filter(Document.id == entity_id).first()
            if not document:
                raise NotFoundError("Document", entity_id)
            application_ids = self._applications_for_document(document)
            user_id = document.owner_id
            profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
            run_completeness = False
        elif entity_type == "application":
            application = self.db.query(Application).filter(Application.id == entity_id).first()
            if not application:
                raise NotFoundError("Application", entity_id)
            application_ids = [application.id]
            user_id = None
            profile = None
            run_completeness = False
        else:
            if entity_type == "profile":
                profile = self.db.query(Profile).filter(Profile.id == entity_id).first()
                if not profile:
                    raise NotFoundError("Profile", entity_id)
                user_id = profile.user_id
            else:
                if not self.db.query(User.id).filter(User.id == entity_id).first():
                    raise NotFoundError("User", entity_id)
                user_id = entity_id
                profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
            application_ids = [
                row.id
                for row in self.db.query(Application.id).filter(Application.applicant_id == user_id).all()
            ]
            run_completeness = True

        for application_id in application_ids:
            summary["applications"].append(await self._reconcile_application(application_id, actor, now))

        if profile is not None:
            before = profile.kyc_status
            profile = await self.profiles.sync_profile_verification_status(user_id, now=now)
            summary["kyc"] = {
                "profile_id": profile.id,
                "kyc_status": profile.kyc_status,
                "changed": profile.kyc_status != before,
            }
            if run_completeness:
                before_pct = profile.completion_percentage
                result = await self.profiles.update_profile_completeness(profile.id, now=now)
                summary["completeness"] = {
                    "profile_id": profile.id,
                    "is_complete": result["is_complete"],
                    "completion_percentage": result["completion_percentage"],
                    "changed": result["completion_percentage"] != before_pct,
                }
        elif user_id is not None:
            logger.info("No profile to reconcile", user_id=user_id)

        logger.info(
            "Reconciliation complete",
            entity_type=entity_type,
            entity_id=entity_id,
            applications=len(summary["applications"]),
            kyc_changed=bool(summary["kyc"] and summary["kyc"]["changed"]),
        )
        return summary

    def _applications_for_document(self, document: Document) -> list[str]:
        ids = [
            row.application_id
            for row in self.db.query(ApplicationDocument.application_id)
            .filter(ApplicationDocument.document_id == document.id)
            .all()
        ]
        if document.application_id and document.application_id not in ids:
            ids.append(document.application_id)
        return ids

    async def _reconcile_application(self, application_id: str, actor: Actor, now: datetime) -> dict[str, Any]:
        application = self.db.query(Application).filter(Application.id == application_id).first()
        before = application.document_status if application else None
        application = await self.documents.recompute_application_document_status(application_id, actor, now)
        if application is None:
            return {"application_id": application_id, "document_status": None, "changed": False}
        return {
            "application_id": application.id,
            "document_status": application.document_status,
            "changed": application.document_status != before,
        }
