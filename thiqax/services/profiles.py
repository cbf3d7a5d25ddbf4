"""Profile integration: KYC sync, eligibility, completeness, application sync."""

from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy.orm import Session

from thiqax.errors import NotFoundError
from thiqax.models import Application, Document, Job, Profile, User, utcnow
from thiqax.services.notifications import NotificationDispatcher
from thiqax.services.snapshots import (
    apply_profile_completeness,
    apply_profile_kyc,
    document_snapshot,
    job_snapshot,
    profile_snapshot,
)
from thiqax.workflow.applications import TERMINAL_STATUSES
from thiqax.workflow.eligibility import EligibilityResult, check_eligibility
from thiqax.workflow.kyc import KycAssessment, apply_kyc, assess_kyc
from thiqax.workflow.profiles import apply_completeness, applicant_data, assess_completeness
from thiqax.workflow.types import KycStatus, VerificationStatus

logger = structlog.get_logger()


class ProfileIntegrationService:
    """Keeps profiles consistent with documents and applications."""

    def __init__(self, db: Session, notifications: Optional[NotificationDispatcher] = None):
        self.db = db
        self.notifications = notifications or NotificationDispatcher(db)

    def get_profile(self, profile_id: str) -> Profile:
        profile = self.db.query(Profile).filter(Profile.id == profile_id).first()
        if not profile:
            raise NotFoundError("Profile", profile_id)
        return profile

    def get_profile_for_user(self, user_id: str) -> Profile:
        profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
        if not profile:
            raise NotFoundError("Profile", user_id)
        return profile

    def _assess(self, user_id: str) -> KycAssessment:
        documents = (
            self.db.query(Document)
            .filter(
                Document.owner_id == user_id,
                Document.verification_status == VerificationStatus.VERIFIED.value,
                Document.removed_at.is_(None),
            )
            .all()
        )
        return assess_kyc(document_snapshot(d) for d in documents)

    async def sync_profile_verification_status(self, user_id: str, now: Optional[datetime] = None) -> Profile:
        """Recompute a user's KYC status from their verified documents.

        Writes only when something changed, so calling this twice in a row
        leaves the profile alone and sends nothing the second time.
        """
        now = now or utcnow()
        profile = self.get_profile_for_user(user_id)
        assessment = self._assess(user_id)
        sync = apply_kyc(profile_snapshot(profile), assessment, now)

        kyc_verified = assessment.status is KycStatus.VERIFIED
        user = self.db.query(User).filter(User.id == user_id).first()
        mirror_stale = user is not None and bool(user.kyc_verified) != kyc_verified

        if sync.changed:
            apply_profile_kyc(profile, sync.profile)
        if mirror_stale:
            user.kyc_verified = kyc_verified

        if not (sync.changed or mirror_stale):
            logger.debug("Profile KYC unchanged", user_id=user_id, kyc_status=profile.kyc_status)
            return profile

        self.db.commit()
        self.db.refresh(profile)
        logger.info(
            "Profile KYC status synced",
            user_id=user_id,
            profile_id=profile.id,
            previous_status=sync.previous_status,
            kyc_status=profile.kyc_status,
        )

        await self.notifications.send_all(sync.notifications)
        return profile

    def get_kyc_status(self, user_id: str) -> dict[str, Any]:
        """Report stored and freshly derived KYC status without writing anything."""
        profile = self.get_profile_for_user(user_id)
        assessment = self._assess(user_id)
        return {
            "user_id": user_id,
            "profile_id": profile.id,
            "kyc_status": profile.kyc_status,
            "derived_status": assessment.status.value,
            "in_sync": profile.kyc_status == assessment.status.value,
            "has_primary_identity": assessment.has_identity,
            "has_address_proof": assessment.has_address,
            "missing_documents": list(assessment.missing_documents),
            "breakdown": assessment.breakdown,
            "verified_documents": [
                {
                    "id": d.id,
                    "type": d.document_type,
                    "category": d.category.value,
                    "name": d.name,
                    "verified_at": d.verified_at,
                }
                for d in assessment.verified_documents
            ],
            "last_kyc_update": profile.last_kyc_update,
        }

    async def check_application_eligibility(
        self,
        profile_id: str,
        job_id: str,
        now: Optional[datetime] = None,
    ) -> EligibilityResult:
        """Read-only eligibility check of a profile against a job."""
        profile = self.get_profile(profile_id)
        job = self.db.query(Job).filter(Job.id == job_id).first()
        if not job:
            raise NotFoundError("Job", job_id)
        user = self.db.query(User).filter(User.id == profile.user_id).first()
        if not user:
            raise NotFoundError("User", profile.user_id)

        result = check_eligibility(profile_snapshot(profile), user.role, job_snapshot(job), now or utcnow())
        logger.info(
            "Eligibility checked",
            profile_id=profile_id,
            job_id=job_id,
            eligible=result.eligible,
            reasons=len(result.reasons),
            warnings=len(result.warnings),
        )
        return result

    async def update_profile_completeness(self, profile_id: str, now: Optional[datetime] = None) -> dict[str, Any]:
        """Recompute completion flag, percentage and missing fields."""
        now = now or utcnow()
        profile = self.get_profile(profile_id)
        snapshot = profile_snapshot(profile)
        assessment = assess_completeness(snapshot)
        update = apply_completeness(snapshot, assessment)

        apply_profile_completeness(profile, update.profile)
        profile.completeness_checked_at = now
        self.db.commit()
        self.db.refresh(profile)

        logger.info(
            "Profile completeness updated",
            profile_id=profile_id,
            complete=assessment.is_complete,
            percentage=assessment.percentage,
        )
        await self.notifications.send_all(update.notifications)

        return {
            "profile": profile,
            "is_complete": assessment.is_complete,
            "completion_percentage": assessment.percentage,
            "missing_fields": list(assessment.missing_fields),
        }

    async def sync_profile_with_applications(self, profile_id: str, now: Optional[datetime] = None) -> dict[str, Any]:
        """Copy current profile data onto the user's open applications."""
        now = now or utcnow()
        profile = self.get_profile(profile_id)
        applications = (
            self.db.query(Application)
            .filter(
                Application.applicant_id == profile.user_id,
                Application.status.notin_(sorted(TERMINAL_STATUSES)),
            )
            .all()
        )
        if not applications:
            return {"updated_count": 0, "applications": [], "message": "No active applications to sync"}

        data = applicant_data(profile_snapshot(profile), now)
        for application in applications:
            application.applicant_data = data
        self.db.commit()

        logger.info("Profile synced to applications", profile_id=profile_id, count=len(applications))
        return {
            "updated_count": len(applications),
            "applications": [a.id for a in applications],
            "message": f"Successfully synced profile data with {len(applications)} applications",
        }
