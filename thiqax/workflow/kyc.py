"""KYC status derivation.

A profile's KYC status is never set directly. It is recomputed from the
owner's verified documents:

- VERIFIED: at least one verified identity document and one verified
  proof of address
- PARTIAL: identity verified, address missing
- PENDING: anything else

UNVERIFIED only appears on profiles that have never been reconciled.
Education and professional documents are counted for reporting but never
gate KYC.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterable

from thiqax.workflow.types import (
    DocumentCategory,
    DocumentSnapshot,
    KycStatus,
    NotificationIntent,
    NotificationType,
    ProfileSnapshot,
    VerificationStatus,
)

MISSING_IDENTITY = "Primary Identity Document (Passport, National ID, or Driver's License)"
MISSING_ADDRESS = "Proof of Address"

BREAKDOWN_CATEGORIES = (
    DocumentCategory.IDENTITY,
    DocumentCategory.ADDRESS,
    DocumentCategory.EDUCATION,
    DocumentCategory.PROFESSIONAL,
)


@dataclass(frozen=True)
class KycAssessment:
    status: KycStatus
    has_identity: bool
    has_address: bool
    breakdown: dict[str, Any]
    missing_documents: tuple[str, ...]
    verified_documents: tuple[DocumentSnapshot, ...]

    @property
    def has_valid_kyc(self) -> bool:
        return self.has_identity and self.has_address


@dataclass(frozen=True)
class KycSync:
    profile: ProfileSnapshot
    changed: bool
    previous_status: str
    notifications: tuple[NotificationIntent, ...] = ()

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.profile.kyc_status


def assess_kyc(documents: Iterable[DocumentSnapshot]) -> KycAssessment:
    """Derive KYC from a user's documents; non-verified ones are ignored."""
    verified = tuple(
        d for d in documents if d.verification_status == VerificationStatus.VERIFIED.value
    )

    by_category: dict[DocumentCategory, list[str]] = {c: [] for c in BREAKDOWN_CATEGORIES}
    for document in verified:
        if document.category in by_category:
            by_category[document.category].append(document.id)

    has_identity = bool(by_category[DocumentCategory.IDENTITY])
    has_address = bool(by_category[DocumentCategory.ADDRESS])

    if has_identity and has_address:
        status = KycStatus.VERIFIED
    elif has_identity:
        status = KycStatus.PARTIAL
    else:
        status = KycStatus.PENDING

    missing = []
    if not has_identity:
        missing.append(MISSING_IDENTITY)
    if not has_address:
        missing.append(MISSING_ADDRESS)

    breakdown = {
        category.value: {"verified": len(ids), "documentIds": sorted(ids)}
        for category, ids in by_category.items()
    }
    return KycAssessment(
        status=status,
        has_identity=has_identity,
        has_address=has_address,
        breakdown=breakdown,
        missing_documents=tuple(missing),
        verified_documents=verified,
    )


def kyc_notice(profile: ProfileSnapshot, previous: str, assessment: KycAssessment) -> NotificationIntent:
    """Message for a KYC status change, worded by direction."""
    missing = ", ".join(assessment.missing_documents)
    if assessment.status is KycStatus.VERIFIED:
        title = "KYC Verification Complete"
        message = "Your identity has been verified successfully. You can now apply for jobs."
    elif previous == KycStatus.VERIFIED.value:
        title = "KYC Verification No Longer Valid"
        message = (
            "Your KYC verification is no longer complete and job applications are on hold. "
            f"Missing documents: {missing}"
        )
    elif assessment.status is KycStatus.PARTIAL:
        title = "Identity Verified"
        message = f"Your identity document has been verified. To complete KYC, please provide: {missing}"
    else:
        title = "KYC Verification Incomplete"
        message = f"Your KYC verification is incomplete. Missing documents: {missing}"

    return NotificationIntent(
        recipient_id=profile.user_id,
        type=NotificationType.KYC_VERIFICATION.value,
        title=title,
        message=message,
        data={"profileId": profile.id, "kycStatus": assessment.status.value, "previousStatus": previous},
    )


def apply_kyc(profile: ProfileSnapshot, assessment: KycAssessment, now: datetime) -> KycSync:
    """Write an assessment onto a profile.

    Returns the profile unchanged (and no notifications) when nothing
    differs, so repeated syncs are no-ops.
    """
    previous = profile.kyc_status
    unchanged = (
        previous == assessment.status.value
        and profile.kyc_breakdown == assessment.breakdown
        and tuple(profile.missing_documents) == assessment.missing_documents
    )
    if unchanged:
        return KycSync(profile=profile, changed=False, previous_status=previous)

    updated = replace(
        profile,
        kyc_status=assessment.status.value,
        kyc_breakdown=assessment.breakdown,
        missing_documents=assessment.missing_documents,
        last_kyc_update=now,
    )
    notifications = ()
    if previous != assessment.status.value:
        notifications = (kyc_notice(profile, previous, assessment),)

    return KycSync(profile=updated, changed=True, previous_status=previous, notifications=notifications)
