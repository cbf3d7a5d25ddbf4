"""Document verification transitions and expiry checks.

A document moves forward through:

    pending -> under-review -> verified -> rejected -> expired

Steps may be skipped (an admin can reject a pending upload outright) but
never reversed. Pending is only ever the status a document is uploaded
with: it is a valid status value, but every move to it is a move back, so
it is refused. Rejected and expired are final; fixing either means
uploading a new document.
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from thiqax.errors import ValidationAPIError
from thiqax.workflow.types import (
    Actor,
    DocumentCategory,
    DocumentSnapshot,
    HistoryEntry,
    KYC_CATEGORIES,
    NotificationIntent,
    NotificationType,
    VerificationStatus,
)

STATUS_ORDER = {
    VerificationStatus.PENDING: 0,
    VerificationStatus.UNDER_REVIEW: 1,
    VerificationStatus.VERIFIED: 2,
    VerificationStatus.REJECTED: 3,
    VerificationStatus.EXPIRED: 4,
}

FINAL_STATUSES = frozenset({VerificationStatus.REJECTED, VerificationStatus.EXPIRED})

CATEGORY_LABELS = {
    DocumentCategory.IDENTITY: "identity document",
    DocumentCategory.ADDRESS: "proof of address",
    DocumentCategory.EDUCATION: "education document",
    DocumentCategory.PROFESSIONAL: "professional document",
    DocumentCategory.OTHER: "document",
}

STATUS_PHRASES = {
    VerificationStatus.PENDING: "is waiting for review",
    VerificationStatus.UNDER_REVIEW: "is now under review",
    VerificationStatus.VERIFIED: "has been verified",
    VerificationStatus.REJECTED: "has been rejected",
    VerificationStatus.EXPIRED: "has expired",
}


@dataclass(frozen=True)
class DocumentTransition:
    """Result of moving a document to a new verification status."""

    document: DocumentSnapshot
    previous_status: str
    history: HistoryEntry
    notifications: tuple[NotificationIntent, ...]
    needs_kyc_sync: bool


def parse_verification_status(value: str) -> VerificationStatus:
    """Parse a status string, raising a validation error for unknown values."""
    try:
        return VerificationStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in VerificationStatus)
        raise ValidationAPIError(
            f"Invalid verification status '{value}' (expected one of: {allowed})",
            field="verificationStatus",
        )


def can_transition(current: str, target: VerificationStatus) -> bool:
    """True if a document in ``current`` may move to ``target``."""
    current = VerificationStatus(current)
    if current in FINAL_STATUSES:
        return False
    return STATUS_ORDER[target] > STATUS_ORDER[current]


def is_final(status: str) -> bool:
    return VerificationStatus(status) in FINAL_STATUSES


def status_notice(document: DocumentSnapshot, notes: Optional[str] = None) -> NotificationIntent:
    """Owner notification for a document's current status."""
    status = VerificationStatus(document.verification_status)
    category = document.category
    message = f'Your {CATEGORY_LABELS[category]} "{document.label}" {STATUS_PHRASES[status]}.'

    if status is VerificationStatus.REJECTED and notes:
        message += f" Reason: {notes}"
    elif status is VerificationStatus.VERIFIED and category in KYC_CATEGORIES:
        message += " It now counts towards your identity (KYC) verification."
    elif status is VerificationStatus.EXPIRED:
        message += " Please upload a renewed copy."

    notification_type = (
        NotificationType.DOCUMENT_EXPIRED
        if status is VerificationStatus.EXPIRED
        else NotificationType.DOCUMENT_VERIFICATION
    )
    return NotificationIntent(
        recipient_id=document.owner_id,
        type=notification_type.value,
        title="Document Verification Update",
        message=message,
        data={
            "documentId": document.id,
            "applicationId": document.application_id,
            "status": status.value,
        },
    )


def transition_document(
    document: DocumentSnapshot,
    new_status: str,
    actor: Actor,
    notes: Optional[str],
    now: datetime,
    rejection_reason: Optional[str] = None,
) -> DocumentTransition:
    """Move a document to ``new_status``.

    Args:
        document: Current state of the document
        new_status: Target verification status
        actor: Verifier (or the system actor for the expiry sweep)
        notes: Verification notes; required when rejecting
        now: Timestamp for verified_at and the history entry
        rejection_reason: Short reason; used as notes when notes are blank

    Raises:
        ValidationAPIError: Unknown status, missing rejection notes, or a
            move out of a final status, backward or to the same status.
            Moves to pending always land here.
    """
    status = parse_verification_status(new_status)
    notes = (notes or "").strip()
    reason = (rejection_reason or "").strip()

    if status is VerificationStatus.REJECTED:
        if not notes and not reason:
            raise ValidationAPIError(
                "Verification notes are required when rejecting a document",
                field="verificationNotes",
            )
        notes = notes or reason

    if not can_transition(document.verification_status, status):
        raise ValidationAPIError(
            f"Cannot change document status from {document.verification_status} to {status.value}",
            field="verificationStatus",
        )

    updated = replace(
        document,
        verification_status=status.value,
        verification_notes=notes or None,
        rejection_reason=(reason or notes) if status is VerificationStatus.REJECTED else None,
        verified_by=actor.id if status in (VerificationStatus.VERIFIED, VerificationStatus.REJECTED) else None,
        verified_at=now if status is VerificationStatus.VERIFIED else None,
    )

    return DocumentTransition(
        document=updated,
        previous_status=document.verification_status,
        history=HistoryEntry(
            status=status.value,
            timestamp=now,
            actor_id=actor.id,
            notes=notes or None,
        ),
        notifications=(status_notice(updated, notes),),
        needs_kyc_sync=(
            document.category in KYC_CATEGORIES
            and status in (VerificationStatus.VERIFIED, VerificationStatus.REJECTED, VerificationStatus.EXPIRED)
        ),
    )


def is_expiring(document: DocumentSnapshot, now: datetime, threshold_days: int) -> bool:
    """Expiry falls in [now, now + threshold] and the owner hasn't been told yet."""
    if document.expiry_date is None or document.expiry_notified:
        return False
    if is_final(document.verification_status):
        return False
    return now <= document.expiry_date <= now + timedelta(days=threshold_days)


def is_expired(document: DocumentSnapshot, now: datetime) -> bool:
    """Expiry date has passed on a document that is still open.

    Rejected documents stay rejected; they are never rewritten to expired.
    """
    return (
        document.expiry_date is not None
        and document.expiry_date < now
        and not is_final(document.verification_status)
    )


def days_until_expiry(document: DocumentSnapshot, now: datetime) -> int:
    return math.ceil((document.expiry_date - now).total_seconds() / 86400)


def expiry_notices(
    document: DocumentSnapshot,
    now: datetime,
    poster_id: Optional[str] = None,
) -> tuple[NotificationIntent, ...]:
    """Notifications for a document about to expire.

    The owner is always told; the poster of the job the document was
    submitted for is told as well when known.
    """
    days = days_until_expiry(document, now)
    notices = [
        NotificationIntent(
            recipient_id=document.owner_id,
            type=NotificationType.DOCUMENT_EXPIRING.value,
            title="Document Expiring Soon",
            message=f'Your document "{document.label}" will expire in {days} days.',
            data={"documentId": document.id, "expiryDate": document.expiry_date.isoformat()},
        )
    ]
    if poster_id and poster_id != document.owner_id:
        notices.append(
            NotificationIntent(
                recipient_id=poster_id,
                type=NotificationType.DOCUMENT_EXPIRING.value,
                title="Applicant Document Expiring Soon",
                message=f"A document submitted with an application will expire in {days} days.",
                data={
                    "documentId": document.id,
                    "applicationId": document.application_id,
                    "expiryDate": document.expiry_date.isoformat(),
                },
            )
        )
    return tuple(notices)


def expiry_note(document: DocumentSnapshot) -> str:
    """System-authored notes for a sweep-driven expiry."""
    return f"Expired automatically on {document.expiry_date.date().isoformat()}"
