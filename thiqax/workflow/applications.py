"""Application document-status aggregation, document linking and status changes."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from thiqax.errors import ForbiddenError, ValidationAPIError
from thiqax.workflow.types import (
    Actor,
    ApplicationSnapshot,
    ApplicationStatus,
    DocumentSnapshot,
    DocumentStatus,
    HistoryEntry,
    HistoryEvent,
    JobSnapshot,
    NotificationIntent,
    NotificationType,
    Role,
    VerificationStatus,
)

TERMINAL_STATUSES = frozenset({
    ApplicationStatus.ACCEPTED.value,
    ApplicationStatus.REJECTED.value,
    ApplicationStatus.WITHDRAWN.value,
})

# Roles allowed to move an application through the hiring pipeline
PIPELINE_ROLES = frozenset({Role.AGENT.value, Role.SPONSOR.value, Role.ADMIN.value})


@dataclass(frozen=True)
class ApplicationUpdate:
    """New application state plus what to record and who to tell."""

    application: ApplicationSnapshot
    changed: bool
    history: tuple[HistoryEntry, ...] = ()
    notifications: tuple[NotificationIntent, ...] = ()


@dataclass(frozen=True)
class LinkResult:
    application: ApplicationSnapshot
    documents: tuple[DocumentSnapshot, ...]
    added_ids: tuple[str, ...]
    history: HistoryEntry
    notifications: tuple[NotificationIntent, ...]


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def aggregate_document_status(statuses: Iterable[str]) -> DocumentStatus:
    """Rejected if any document is rejected, verified if all are, else pending."""
    statuses = list(statuses)
    if any(s == VerificationStatus.REJECTED.value for s in statuses):
        return DocumentStatus.REJECTED
    if statuses and all(s == VerificationStatus.VERIFIED.value for s in statuses):
        return DocumentStatus.VERIFIED
    return DocumentStatus.PENDING


def recompute_document_status(
    application: ApplicationSnapshot,
    documents: Sequence[DocumentSnapshot],
    actor: Actor,
    now: datetime,
) -> ApplicationUpdate:
    """Re-derive ``document_status`` from the linked documents.

    Only documents whose id is in the application's linked set count.
    Running this twice in a row changes nothing the second time.
    """
    linked = set(application.document_ids)
    status = aggregate_document_status(
        d.verification_status for d in documents if d.id in linked
    )
    if status.value == application.document_status:
        return ApplicationUpdate(application=application, changed=False)

    previous = application.document_status
    updated = replace(application, document_status=status.value)

    messages = {
        DocumentStatus.VERIFIED: "All documents for your application have been verified.",
        DocumentStatus.REJECTED: "One or more documents for your application were rejected. Please upload replacements.",
        DocumentStatus.PENDING: "Documents for your application are awaiting verification.",
    }
    return ApplicationUpdate(
        application=updated,
        changed=True,
        history=(
            HistoryEntry(
                status=status.value,
                timestamp=now,
                actor_id=actor.id,
                notes=f"Document status changed from {previous} to {status.value}",
                event=HistoryEvent.DOCUMENT_STATUS_CHANGED.value,
            ),
        ),
        notifications=(
            NotificationIntent(
                recipient_id=application.applicant_id,
                type=NotificationType.APPLICATION_STATUS_CHANGE.value,
                title="Application Documents Updated",
                message=messages[status],
                data={"applicationId": application.id, "documentStatus": status.value},
            ),
        ),
    )


def link_documents(
    application: ApplicationSnapshot,
    documents: Sequence[DocumentSnapshot],
    actor: Actor,
    now: datetime,
    job: Optional[JobSnapshot] = None,
    closed_application_ids: Iterable[str] = (),
) -> LinkResult:
    """Merge ``documents`` into the application's linked set.

    A document backs at most one open application. Documents still held by
    an application listed in ``closed_application_ids`` (accepted, rejected
    or withdrawn) move over to this one.

    Raises:
        ValidationAPIError: No documents, or the application is closed
        ForbiddenError: The actor may not touch this application, or a
            document belongs to someone other than the applicant
    """
    if not documents:
        raise ValidationAPIError("At least one document ID is required", field="documentIds")

    if actor.id != application.applicant_id and not actor.is_staff:
        raise ForbiddenError("Not authorized to add documents to this application")

    if is_terminal(application.status):
        raise ValidationAPIError(f"Cannot add documents to a {application.status} application")

    foreign = [d.id for d in documents if d.owner_id != application.applicant_id]
    if foreign:
        raise ForbiddenError("Documents do not belong to the applicant")

    closed = set(closed_application_ids)
    claimed = [
        d.id
        for d in documents
        if d.application_id and d.application_id != application.id and d.application_id not in closed
    ]
    if claimed:
        raise ValidationAPIError(
            f"Document(s) already linked to another application: {', '.join(claimed)}",
            field="documentIds",
        )

    existing = set(application.document_ids)
    added = []
    for document in documents:
        if document.id not in existing:
            existing.add(document.id)
            added.append(document.id)

    updated = replace(application, document_ids=application.document_ids + tuple(added))
    linked_documents = tuple(replace(d, application_id=application.id) for d in documents)

    notifications = [
        NotificationIntent(
            recipient_id=application.applicant_id,
            type=NotificationType.DOCUMENT_LINKED.value,
            title="Documents Linked to Application",
            message=f"{len(documents)} document(s) have been linked to your application.",
            data={"applicationId": application.id, "documentIds": [d.id for d in documents]},
        )
    ]
    if actor.id != application.applicant_id and job is not None and job.posted_by:
        notifications.append(
            NotificationIntent(
                recipient_id=job.posted_by,
                type=NotificationType.APPLICATION_DOCUMENTS_ADDED.value,
                title="Documents Added to Application",
                message=f'{len(documents)} document(s) were added to an application for "{job.title}".',
                data={"applicationId": application.id, "jobId": job.id},
            )
        )

    return LinkResult(
        application=updated,
        documents=linked_documents,
        added_ids=tuple(added),
        history=HistoryEntry(
            status=application.status,
            timestamp=now,
            actor_id=actor.id,
            notes=f"{len(added)} document(s) added",
            event=HistoryEvent.DOCUMENTS_ADDED.value,
        ),
        notifications=tuple(notifications),
    )


def transition_application(
    application: ApplicationSnapshot,
    new_status: str,
    actor: Actor,
    notes: Optional[str],
    now: datetime,
    job: Optional[JobSnapshot] = None,
) -> ApplicationUpdate:
    """Advance an application's hiring status.

    Applicants may only withdraw. Agents and admins may make any move;
    sponsors only on jobs they posted. Accepted, rejected and withdrawn
    applications are closed for good.
    """
    try:
        status = ApplicationStatus(new_status)
    except ValueError:
        raise ValidationAPIError(f"Invalid application status '{new_status}'", field="status")

    is_applicant = actor.id == application.applicant_id
    if is_applicant and actor.role == Role.JOB_SEEKER.value:
        if status is not ApplicationStatus.WITHDRAWN:
            raise ForbiddenError("Applicants may only withdraw their application")
    elif actor.role not in PIPELINE_ROLES:
        raise ForbiddenError("Not authorized to change this application's status")
    elif actor.role == Role.SPONSOR.value and (job is None or job.posted_by != actor.id):
        raise ForbiddenError("Sponsors may only manage applications for their own jobs")
    elif status is ApplicationStatus.WITHDRAWN and actor.role != Role.ADMIN.value:
        raise ForbiddenError("Only the applicant or an admin can withdraw an application")

    if is_terminal(application.status):
        raise ValidationAPIError(f"Application is {application.status} and cannot be reopened")
    if status is ApplicationStatus.SUBMITTED or status.value == application.status:
        raise ValidationAPIError(f"Cannot change application status from {application.status} to {status.value}")

    notes = (notes or "").strip() or None
    updated = replace(application, status=status.value)

    if is_applicant:
        recipient = job.posted_by if job is not None else None
        message = f'An applicant withdrew their application for "{job.title}".' if job else ""
    else:
        recipient = application.applicant_id
        message = f"Your application status has been updated to {status.value}."
    notifications = ()
    if recipient:
        notifications = (
            NotificationIntent(
                recipient_id=recipient,
                type=NotificationType.APPLICATION_STATUS_CHANGE.value,
                title="Application Status Updated",
                message=message,
                data={"applicationId": application.id, "status": status.value},
            ),
        )

    return ApplicationUpdate(
        application=updated,
        changed=True,
        history=(
            HistoryEntry(
                status=status.value,
                timestamp=now,
                actor_id=actor.id,
                notes=notes,
                event=HistoryEvent.STATUS_CHANGED.value,
            ),
        ),
        notifications=notifications,
    )
