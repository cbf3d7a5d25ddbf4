"""Conversion between ORM rows and workflow snapshots.

The integration services read rows into snapshots, hand them to the
workflow, then copy the returned snapshots back onto the rows.
"""

from thiqax.models import (
    Application,
    ApplicationDocument,
    ApplicationHistory,
    Document,
    DocumentHistory,
    Job,
    Profile,
)
from thiqax.workflow.types import (
    ApplicationSnapshot,
    DocumentSnapshot,
    HistoryEntry,
    JobSnapshot,
    ProfileSnapshot,
)


def document_snapshot(document: Document) -> DocumentSnapshot:
    return DocumentSnapshot(
        id=document.id,
        owner_id=document.owner_id,
        document_type=document.document_type,
        verification_status=document.verification_status,
        name=document.name or "",
        verification_notes=document.verification_notes,
        rejection_reason=document.rejection_reason,
        verified_by=document.verified_by,
        verified_at=document.verified_at,
        expiry_date=document.expiry_date,
        expiry_notified=bool(document.expiry_notified),
        application_id=document.application_id,
        profile_id=document.profile_id,
    )


def apply_document(document: Document, snapshot: DocumentSnapshot) -> None:
    document.verification_status = snapshot.verification_status
    document.verification_notes = snapshot.verification_notes
    document.rejection_reason = snapshot.rejection_reason
    document.verified_by = snapshot.verified_by
    document.verified_at = snapshot.verified_at
    document.expiry_notified = snapshot.expiry_notified
    document.application_id = snapshot.application_id


def add_document_history(document: Document, entry: HistoryEntry) -> None:
    document.history.append(
        DocumentHistory(
            status=entry.status,
            notes=entry.notes,
            actor_id=entry.actor_id,
            created_at=entry.timestamp,
        )
    )


def application_snapshot(application: Application) -> ApplicationSnapshot:
    return ApplicationSnapshot(
        id=application.id,
        job_id=application.job_id,
        applicant_id=application.applicant_id,
        status=application.status,
        document_status=application.document_status,
        document_ids=tuple(application.document_ids),
    )


def apply_application(application: Application, snapshot: ApplicationSnapshot) -> None:
    application.status = snapshot.status
    application.document_status = snapshot.document_status

    linked = set(application.document_ids)
    for document_id in snapshot.document_ids:
        if document_id not in linked:
            application.document_links.append(ApplicationDocument(document_id=document_id))
            linked.add(document_id)


def add_application_history(application: Application, entry: HistoryEntry) -> None:
    application.history.append(
        ApplicationHistory(
            event=entry.event,
            status=entry.status,
            actor_id=entry.actor_id,
            notes=entry.notes,
            created_at=entry.timestamp,
        )
    )


def job_snapshot(job: Job) -> JobSnapshot:
    return JobSnapshot(
        id=job.id,
        title=job.title,
        posted_by=job.posted_by,
        required_skills=tuple(job.required_skills or ()),
        experience_years=job.experience_years or 0,
    )


def profile_snapshot(profile: Profile) -> ProfileSnapshot:
    return ProfileSnapshot(
        id=profile.id,
        user_id=profile.user_id,
        personal_info=dict(profile.personal_info or {}),
        education=tuple(profile.education or ()),
        experience=tuple(profile.experience or ()),
        skills=tuple(profile.skills or ()),
        photo_url=profile.photo_url,
        profile_complete=bool(profile.profile_complete),
        completion_percentage=profile.completion_percentage or 0,
        missing_fields=tuple(profile.missing_fields or ()),
        kyc_status=profile.kyc_status,
        kyc_breakdown=dict(profile.kyc_breakdown or {}),
        missing_documents=tuple(profile.missing_documents or ()),
        last_kyc_update=profile.last_kyc_update,
    )


def apply_profile_kyc(profile: Profile, snapshot: ProfileSnapshot) -> None:
    profile.kyc_status = snapshot.kyc_status
    profile.kyc_breakdown = dict(snapshot.kyc_breakdown)
    profile.missing_documents = list(snapshot.missing_documents)
    profile.last_kyc_update = snapshot.last_kyc_update


def apply_profile_completeness(profile: Profile, snapshot: ProfileSnapshot) -> None:
    profile.profile_complete = snapshot.profile_complete
    profile.completion_percentage = snapshot.completion_percentage
    profile.missing_fields = list(snapshot.missing_fields)
