"""Value types shared by the verification workflow.

Snapshots are frozen; workflow functions return new snapshots via
``dataclasses.replace`` instead of mutating their inputs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class DocumentType(str, Enum):
    PASSPORT = "passport"
    NATIONAL_ID = "national-id"
    DRIVER_LICENSE = "driver-license"
    ADDRESS_PROOF = "address-proof"
    UTILITY_BILL = "utility-bill"
    BANK_STATEMENT = "bank-statement"
    RENTAL_AGREEMENT = "rental-agreement"
    DIPLOMA = "diploma"
    DEGREE = "degree"
    CERTIFICATE = "certificate"
    EMPLOYMENT_LETTER = "employment-letter"
    REFERENCE_LETTER = "reference-letter"
    WORK_PERMIT = "work-permit"
    VISA = "visa"
    OTHER = "other"


class DocumentCategory(str, Enum):
    IDENTITY = "identity"
    ADDRESS = "address"
    EDUCATION = "education"
    PROFESSIONAL = "professional"
    OTHER = "other"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    UNDER_REVIEW = "under-review"
    VERIFIED = "verified"
    REJECTED = "rejected"
    EXPIRED = "expired"


class KycStatus(str, Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    PARTIAL = "partial"
    VERIFIED = "verified"


class ApplicationStatus(str, Enum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under-review"
    SHORTLISTED = "shortlisted"
    INTERVIEW_SCHEDULED = "interview-scheduled"
    OFFERED = "offered"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class DocumentStatus(str, Enum):
    """Aggregate status of an application's linked documents."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Role(str, Enum):
    JOB_SEEKER = "jobSeeker"
    AGENT = "agent"
    SPONSOR = "sponsor"
    ADMIN = "admin"


class HistoryEvent(str, Enum):
    STATUS_CHANGED = "STATUS_CHANGED"
    DOCUMENT_STATUS_CHANGED = "DOCUMENT_STATUS_CHANGED"
    DOCUMENTS_ADDED = "DOCUMENTS_ADDED"


class NotificationType(str, Enum):
    DOCUMENT_VERIFICATION = "DOCUMENT_VERIFICATION"
    DOCUMENT_LINKED = "DOCUMENT_LINKED"
    APPLICATION_DOCUMENTS_ADDED = "APPLICATION_DOCUMENTS_ADDED"
    APPLICATION_STATUS_CHANGE = "APPLICATION_STATUS_CHANGE"
    KYC_VERIFICATION = "KYC_VERIFICATION"
    DOCUMENT_EXPIRING = "DOCUMENT_EXPIRING"
    DOCUMENT_EXPIRED = "DOCUMENT_EXPIRED"
    PROFILE_COMPLETE = "PROFILE_COMPLETE"


DOCUMENT_CATEGORIES: dict[str, DocumentCategory] = {
    DocumentType.PASSPORT.value: DocumentCategory.IDENTITY,
    DocumentType.NATIONAL_ID.value: DocumentCategory.IDENTITY,
    DocumentType.DRIVER_LICENSE.value: DocumentCategory.IDENTITY,
    DocumentType.ADDRESS_PROOF.value: DocumentCategory.ADDRESS,
    DocumentType.UTILITY_BILL.value: DocumentCategory.ADDRESS,
    DocumentType.BANK_STATEMENT.value: DocumentCategory.ADDRESS,
    DocumentType.RENTAL_AGREEMENT.value: DocumentCategory.ADDRESS,
    DocumentType.DIPLOMA.value: DocumentCategory.EDUCATION,
    DocumentType.DEGREE.value: DocumentCategory.EDUCATION,
    DocumentType.CERTIFICATE.value: DocumentCategory.EDUCATION,
    DocumentType.EMPLOYMENT_LETTER.value: DocumentCategory.PROFESSIONAL,
    DocumentType.REFERENCE_LETTER.value: DocumentCategory.PROFESSIONAL,
    DocumentType.WORK_PERMIT.value: DocumentCategory.PROFESSIONAL,
    DocumentType.VISA.value: DocumentCategory.PROFESSIONAL,
}

# Categories whose verified documents decide KYC
KYC_CATEGORIES = frozenset({DocumentCategory.IDENTITY, DocumentCategory.ADDRESS})


def category_for(document_type: str) -> DocumentCategory:
    """Map a document type to its category; unknown types are OTHER."""
    return DOCUMENT_CATEGORIES.get(document_type, DocumentCategory.OTHER)


@dataclass(frozen=True)
class Actor:
    """Who is performing an operation."""

    id: str
    role: str

    @property
    def is_staff(self) -> bool:
        return self.role in (Role.ADMIN, Role.AGENT)


@dataclass(frozen=True)
class NotificationIntent:
    """A notification the workflow wants sent; delivery is someone else's job."""

    recipient_id: str
    type: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class HistoryEntry:
    """One row of a document or application audit trail."""

    status: str
    timestamp: datetime
    actor_id: Optional[str] = None
    notes: Optional[str] = None
    event: Optional[str] = None


@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    owner_id: str
    document_type: str
    verification_status: str = VerificationStatus.PENDING.value
    name: str = ""
    verification_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    expiry_notified: bool = False
    application_id: Optional[str] = None
    profile_id: Optional[str] = None

    @property
    def category(self) -> DocumentCategory:
        return category_for(self.document_type)

    @property
    def label(self) -> str:
        return self.name or self.document_type.replace("-", " ")


@dataclass(frozen=True)
class ApplicationSnapshot:
    id: str
    job_id: str
    applicant_id: str
    status: str = ApplicationStatus.SUBMITTED.value
    document_status: str = DocumentStatus.PENDING.value
    document_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class JobSnapshot:
    id: str
    title: str
    posted_by: Optional[str] = None
    required_skills: tuple[str, ...] = ()
    experience_years: int = 0


@dataclass(frozen=True)
class ProfileSnapshot:
    id: str
    user_id: str
    personal_info: dict[str, Any] = field(default_factory=dict)
    education: tuple[dict[str, Any], ...] = ()
    experience: tuple[dict[str, Any], ...] = ()
    skills: tuple[str, ...] = ()
    photo_url: Optional[str] = None
    profile_complete: bool = False
    completion_percentage: int = 0
    missing_fields: tuple[str, ...] = ()
    kyc_status: str = KycStatus.UNVERIFIED.value
    kyc_breakdown: dict[str, Any] = field(default_factory=dict)
    missing_documents: tuple[str, ...] = ()
    last_kyc_update: Optional[datetime] = None
