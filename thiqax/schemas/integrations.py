"""Pydantic schemas for the integration endpoints."""

from datetime import datetime
from typing import Any, Optional

from thiqax.models import Application, Document, Profile
from thiqax.workflow.types import category_for

from .base import CamelModel


# Requests

class LinkDocumentsRequest(CamelModel):
    """Documents to attach to an application."""

    document_ids: list[str] = []


class VerificationUpdateRequest(CamelModel):
    """Verifier decision on a document."""

    verification_status: str
    verification_notes: Optional[str] = None
    rejection_reason: Optional[str] = None


class ApplicationStatusRequest(CamelModel):
    status: str
    notes: Optional[str] = None


# Responses

class DocumentResponse(CamelModel):
    id: str
    owner_id: str
    name: Optional[str] = None
    document_type: str
    category: str
    verification_status: str
    verification_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    expiry_notified: bool = False
    application_id: Optional[str] = None
    profile_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, document: Document) -> "DocumentResponse":
        return cls(
            id=document.id,
            owner_id=document.owner_id,
            name=document.name,
            document_type=document.document_type,
            category=category_for(document.document_type).value,
            verification_status=document.verification_status,
            verification_notes=document.verification_notes,
            rejection_reason=document.rejection_reason,
            verified_by=document.verified_by,
            verified_at=document.verified_at,
            expiry_date=document.expiry_date,
            expiry_notified=bool(document.expiry_notified),
            application_id=document.application_id,
            profile_id=document.profile_id,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )


class ApplicationHistoryItem(CamelModel):
    event: str
    status: Optional[str] = None
    actor_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class ApplicationResponse(CamelModel):
    id: str
    job_id: str
    applicant_id: str
    status: str
    document_status: str
    document_ids: list[str] = []
    applicant_data: Optional[dict[str, Any]] = None
    history: list[ApplicationHistoryItem] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, application: Application) -> "ApplicationResponse":
        return cls(
            id=application.id,
            job_id=application.job_id,
            applicant_id=application.applicant_id,
            status=application.status,
            document_status=application.document_status,
            document_ids=application.document_ids,
            applicant_data=application.applicant_data,
            history=[ApplicationHistoryItem.model_validate(h) for h in application.history],
            created_at=application.created_at,
            updated_at=application.updated_at,
        )


class VerificationResult(CamelModel):
    document: DocumentResponse
    application: Optional[ApplicationResponse] = None


class ExpirationSweepResponse(CamelModel):
    processed_count: int
    notified_count: int
    expired_count: int


class ProfileResponse(CamelModel):
    id: str
    user_id: str
    kyc_status: str
    kyc_breakdown: dict[str, Any] = {}
    missing_documents: list[str] = []
    last_kyc_update: Optional[datetime] = None
    profile_complete: bool = False
    completion_percentage: int = 0
    missing_fields: list[str] = []
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            id=profile.id,
            user_id=profile.user_id,
            kyc_status=profile.kyc_status,
            kyc_breakdown=profile.kyc_breakdown or {},
            missing_documents=profile.missing_documents or [],
            last_kyc_update=profile.last_kyc_update,
            profile_complete=bool(profile.profile_complete),
            completion_percentage=profile.completion_percentage or 0,
            missing_fields=profile.missing_fields or [],
            updated_at=profile.updated_at,
        )


class EligibilityResponse(CamelModel):
    eligible: bool
    reasons: list[str] = []
    missing_requirements: list[str] = []
    warnings: list[str] = []


class ProfileSyncResponse(CamelModel):
    updated_count: int
    applications: list[str] = []
    message: str


class CompletenessResponse(CamelModel):
    profile: ProfileResponse
    is_complete: bool
    completion_percentage: int
    missing_fields: list[str] = []


class VerifiedDocumentItem(CamelModel):
    id: str
    type: str
    category: str
    name: Optional[str] = None
    verified_at: Optional[datetime] = None


class KycStatusResponse(CamelModel):
    """Stored KYC status next to a fresh assessment of the user's documents."""

    user_id: str
    profile_id: str
    kyc_status: str
    derived_status: str
    in_sync: bool
    has_primary_identity: bool
    has_address_proof: bool
    missing_documents: list[str] = []
    breakdown: dict[str, Any] = {}
    verified_documents: list[VerifiedDocumentItem] = []
    last_kyc_update: Optional[datetime] = None


class ReconciledApplication(CamelModel):
    application_id: str
    document_status: Optional[str] = None
    changed: bool


class ReconciledKyc(CamelModel):
    profile_id: str
    kyc_status: str
    changed: bool


class ReconciledCompleteness(CamelModel):
    profile_id: str
    is_complete: bool
    completion_percentage: int
    changed: bool


class ReconcileResponse(CamelModel):
    entity_type: str
    entity_id: str
    applications: list[ReconciledApplication] = []
    kyc: Optional[ReconciledKyc] = None
    completeness: Optional[ReconciledCompleteness] = None
