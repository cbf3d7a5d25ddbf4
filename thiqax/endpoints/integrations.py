"""Integration endpoints: document verification, KYC, eligibility and sync.

Handlers resolve the caller into an ``Actor``, call the integration
services and wrap results in the success envelope. Errors raised by the
services are rendered by the global exception handlers.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from thiqax.config.database import get_db
from thiqax.schemas.base import SuccessResponse
from thiqax.schemas.integrations import (
    ApplicationResponse,
    ApplicationStatusRequest,
    CompletenessResponse,
    DocumentResponse,
    EligibilityResponse,
    ExpirationSweepResponse,
    KycStatusResponse,
    LinkDocumentsRequest,
    ProfileResponse,
    ProfileSyncResponse,
    ReconcileResponse,
    VerificationResult,
    VerificationUpdateRequest,
)
from thiqax.services.applications import ApplicationWorkflowService
from thiqax.services.documents import DocumentIntegrationService
from thiqax.services.profiles import ProfileIntegrationService
from thiqax.services.rbac import ensure_self_or_role, get_current_actor, require_role
from thiqax.services.reconciliation import ReconciliationService
from thiqax.workflow.types import Actor

logger = structlog.get_logger()
router = APIRouter()


@router.post(
    "/applications/{application_id}/documents",
    response_model=SuccessResponse[ApplicationResponse],
)
async def link_documents(
    application_id: str,
    request: LinkDocumentsRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(["jobSeeker", "agent", "admin"])),
):
    """Link the applicant's documents to an application."""
    service = DocumentIntegrationService(db)
    application = await service.link_documents_to_application(
        application_id, request.document_ids, actor
    )
    return SuccessResponse(data=ApplicationResponse.from_model(application))


@router.put(
    "/documents/{document_id}/verification",
    response_model=SuccessResponse[VerificationResult],
)
async def update_verification(
    document_id: str,
    request: VerificationUpdateRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(["admin", "agent"])),
):
    """Record a verifier's decision on a document."""
    service = DocumentIntegrationService(db)
    result = await service.update_verification_status(
        document_id,
        request.verification_status,
        actor,
        notes=request.verification_notes,
        rejection_reason=request.rejection_reason,
    )
    application = result["application"]
    return SuccessResponse(
        data=VerificationResult(
            document=DocumentResponse.from_model(result["document"]),
            application=ApplicationResponse.from_model(application) if application else None,
        )
    )


@router.post(
    "/documents/check-expirations",
    response_model=SuccessResponse[ExpirationSweepResponse],
)
async def check_expirations(
    days_threshold: Optional[int] = Query(None, alias="daysThreshold"),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(["admin"])),
):
    """Run the document expiry sweep once."""
    service = DocumentIntegrationService(db)
    result = await service.check_document_expirations(days_threshold=days_threshold)
    logger.info("Expiration sweep triggered", actor_id=actor.id, **result)
    return SuccessResponse(data=ExpirationSweepResponse.model_validate(result))


@router.delete(
    "/documents/{document_id}",
    response_model=SuccessResponse[DocumentResponse],
)
async def remove_document(
    document_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Soft-remove a document no application references."""
    service = DocumentIntegrationService(db)
    document = await service.remove_document(document_id, actor)
    return SuccessResponse(data=DocumentResponse.from_model(document))


@router.put(
    "/applications/{application_id}/status",
    response_model=SuccessResponse[ApplicationResponse],
)
async def update_application_status(
    application_id: str,
    request: ApplicationStatusRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(["jobSeeker", "agent", "sponsor", "admin"])),
):
    """Advance, reject or withdraw an application."""
    service = ApplicationWorkflowService(db)
    application = await service.update_application_status(
        application_id, request.status, actor, notes=request.notes
    )
    return SuccessResponse(data=ApplicationResponse.from_model(application))


@router.post(
    "/users/{user_id}/sync-verification",
    response_model=SuccessResponse[ProfileResponse],
)
async def sync_verification(
    user_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(["admin", "agent"])),
):
    """Recompute a user's KYC status from their verified documents."""
    service = ProfileIntegrationService(db)
    profile = await service.sync_profile_verification_status(user_id)
    return SuccessResponse(data=ProfileResponse.from_model(profile))


@router.get(
    "/users/{user_id}/kyc-status",
    response_model=SuccessResponse[KycStatusResponse],
)
async def get_kyc_status(
    user_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """KYC status of a user; readable by the user themselves and staff."""
    ensure_self_or_role(actor, user_id, "Not authorized to view this user's KYC status")
    service = ProfileIntegrationService(db)
    return SuccessResponse(data=KycStatusResponse.model_validate(service.get_kyc_status(user_id)))


@router.get(
    "/profiles/{profile_id}/jobs/{job_id}/eligibility",
    response_model=SuccessResponse[EligibilityResponse],
)
async def check_eligibility(
    profile_id: str,
    job_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Check whether a profile may apply to a job. Read-only."""
    service = ProfileIntegrationService(db)
    profile = service.get_profile(profile_id)
    ensure_self_or_role(actor, profile.user_id, "Not authorized to check eligibility for this profile")
    result = await service.check_application_eligibility(profile_id, job_id)
    return SuccessResponse(data=EligibilityResponse.model_validate(result))


@router.post(
    "/profiles/{profile_id}/sync-applications",
    response_model=SuccessResponse[ProfileSyncResponse],
)
async def sync_applications(
    profile_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Copy profile data onto the user's open applications."""
    service = ProfileIntegrationService(db)
    profile = service.get_profile(profile_id)
    ensure_self_or_role(actor, profile.user_id, "Not authorized to sync this profile")
    result = await service.sync_profile_with_applications(profile_id)
    return SuccessResponse(data=ProfileSyncResponse.model_validate(result))


@router.post(
    "/profiles/{profile_id}/update-completeness",
    response_model=SuccessResponse[CompletenessResponse],
)
async def update_completeness(
    profile_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    """Recompute profile completeness."""
    service = ProfileIntegrationService(db)
    profile = service.get_profile(profile_id)
    ensure_self_or_role(actor, profile.user_id, "Not authorized to update this profile")
    result = await service.update_profile_completeness(profile_id)
    return SuccessResponse(
        data=CompletenessResponse(
            profile=ProfileResponse.from_model(result["profile"]),
            is_complete=result["is_complete"],
            completion_percentage=result["completion_percentage"],
            missing_fields=result["missing_fields"],
        )
    )


@router.post(
    "/reconcile/{entity_type}/{entity_id}",
    response_model=SuccessResponse[ReconcileResponse],
)
async def reconcile(
    entity_type: str,
    entity_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_role(["admin", "agent"])),
):
    """Re-run every recomputation derived from one entity."""
    service = ReconciliationService(db)
    summary = await service.reconcile(entity_type, entity_id, actor)
    return SuccessResponse(data=ReconcileResponse.model_validate(summary))
