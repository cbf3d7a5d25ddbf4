"""Pydantic schemas for API request/response validation.

All schemas use CamelCase for JSON field names (via alias_generator).
"""

from .base import CamelModel, SuccessResponse, ErrorResponse
from .integrations import (
    LinkDocumentsRequest,
    VerificationUpdateRequest,
    ApplicationStatusRequest,
    DocumentResponse,
    ApplicationResponse,
    VerificationResult,
    ExpirationSweepResponse,
    ProfileResponse,
    EligibilityResponse,
    ProfileSyncResponse,
    CompletenessResponse,
    KycStatusResponse,
    ReconcileResponse,
)

__all__ = [
    "CamelModel",
    "SuccessResponse",
    "ErrorResponse",
    "LinkDocumentsRequest",
    "VerificationUpdateRequest",
    "ApplicationStatusRequest",
    "DocumentResponse",
    "ApplicationResponse",
    "VerificationResult",
    "ExpirationSweepResponse",
    "ProfileResponse",
    "EligibilityResponse",
    "ProfileSyncResponse",
    "CompletenessResponse",
    "KycStatusResponse",
    "ReconcileResponse",
]
