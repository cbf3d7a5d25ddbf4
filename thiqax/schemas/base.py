"""Base Pydantic schemas with CamelCase conversion."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from humps import camelize


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    return camelize(string)


class CamelModel(BaseModel):
    """
    Base model that converts snake_case fields to camelCase in JSON.

    Usage:
        class MyResponse(CamelModel):
            verification_status: str  # JSON: verificationStatus
            rejection_reason: str     # JSON: rejectionReason
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


T = TypeVar("T")


class SuccessResponse(CamelModel, Generic[T]):
    """
    Envelope for every successful response.

    Usage:
        SuccessResponse[DocumentResponse](data=DocumentResponse.from_model(doc))
    """

    success: bool = True
    data: T


class ErrorResponse(CamelModel):
    """Envelope for failed requests."""

    success: bool = False
    message: str
