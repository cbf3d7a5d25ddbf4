"""Error taxonomy shared by the workflow engine, services and HTTP layer.

Each error carries the HTTP status that the exception handlers in
``thiqax.middleware.error_handler`` render it with.
"""


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        code: str = "API_ERROR",
        status_code: int = 400,
        details: dict = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(APIError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str | list[str]):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource, "id": identifier},
        )


class ValidationAPIError(APIError):
    """Missing or malformed input."""

    def __init__(self, message: str, field: str = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details={"field": field} if field else {},
        )


class AuthenticationError(APIError):
    """Missing or invalid credentials."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            message=message,
            code="NOT_AUTHENTICATED",
            status_code=401,
        )


class ForbiddenError(APIError):
    """Access forbidden."""

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
        )


class DependencyError(APIError):
    """A secondary step failed after the primary write committed.

    Only logged; the primary operation still reports success.
    """

    def __init__(self, step: str, cause: Exception):
        super().__init__(
            message=f"{step} failed: {cause}",
            code="DEPENDENCY_ERROR",
            status_code=502,
            details={"step": step, "error_type": type(cause).__name__},
        )
        self.step = step
        self.cause = cause
