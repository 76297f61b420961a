"""
Service Errors

Every business-level failure is a ServiceError carrying a stable error code
and the HTTP status routers should answer with. Routers convert them with
``to_http_exception()``; anything else becomes a generic 500.
"""

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base exception for service-layer errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> dict:
        return {"error": self.error_code, "message": self.message}

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.to_detail())


class ValidationError(ServiceError):
    """Raised when a submission is malformed. Lists every offending field."""

    def __init__(self, fields: list[dict[str, str]]):
        self.fields = fields
        names = ", ".join(item["field"] for item in fields)
        super().__init__(
            message=f"Invalid data for: {names}",
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    def to_detail(self) -> dict:
        return {**super().to_detail(), "fields": self.fields}


class AgeError(ServiceError):
    """Raised when the applicant is younger than the minimum age."""

    def __init__(self, age: int, minimum_age: int):
        self.age = age
        self.minimum_age = minimum_age
        super().__init__(
            message=f"Applicants must be at least {minimum_age} years old.",
            error_code="AGE_REQUIREMENT_NOT_MET",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class ConflictError(ServiceError):
    """Raised when an application id collides with an existing one."""

    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__(
            message="An unexpected error occurred. Please try again later.",
            error_code="APPLICATION_ID_CONFLICT",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class NotFoundError(ServiceError):
    """Raised when a lookup misses."""

    def __init__(self, resource: str = "Applicant", identifier: object | None = None):
        message = f"{resource} {identifier} not found" if identifier else f"{resource} not found"
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class DocumentError(ServiceError):
    """Raised when the confirmation document cannot be rendered."""

    def __init__(self, message: str = "Failed to generate the confirmation document."):
        super().__init__(
            message=message,
            error_code="DOCUMENT_GENERATION_FAILED",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class NotificationError(ServiceError):
    """Raised when the confirmation email cannot be delivered."""

    def __init__(self, message: str = "Failed to send the confirmation email."):
        super().__init__(
            message=message,
            error_code="NOTIFICATION_FAILED",
            status_code=status.HTTP_502_BAD_GATEWAY,
        )


class AuthError(ServiceError):
    """Raised for any authentication failure. Never says which part was wrong."""

    def __init__(
        self,
        message: str = "Authentication required.",
        error_code: str = "AUTHENTICATION_REQUIRED",
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail=self.to_detail(),
            headers={"WWW-Authenticate": "Bearer"},
        )


class ThrottledError(ServiceError):
    """Raised when a client is blocked after repeated failed logins."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        minutes = max(1, retry_after_seconds // 60)
        super().__init__(
            message=f"Too many failed login attempts. Please try again in {minutes} minute(s).",
            error_code="TOO_MANY_ATTEMPTS",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        )

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={**self.to_detail(), "retry_after_seconds": self.retry_after_seconds},
            headers={"Retry-After": str(self.retry_after_seconds)},
        )


__all__ = [
    "ServiceError",
    "ValidationError",
    "AgeError",
    "ConflictError",
    "NotFoundError",
    "DocumentError",
    "NotificationError",
    "AuthError",
    "ThrottledError",
]
