"""Domain-level failures, mapped to HTTP status codes by ``api.errors``."""
from __future__ import annotations


class DomainError(Exception):
    status_code: int = 400
    error: str = "Bad Request"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.error)
        self.message = message or self.error


class AuthenticationError(DomainError):
    status_code = 401
    error = "Unauthorized"


class ForbiddenError(DomainError):
    status_code = 403
    error = "Forbidden"


class PremiumRequiredError(ForbiddenError):
    pass


class NotFoundError(DomainError):
    status_code = 404
    error = "Not Found"


class ConflictError(DomainError):
    status_code = 409
    error = "Conflict"


class FeatureDisabledError(DomainError):
    status_code = 503
    error = "Service Unavailable"


class UpstreamServiceError(DomainError):
    status_code = 502
    error = "Bad Gateway"
