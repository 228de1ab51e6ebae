"""
Application Errors
Typed failures raised by services and rendered by the API exception handlers
"""
from typing import Any, Dict, Optional


class ContestHubError(Exception):
    """Base class for all expected application failures"""

    status_code: int = 500
    error: str = "server_error"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class UnauthorizedError(ContestHubError):
    """Missing or invalid caller credential"""
    status_code = 401
    error = "unauthorized"
    default_message = "Unauthorized Access!"


class ForbiddenError(ContestHubError):
    """Caller role is not allowed to perform the operation"""
    status_code = 403
    error = "forbidden"
    default_message = "Forbidden Access!"


class NotFoundError(ContestHubError):
    """Referenced user, contest or participation record is absent"""
    status_code = 404
    error = "not_found"
    default_message = "Resource not found"


class ConflictError(ContestHubError):
    """Lifecycle rule violated"""
    status_code = 409
    error = "conflict"
    default_message = "Operation conflicts with current state"


class ValidationError(ContestHubError):
    """Malformed input rejected before any store access"""
    status_code = 422
    error = "validation_error"
    default_message = "Validation error"


class UpstreamError(ContestHubError):
    """Identity provider or payment processor call failed"""
    status_code = 502
    error = "upstream_failure"
    default_message = "Upstream service failure"


class StoreError(ContestHubError):
    """Document store operation failed"""
    status_code = 500
    error = "store_failure"
    default_message = "Database operation failed"
