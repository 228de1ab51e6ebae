"""
Core module for application infrastructure.
"""
from contesthub.core.exceptions import (
    ContestHubError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    ValidationError,
    UpstreamError,
    StoreError,
)

__all__ = [
    "ContestHubError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "UpstreamError",
    "StoreError",
]
