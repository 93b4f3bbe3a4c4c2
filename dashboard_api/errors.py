"""Error hierarchy shared by adapters, services and the HTTP layer."""
from __future__ import annotations


class DashboardError(Exception):
    """Base error carrying the HTTP status and envelope title."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str = "", status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(DashboardError):
    """Raised when request parameters are missing or invalid."""

    status_code = 400
    error = "Invalid request"


class NotFoundError(DashboardError):
    """Raised when a derived resource is absent from the upstream payload."""

    status_code = 404
    error = "Not found"


class UpstreamError(DashboardError):
    """Raised when the upstream API answers with a non-success status."""

    error = "Upstream request failed"

    def __init__(self, message: str = "", status_code: int | None = None):
        super().__init__(message, status_code=status_code or 500)
        self.upstream_status = status_code


class UpstreamTimeoutError(UpstreamError):
    """Raised when the upstream API does not answer before the deadline."""

    error = "API request timeout - please try again"

    def __init__(self, message: str = ""):
        super().__init__(message, status_code=504)
        self.upstream_status = None


class InternalError(DashboardError):
    """Raised for unexpected failures inside the handler chain."""


__all__ = [
    "DashboardError",
    "ValidationError",
    "NotFoundError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "InternalError",
]
