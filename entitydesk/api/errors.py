"""
Errors raised by the collection client.

The controller catches every one of these and turns it into a notice;
they never cross the engine boundary.
"""

from __future__ import annotations


class ApiError(Exception):
    """Server answered with a non-2xx status."""

    kind = "error"

    def __init__(self, status: int, message: str, details: str | None = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.details = details


class NetworkError(ApiError):
    """Request did not complete (DNS, connect, timeout, reset)."""

    kind = "network"

    def __init__(self, message: str):
        super().__init__(0, message)


class AuthenticationError(ApiError):
    """Credential missing, invalid or expired (401)."""

    kind = "authentication"


class ValidationError(ApiError):
    """Server rejected the payload (400, 409, 422)."""

    kind = "validation"


class PermissionDenied(ApiError):
    """Authenticated, but not allowed (403)."""

    kind = "permission"
