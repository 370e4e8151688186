"""Transport and identity for the remote record collection."""

from entitydesk.api.client import CollectionClient
from entitydesk.api.errors import (
    ApiError,
    AuthenticationError,
    NetworkError,
    PermissionDenied,
    ValidationError,
)
from entitydesk.api.session import IdentityClaims, Session, decode_claims

__all__ = [
    "CollectionClient",
    "ApiError",
    "AuthenticationError",
    "NetworkError",
    "PermissionDenied",
    "ValidationError",
    "IdentityClaims",
    "Session",
    "decode_claims",
]
