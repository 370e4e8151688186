"""
Session -- the bearer credential plus its decoded identity claims.

Passed explicitly to the client and the controller; there is no global
session. Claims are read from the JWT payload without verifying the
signature: the server verifies, the client only needs id/email/role/exp
for display and gating.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

import jwt
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class IdentityClaims(BaseModel):
    """What the engine reads from the token payload."""

    id: int | str | None = None
    email: str | None = None
    role: str | None = None
    exp: int | None = None


def decode_claims(token: str | None) -> IdentityClaims | None:
    """
    Decode the payload of a JWT. Returns None for a missing or malformed
    token.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.InvalidTokenError:
        logger.debug("session: token payload is not a decodable JWT")
        return None
    return IdentityClaims.model_validate(
        {key: payload.get(key) for key in ("id", "email", "role", "exp")}
    )


class Session:
    """
    Holds one credential. `on_expired` is the re-authentication hook: it
    fires once when the session is invalidated (401 from the server, or a
    caller noticing the identity is gone).
    """

    def __init__(
        self,
        token: str | None,
        on_expired: Callable[[], None] | None = None,
    ):
        self.token = token or None
        self.claims = decode_claims(self.token)
        self._on_expired = on_expired

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and not self.is_expired()

    @property
    def role(self) -> str | None:
        return self.claims.role if self.claims else None

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once the `exp` claim has passed. Tokens without exp never expire here."""
        if self.claims is None or self.claims.exp is None:
            return False
        current = now or datetime.now(UTC)
        return current.timestamp() >= self.claims.exp

    def login(self, token: str) -> None:
        self.token = token
        self.claims = decode_claims(token)

    def invalidate(self) -> None:
        """Drop the credential and ask the host to re-authenticate."""
        was_present = self.token is not None
        self.token = None
        self.claims = None
        if was_present and self._on_expired is not None:
            self._on_expired()

    def request_reauth(self) -> None:
        if self._on_expired is not None:
            self._on_expired()
