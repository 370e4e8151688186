"""HTTP client for a remote record collection."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from entitydesk.api.errors import (
    ApiError,
    AuthenticationError,
    NetworkError,
    PermissionDenied,
    ValidationError,
)
from entitydesk.api.session import Session

logger = logging.getLogger(__name__)

_STATUS_ERRORS: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: PermissionDenied,
    409: ValidationError,
    422: ValidationError,
}


class CollectionClient:
    """
    Async client for the `/{endpoint}` collection contract:

        GET    /{endpoint}?limit=N   -> [record, ...]
        POST   /{endpoint}           -> record
        PUT    /{endpoint}/{id}      -> record
        DELETE /{endpoint}/{id}      -> 204
    """

    def __init__(
        self,
        api_url: str,
        session: Session | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.session = session
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> CollectionClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _headers(self) -> dict:
        """Build request headers."""
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.session is not None and self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        json: dict | None = None,
        params: dict | None = None,
    ) -> Any:
        """
        Send one request and decode the JSON body.

        Raises NetworkError when the request does not complete or its body
        cannot be decoded, and an ApiError subclass for non-2xx answers. The error message is the
        body's `message` when present, else the HTTP reason phrase.
        """
        url = f"{self.api_url}{path}"
        try:
            res = await self.client.request(
                method, url, json=json, params=params or None, headers=self._headers()
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("client: %s %s failed: %s", method, path, e)
            raise NetworkError(str(e) or e.__class__.__name__) from e

        if res.status_code == 204:
            return None

        text = res.text
        data = None
        if text:
            try:
                data = res.json()
            except ValueError:
                data = None

        if res.is_error:
            message = None
            if isinstance(data, dict):
                message = data.get("message")
            message = str(message) if message else res.reason_phrase
            error_cls = _STATUS_ERRORS.get(res.status_code, ApiError)
            logger.warning("client: %s %s -> %d %s", method, path, res.status_code, message)
            raise error_cls(res.status_code, message, text)

        return data

    # -- collection --

    async def list(
        self,
        endpoint: str,
        limit: int | None = None,
        offset: int | None = None,
        page: int | None = None,
    ) -> list[dict]:
        params = {}
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        if page is not None:
            params["page"] = page
        data = await self.request("GET", f"/{endpoint}", params=params)
        return data if isinstance(data, list) else []

    async def create(self, endpoint: str, payload: dict) -> dict | None:
        return await self.request("POST", f"/{endpoint}", json=payload)

    async def update(self, endpoint: str, record_id: Any, payload: dict) -> dict | None:
        return await self.request("PUT", f"/{endpoint}/{record_id}", json=payload)

    async def delete(self, endpoint: str, record_id: Any) -> None:
        await self.request("DELETE", f"/{endpoint}/{record_id}")

    # -- auth --

    async def login(self, email: str, password: str) -> str:
        """Exchange credentials for a bearer token."""
        data = await self.request("POST", "/auth/login", json={"email": email, "password": password})
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError(401, "Login response did not include a token")
        return token

    async def register(
        self,
        email: str,
        password: str,
        name: str,
        phone: str | None = None,
        role: str | None = None,
    ) -> dict:
        """Create an account. Returns the new user (id, email, name, role)."""
        payload = {"email": email, "password": password, "name": name}
        if phone:
            payload["phone"] = phone
        if role:
            payload["role"] = role
        data = await self.request("POST", "/auth/register", json=payload)
        return data if isinstance(data, dict) else {}

    async def close(self) -> None:
        """Close client."""
        await self.client.aclose()
