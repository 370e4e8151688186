"""Sign-in and sign-out for the EntityDesk CLI."""

from __future__ import annotations

import getpass

from entitydesk.api.client import CollectionClient
from entitydesk.api.errors import ApiError
from entitydesk.api.session import decode_claims
from entitydesk.cli.config import Config
from entitydesk.config import settings


async def login(config: Config, email: str | None = None, password: str | None = None) -> bool:
    """
    Exchange email/password for a bearer token and store it for the
    current environment. Returns True if successful.
    """
    email = email or input("Email: ").strip()
    password = password or getpass.getpass("Password: ")

    async with CollectionClient(config.api_url, timeout=settings.REQUEST_TIMEOUT) as client:
        try:
            token = await client.login(email, password)
        except ApiError as e:
            print(f"Login failed: {e.message}")
            return False

    _store(config, token, email)
    return True


def _store(config: Config, token: str, email: str) -> None:
    claims = decode_claims(token)
    config.token = token
    config.email = claims.email if claims and claims.email else email
    role = claims.role if claims else None
    print(f"Authenticated as {config.email}" + (f" ({role})" if role else ""))
    print(f"Token saved to {config.config_file}")


async def register(
    config: Config,
    email: str | None = None,
    password: str | None = None,
    name: str | None = None,
    phone: str | None = None,
    role: str | None = None,
) -> bool:
    """
    Create an account, then sign in with it. The role defaults to member.
    """
    name = name or input("Name: ").strip()
    email = email or input("Email: ").strip()
    password = password or getpass.getpass("Password: ")

    async with CollectionClient(config.api_url, timeout=settings.REQUEST_TIMEOUT) as client:
        try:
            user = await client.register(email, password, name, phone=phone, role=role or "member")
            token = await client.login(email, password)
        except ApiError as e:
            print(f"Registration failed: {e.message}")
            return False

    print(f"Registered {user.get('email') or email}")
    _store(config, token, email)
    return True


def logout(config: Config, logout_all: bool = False) -> bool:
    """Forget credentials for the current environment, or all of them."""
    if logout_all:
        envs = config.list_environments()
        if not envs:
            print("No authenticated environments.")
            return True
        for env in envs:
            print(f"  Logging out of {env['url']} ({env.get('email') or 'unknown'})")
        config.clear_all()
        print("Logged out of all environments.")
        return True

    if not config.is_authenticated:
        print(f"Not logged in to {config.api_url}")
        return False

    email = config.email or "unknown"
    config.clear_environment()
    print(f"Logged out of {config.api_url} ({email})")
    return True
