"""
Credential store for the EntityDesk CLI.

One JSON file holds a credential per API URL, so a local server and a
production server can both stay signed in:

  {
    "environments": {
      "http://localhost:4000/api": {"token": "...", "email": "dev@example.com"}
    }
  }

The active URL is the first of: --api-url, ENTITYDESK_API_URL, DEFAULT_API_URL.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

DEFAULT_API_URL = "http://localhost:4000/api"
CONFIG_NAME = "config.json"

logger = logging.getLogger(__name__)


@dataclass
class Credential:
    token: str | None = None
    email: str | None = None

    @classmethod
    def from_dict(cls, raw) -> Credential:
        if not isinstance(raw, dict):
            return cls()
        return cls(token=raw.get("token"), email=raw.get("email"))


def _normalize(url: str) -> str:
    return url.strip().rstrip("/")


class Config:
    """Signed-in environments, persisted to ~/.entitydesk/config.json (mode 0600)."""

    def __init__(self, api_url_override: str | None = None, config_dir: Path | None = None):
        self.config_dir = config_dir or Path.home() / ".entitydesk"
        self.config_file = self.config_dir / CONFIG_NAME
        self._override = api_url_override
        self._credentials: dict[str, Credential] = {}
        self._read()

    # -- persistence --

    def _read(self) -> None:
        if not self.config_file.exists():
            return
        try:
            raw = json.loads(self.config_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("config: ignoring unreadable %s: %s", self.config_file, e)
            return
        if not isinstance(raw, dict):
            logger.warning("config: ignoring malformed %s", self.config_file)
            return
        environments = raw.get("environments")
        if isinstance(environments, dict):
            self._credentials = {
                _normalize(url): Credential.from_dict(entry) for url, entry in environments.items()
            }

    def _write(self) -> None:
        data: dict = {"environments": {url: asdict(cred) for url, cred in self._credentials.items()}}
        self.config_dir.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.config_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        self.config_file.chmod(0o600)

    # -- active environment --

    @property
    def api_url(self) -> str:
        for candidate in (self._override, os.environ.get("ENTITYDESK_API_URL")):
            if candidate:
                return _normalize(candidate)
        return DEFAULT_API_URL

    @property
    def credential(self) -> Credential:
        return self._credentials.get(self.api_url) or Credential()

    def _update(self, **changes) -> None:
        cred = self._credentials.setdefault(self.api_url, Credential())
        for key, value in changes.items():
            setattr(cred, key, value)
        self._write()

    @property
    def token(self) -> str | None:
        return self.credential.token

    @token.setter
    def token(self, value: str | None):
        self._update(token=value)

    @property
    def email(self) -> str | None:
        return self.credential.email

    @email.setter
    def email(self, value: str | None):
        self._update(email=value)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    # -- sign out --

    def clear_environment(self, url: str | None = None) -> None:
        target = _normalize(url) if url else self.api_url
        if self._credentials.pop(target, None) is not None:
            self._write()

    def clear_all(self) -> None:
        """Drop every credential and remove the file."""
        self._credentials = {}
        self.config_file.unlink(missing_ok=True)

    def list_environments(self) -> list[dict]:
        current = self.api_url
        return [
            {"url": url, "email": cred.email, "is_current": url == current}
            for url, cred in self._credentials.items()
            if cred.token
        ]
