"""Bearer-token sessions that resolve to a requester identity."""

from __future__ import annotations

import secrets
from threading import RLock
from typing import Optional

from backend.domain.models import Identity, Role
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger, kv


logger = get_logger(__name__)


class AuthenticationError(Exception):
    """Base authentication failure."""


class AdminTokenNotConfiguredError(AuthenticationError):
    """Raised when an admin login is attempted without ADMIN_TOKEN set."""


class InvalidAdminTokenError(AuthenticationError):
    """Raised when provided admin token is invalid."""


class InvalidBearerTokenError(AuthenticationError):
    """Raised when a bearer token does not map to an active session."""


class AuthService:
    """Issues session tokens and maps them back to identities.

    Guests log in with their requester id alone. Supplying the configured
    admin token upgrades the session to the ADMIN role.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._sessions: dict[str, Identity] = {}
        self._lock = RLock()

    @property
    def admin_login_enabled(self) -> bool:
        return bool(self._settings.admin_token)

    def _expected_admin_token(self) -> str:
        if not self._settings.admin_token:
            raise AdminTokenNotConfiguredError(
                "ADMIN_TOKEN is not configured. Set ADMIN_TOKEN in environment variables."
            )
        return self._settings.admin_token

    def login(self, requester_id: str, admin_token: Optional[str] = None) -> str:
        requester_id = requester_id.strip()
        if not requester_id:
            raise AuthenticationError("requester_id must be non-empty")

        role = Role.GUEST
        if admin_token is not None:
            expected = self._expected_admin_token()
            if not secrets.compare_digest(admin_token, expected):
                raise InvalidAdminTokenError("Invalid admin token")
            role = Role.ADMIN

        bearer = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[bearer] = Identity(requester_id=requester_id, role=role)
        logger.info("Session opened %s", kv(requester_id=requester_id, role=role))
        return bearer

    def resolve(self, bearer_token: str) -> Identity:
        with self._lock:
            for token, identity in self._sessions.items():
                if secrets.compare_digest(bearer_token, token):
                    return identity
        raise InvalidBearerTokenError("Invalid or expired bearer token")

    def logout(self, bearer_token: str) -> None:
        with self._lock:
            self._sessions.pop(bearer_token, None)
