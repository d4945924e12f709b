"""
Authenticated session state

One AuthSession per signed-in client, constructed explicitly and passed to
whatever needs the current user. Actions report their outcome as an
AuthResult instead of raising, so callers can show the message directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from shared.infrastructure.remote_store import RemoteStoreError

from .auth_service import AuthService
from .domain.entities import AuthSessionToken, AuthUser, UserProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "AuthResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "AuthResult":
        return cls(success=False, error=error)


def _message(error: Exception, default: str) -> str:
    if isinstance(error, RemoteStoreError):
        return error.message
    return str(error) or default


class AuthSession:
    def __init__(self, auth_service: AuthService | None = None):
        self.auth = auth_service or AuthService()
        self.user: AuthUser | None = None
        self.session: AuthSessionToken | None = None
        self.profile: UserProfile | None = None
        self.is_loading = False
        self.is_authenticated = False

    @property
    def access_token(self) -> str | None:
        return self.session.access_token if self.session else None

    def sign_in(self, email: str, password: str) -> AuthResult:
        self.is_loading = True
        try:
            result = self.auth.sign_in(email, password)
            if result.user is None or result.session is None:
                return AuthResult.failed("Authentication failed")

            self.user = result.user
            self.session = result.session
            self.is_authenticated = True
            if self.profile is None:
                self._load_profile()
            return AuthResult.ok()
        except (RemoteStoreError, requests.RequestException) as e:
            logger.warning(f"Sign in failed for {email}: {e}")
            return AuthResult.failed(_message(e, "An error occurred"))
        finally:
            self.is_loading = False

    def sign_up(self, email: str, password: str, first_name: str, last_name: str) -> AuthResult:
        self.is_loading = True
        try:
            result = self.auth.sign_up(email, password, first_name, last_name)
            if result.user is None:
                return AuthResult.failed("Registration failed")

            # no session until the email is confirmed
            self.user = result.user
            self.session = result.session
            self.is_authenticated = result.session is not None
            return AuthResult.ok()
        except (RemoteStoreError, requests.RequestException) as e:
            logger.warning(f"Sign up failed for {email}: {e}")
            return AuthResult.failed(_message(e, "An error occurred"))
        finally:
            self.is_loading = False

    def sign_out(self) -> None:
        """Sign out remotely; local state is cleared even when that fails."""
        self.is_loading = True
        try:
            if self.access_token:
                self.auth.sign_out(self.access_token)
        except (RemoteStoreError, requests.RequestException) as e:
            logger.error(f"Sign out error: {e}")
        finally:
            self.clear()

    def load_user(self) -> None:
        """Re-validate the held session against the auth service."""
        self.is_loading = True
        try:
            if self.session is None or self.session.is_expired():
                self.clear()
                return
            user = self.auth.get_user(self.session.access_token)
            profile = self.auth.get_profile(user.id, self.access_token)
            if profile is None:
                profile = self.auth.create_profile(user, access_token=self.access_token)
            self.user = user
            self.profile = profile
            self.is_authenticated = True
        except (RemoteStoreError, requests.RequestException) as e:
            logger.error(f"Load user error: {e}")
            self.clear()
        finally:
            self.is_loading = False

    def _load_profile(self):
        try:
            self.profile = self.auth.get_profile(self.user.id, self.access_token)
        except (RemoteStoreError, requests.RequestException) as e:
            logger.warning(f"Profile of {self.user.id} not loaded: {e}")

    def update_profile(self, updates: dict[str, Any]) -> AuthResult:
        if self.user is None or self.profile is None:
            return AuthResult.failed("No user logged in")
        try:
            self.auth.update_profile(self.user.id, updates, self.access_token)
        except (RemoteStoreError, requests.RequestException) as e:
            return AuthResult.failed(_message(e, "Update failed"))
        self.profile = self.profile.with_updates(updates)
        return AuthResult.ok()

    # Setters for auth state changes reported from outside

    def set_user(self, user: AuthUser | None):
        self.user = user

    def set_session(self, session: AuthSessionToken | None):
        self.session = session
        self.is_authenticated = session is not None

    def set_profile(self, profile: UserProfile | None):
        self.profile = profile

    def set_loading(self, is_loading: bool):
        self.is_loading = is_loading

    def clear(self):
        self.user = None
        self.session = None
        self.profile = None
        self.is_authenticated = False
        self.is_loading = False
