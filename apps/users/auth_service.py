"""Client for the hosted auth service and the `user_profiles` table."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from shared.infrastructure.remote_store import RemoteStoreClient, RemoteStoreError

from .domain.entities import AuthSessionToken, AuthUser, UserProfile, UserType

logger = logging.getLogger(__name__)

PROFILE_TABLE = "user_profiles"


@dataclass(frozen=True)
class SignInResult:
    user: AuthUser | None
    session: AuthSessionToken | None


def _names_from_metadata(metadata: dict[str, Any]) -> tuple[str, str]:
    """First and last name out of sign-up or social login metadata"""
    full_name = (metadata.get("name") or metadata.get("full_name") or "").split()
    first = metadata.get("first_name") or metadata.get("given_name") or (full_name[0] if full_name else "")
    last = metadata.get("last_name") or metadata.get("family_name") or " ".join(full_name[1:])
    return first.strip(), last.strip()


class AuthService:
    """
    Password auth against the hosted auth endpoints.

    Failures raise RemoteStoreError with the service's own message.
    """

    def __init__(self, store: RemoteStoreClient | None = None):
        self.store = store or RemoteStoreClient()

    def sign_in(self, email: str, password: str) -> SignInResult:
        payload = self.store.request(
            "POST",
            "auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        logger.info(f"Signed in {email}")
        return self._session_result(payload)

    def sign_up(self, email: str, password: str, first_name: str = "", last_name: str = "") -> SignInResult:
        payload = self.store.request(
            "POST",
            "auth/v1/signup",
            json={
                "email": email,
                "password": password,
                "data": {"first_name": first_name, "last_name": last_name},
            },
        )
        result = self._session_result(payload)
        if result.user is not None:
            token = result.session.access_token if result.session else None
            try:
                self.create_profile(result.user, first_name, last_name, access_token=token)
            except RemoteStoreError as e:
                # the account exists either way; the profile is created again on first load
                logger.error(f"Could not create profile for {result.user.id}: {e.message}")
        return result

    def refresh(self, refresh_token: str) -> SignInResult:
        payload = self.store.request(
            "POST",
            "auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        return self._session_result(payload)

    def sign_out(self, access_token: str) -> None:
        self.store.with_token(access_token).request("POST", "auth/v1/logout")
        logger.info("Signed out session")

    def get_user(self, access_token: str) -> AuthUser:
        payload = self.store.with_token(access_token).request("GET", "auth/v1/user")
        return AuthUser.from_payload(payload)

    def reset_password(self, email: str) -> None:
        self.store.request("POST", "auth/v1/recover", json={"email": email})

    # ----- profiles -----

    def get_profile(self, user_id: str, access_token: str | None = None) -> UserProfile | None:
        row = self.store.with_token(access_token).maybe_one(PROFILE_TABLE, filters={"id": user_id})
        return UserProfile.from_row(row) if row else None

    def create_profile(
        self,
        user: AuthUser,
        first_name: str = "",
        last_name: str = "",
        access_token: str | None = None,
    ) -> UserProfile:
        meta_first, meta_last = _names_from_metadata(user.metadata)
        row = self.store.with_token(access_token).insert(PROFILE_TABLE, {
            "id": user.id,
            "email": user.email,
            "first_name": (first_name or meta_first).strip(),
            "last_name": (last_name or meta_last).strip(),
            "user_type": UserType.TRAVELER.value,
            "is_verified": False,
        })
        logger.info(f"Created profile for user {user.id}")
        return UserProfile.from_row(row)

    def update_profile(self, user_id: str, updates: dict[str, Any], access_token: str | None = None) -> None:
        values = {
            key: value.value if isinstance(value, UserType) else value
            for key, value in updates.items()
        }
        self.store.with_token(access_token).update(PROFILE_TABLE, values, filters={"id": user_id})

    @staticmethod
    def _session_result(payload: dict | None) -> SignInResult:
        payload = payload or {}
        if "access_token" in payload:
            user_payload = payload.get("user")
            return SignInResult(
                user=AuthUser.from_payload(user_payload) if user_payload else None,
                session=AuthSessionToken.from_payload(payload),
            )
        # sign-up awaiting email confirmation returns the bare user
        if "id" in payload:
            return SignInResult(user=AuthUser.from_payload(payload), session=None)
        return SignInResult(user=None, session=None)
