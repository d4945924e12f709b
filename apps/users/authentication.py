"""DRF authentication backed by the hosted auth service."""

from __future__ import annotations

import logging

import requests
from rest_framework import authentication, exceptions  # type: ignore

from shared.infrastructure.remote_store import RemoteStoreError

from .auth_service import AuthService

logger = logging.getLogger(__name__)


class HostedTokenAuthentication(authentication.BaseAuthentication):
    """
    Resolve `Authorization: Bearer <access token>` to an AuthUser.

    `request.auth` keeps the raw token so views can act as the user
    against the hosted store.
    """

    keyword = "Bearer"

    def __init__(self, auth_service: AuthService | None = None):
        self.auth_service = auth_service

    def get_auth_service(self) -> AuthService:
        return self.auth_service or AuthService()

    def authenticate(self, request):  # type: ignore
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].lower() != self.keyword.lower().encode():
            return None
        if len(header) != 2:
            raise exceptions.AuthenticationFailed("Invalid token header.")

        token = header[1].decode()
        try:
            user = self.get_auth_service().get_user(token)
        except RemoteStoreError as e:
            if e.status_code in (401, 403):
                raise exceptions.AuthenticationFailed("Invalid or expired token.")
            logger.error(f"Token lookup failed: {e.status_code} {e.message}")
            raise exceptions.APIException("Authentication service error.")
        except requests.RequestException as e:
            logger.error(f"Auth service unreachable: {e}")
            raise exceptions.APIException("Authentication service unavailable.")
        return user, token

    def authenticate_header(self, request):  # type: ignore
        return self.keyword
