"""
Hosted database client

Thin REST client for the hosted relational store (PostgREST conventions)
and its edge functions. The store owns persistence, auth and business-rule
enforcement; this client only reads rows, requests changes and invokes
server-side functions.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from django.conf import settings  # type: ignore

logger = logging.getLogger(__name__)

# PostgREST code for "single row requested, zero rows returned"
NO_ROWS_CODE = "PGRST116"

SINGLE_OBJECT = "application/vnd.pgrst.object+json"


class RemoteStoreError(Exception):
    """Error returned by the hosted database or one of its functions."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: Any = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.status_code = status_code

    @property
    def is_no_rows(self) -> bool:
        return self.code == NO_ROWS_CODE

    @classmethod
    def from_response(cls, response) -> "RemoteStoreError":
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        error = payload.get("error")
        if isinstance(error, dict):
            payload = {**payload, **error}
            error = None

        message = (
            payload.get("message")
            or payload.get("error_description")
            or payload.get("msg")
            or error
            or response.reason
            or f"HTTP {response.status_code}"
        )
        return cls(
            str(message),
            code=payload.get("code") or payload.get("error_code"),
            details=payload.get("details") or payload.get("hint"),
            status_code=response.status_code,
        )


def _eq_filters(filters: dict[str, Any] | None) -> dict[str, str]:
    params = {}
    for column, value in (filters or {}).items():
        if isinstance(value, (list, tuple, set)):
            joined = ",".join(str(item) for item in value)
            params[column] = f"in.({joined})"
        elif value is None:
            params[column] = "is.null"
        else:
            params[column] = f"eq.{value}"
    return params


class RemoteStoreClient:
    """
    Client for the hosted store's REST and functions endpoints

    Every request carries the project API key; when an access token is
    attached, row-level security is evaluated for that user.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or getattr(settings, "REMOTE_STORE_URL", "")).rstrip("/")
        self.api_key = api_key or getattr(settings, "REMOTE_STORE_ANON_KEY", "")
        self.access_token = access_token
        self.timeout = timeout or getattr(settings, "REMOTE_STORE_TIMEOUT", 30)
        self.session = session or requests.Session()

    def with_token(self, access_token: str | None) -> "RemoteStoreClient":
        """Same endpoint and transport, acting as another user"""
        return RemoteStoreClient(
            base_url=self.base_url,
            api_key=self.api_key,
            access_token=access_token,
            timeout=self.timeout,
            session=self.session,
        )

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug(f"{method} {url} params={params}")
        response = self.session.request(
            method,
            url,
            params=params,
            json=json,
            headers=self._headers(headers),
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            error = RemoteStoreError.from_response(response)
            if not error.is_no_rows:
                logger.error(
                    f"Remote store {method} {path} failed: "
                    f"{error.status_code} {error.code} {error.message}"
                )
            raise error
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ----- rows -----

    def select(
        self,
        table: str,
        columns: str = "*",
        *,
        filters: dict[str, Any] | None = None,
        order: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict]:
        params: dict[str, Any] = {"select": columns, **_eq_filters(filters)}
        if order:
            params["order"] = f"{order}.{'asc' if ascending else 'desc'}"
        if limit is not None:
            params["limit"] = limit
        if offset:
            params["offset"] = offset
        return self.request("GET", f"rest/v1/{table}", params=params) or []

    def select_one(self, table: str, columns: str = "*", *, filters: dict[str, Any] | None = None) -> dict:
        """Exactly one row; RemoteStoreError with NO_ROWS_CODE when missing"""
        params = {"select": columns, **_eq_filters(filters)}
        return self.request(
            "GET",
            f"rest/v1/{table}",
            params=params,
            headers={"Accept": SINGLE_OBJECT},
        )

    def maybe_one(self, table: str, columns: str = "*", *, filters: dict[str, Any] | None = None) -> dict | None:
        try:
            return self.select_one(table, columns, filters=filters)
        except RemoteStoreError as error:
            if error.is_no_rows:
                return None
            raise

    def insert(self, table: str, values: dict[str, Any]) -> dict:
        rows = self.request(
            "POST",
            f"rest/v1/{table}",
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return rows[0] if isinstance(rows, list) and rows else rows

    def update(self, table: str, values: dict[str, Any], *, filters: dict[str, Any]) -> list[dict]:
        if not filters:
            raise ValueError("Refusing to update every row of a table")
        return self.request(
            "PATCH",
            f"rest/v1/{table}",
            params=_eq_filters(filters),
            json=values,
            headers={"Prefer": "return=representation"},
        ) or []

    # ----- functions -----

    def invoke(self, function_name: str, body: dict[str, Any] | None = None) -> Any:
        """Call a server-side edge function"""
        logger.info(f"Invoking remote function {function_name}")
        return self.request("POST", f"functions/v1/{function_name}", json=body or {})
