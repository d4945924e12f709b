from unittest import mock

import pytest
import requests

from shared.infrastructure.remote_store import NO_ROWS_CODE, RemoteStoreClient, RemoteStoreError


def response(status_code=200, payload=None, reason="OK"):
    resp = mock.Mock(spec=requests.Response)
    resp.status_code = status_code
    resp.reason = reason
    resp.content = b"" if payload is None else b"{}"
    resp.json.return_value = payload
    return resp


@pytest.fixture
def session():
    return mock.create_autospec(requests.Session, instance=True)


@pytest.fixture
def client(session):
    return RemoteStoreClient(base_url="https://store.test/", api_key="anon-key", timeout=5, session=session)


def test_select_builds_postgrest_query(client, session):
    session.request.return_value = response(payload=[{"id": "booking-1"}])

    rows = client.select(
        "bookings",
        filters={"guest_id": "guest-1", "status": ["pending", "confirmed"], "cancelled_at": None},
        order="created_at",
        ascending=False,
        limit=20,
        offset=40,
    )

    assert rows == [{"id": "booking-1"}]
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert (method, url) == ("GET", "https://store.test/rest/v1/bookings")
    assert kwargs["params"] == {
        "select": "*",
        "guest_id": "eq.guest-1",
        "status": "in.(pending,confirmed)",
        "cancelled_at": "is.null",
        "order": "created_at.desc",
        "limit": 20,
        "offset": 40,
    }
    assert kwargs["headers"]["apikey"] == "anon-key"
    assert kwargs["headers"]["Authorization"] == "Bearer anon-key"
    assert kwargs["timeout"] == 5


def test_with_token_acts_as_user(client, session):
    session.request.return_value = response(payload=[])

    client.with_token("user-jwt").select("payments")

    headers = session.request.call_args.kwargs["headers"]
    assert headers["Authorization"] == "Bearer user-jwt"
    assert headers["apikey"] == "anon-key"


def test_maybe_one_returns_none_for_no_rows(client, session):
    session.request.return_value = response(
        406, {"code": NO_ROWS_CODE, "message": "JSON object requested, multiple (or no) rows returned"},
    )

    assert client.maybe_one("escrow", filters={"booking_id": "booking-1"}) is None
    assert session.request.call_args.kwargs["headers"]["Accept"] == "application/vnd.pgrst.object+json"


def test_errors_carry_code_and_status(client, session):
    session.request.return_value = response(
        409, {"code": "23P01", "message": "conflicting key value violates exclusion constraint", "details": "dates"},
    )

    with pytest.raises(RemoteStoreError) as excinfo:
        client.insert("bookings", {"listing_id": "listing-1"})

    error = excinfo.value
    assert (error.code, error.status_code, error.details) == ("23P01", 409, "dates")
    assert not error.is_no_rows


def test_auth_error_shape(client, session):
    session.request.return_value = response(400, {"error": "invalid_grant", "error_description": "Invalid login credentials"})

    with pytest.raises(RemoteStoreError) as excinfo:
        client.request("POST", "auth/v1/token", params={"grant_type": "password"})

    assert excinfo.value.message == "Invalid login credentials"


def test_insert_returns_representation(client, session):
    session.request.return_value = response(201, [{"id": "booking-1"}])

    row = client.insert("bookings", {"listing_id": "listing-1"})

    assert row == {"id": "booking-1"}
    assert session.request.call_args.kwargs["headers"]["Prefer"] == "return=representation"


def test_update_requires_filters(client, session):
    with pytest.raises(ValueError):
        client.update("bookings", {"status": "cancelled"}, filters={})

    session.request.assert_not_called()


def test_invoke_function(client, session):
    session.request.return_value = response(204)

    assert client.invoke("trigger-escrow-release", {"booking_id": "booking-1"}) is None
    method, url = session.request.call_args.args
    assert (method, url) == ("POST", "https://store.test/functions/v1/trigger-escrow-release")
    assert session.request.call_args.kwargs["json"] == {"booking_id": "booking-1"}
