from datetime import timedelta
from unittest import mock

import pytest
import requests
from django.utils import timezone

from shared.infrastructure.remote_store import RemoteStoreError
from apps.users.auth_service import AuthService, SignInResult
from apps.users.domain.entities import AuthSessionToken, AuthUser, UserProfile, UserType
from apps.users.session import AuthSession

USER = AuthUser(id="user-1", email="guest@example.com")
PROFILE = UserProfile(id="user-1", email="guest@example.com", first_name="Ada", last_name="Byron")


def token(expires_in=3600):
    return AuthSessionToken(access_token="access-1", expires_at=timezone.now() + timedelta(seconds=expires_in))


@pytest.fixture
def auth():
    return mock.create_autospec(AuthService, instance=True)


@pytest.fixture
def session(auth):
    return AuthSession(auth)


def test_sign_in_loads_profile(session, auth):
    auth.sign_in.return_value = SignInResult(user=USER, session=token())
    auth.get_profile.return_value = PROFILE

    result = session.sign_in("guest@example.com", "secret")

    assert result.success
    assert session.is_authenticated
    assert session.profile.full_name == "Ada Byron"
    assert not session.is_loading
    auth.get_profile.assert_called_once_with("user-1", "access-1")


def test_sign_in_without_session(session, auth):
    auth.sign_in.return_value = SignInResult(user=None, session=None)

    result = session.sign_in("guest@example.com", "secret")

    assert result.error == "Authentication failed"
    assert not session.is_authenticated


def test_sign_in_reports_service_message(session, auth):
    auth.sign_in.side_effect = RemoteStoreError("Invalid login credentials", status_code=400)

    result = session.sign_in("guest@example.com", "wrong")

    assert not result.success
    assert result.error == "Invalid login credentials"


def test_profile_failure_does_not_fail_sign_in(session, auth):
    auth.sign_in.return_value = SignInResult(user=USER, session=token())
    auth.get_profile.side_effect = requests.ConnectionError("offline")

    assert session.sign_in("guest@example.com", "secret").success
    assert session.profile is None


def test_sign_up_pending_confirmation(session, auth):
    auth.sign_up.return_value = SignInResult(user=USER, session=None)

    result = session.sign_up("guest@example.com", "secret", "Ada", "Byron")

    assert result.success
    assert session.user == USER
    assert not session.is_authenticated


def test_sign_up_without_user(session, auth):
    auth.sign_up.return_value = SignInResult(user=None, session=None)

    assert session.sign_up("guest@example.com", "secret", "Ada", "Byron").error == "Registration failed"


def test_sign_out_clears_even_on_failure(session, auth):
    session.set_user(USER)
    session.set_session(token())
    auth.sign_out.side_effect = requests.Timeout("slow")

    session.sign_out()

    assert session.user is None
    assert session.session is None
    assert not session.is_authenticated


def test_load_user_creates_missing_profile(session, auth):
    session.set_session(token())
    auth.get_user.return_value = USER
    auth.get_profile.return_value = None
    auth.create_profile.return_value = PROFILE

    session.load_user()

    assert session.is_authenticated
    assert session.profile == PROFILE
    auth.create_profile.assert_called_once_with(USER, access_token="access-1")


def test_load_user_with_expired_session(session, auth):
    session.set_session(token(expires_in=-60))

    session.load_user()

    assert session.session is None
    auth.get_user.assert_not_called()


def test_load_user_with_rejected_token(session, auth):
    session.set_session(token())
    auth.get_user.side_effect = RemoteStoreError("JWT expired", status_code=401)

    session.load_user()

    assert not session.is_authenticated
    assert session.user is None


def test_update_profile(session, auth):
    session.set_user(USER)
    session.set_session(token())
    session.set_profile(PROFILE)

    result = session.update_profile({"user_type": "host", "bio": "Host in Lisbon"})

    assert result.success
    assert session.profile.is_host
    assert session.profile.user_type == UserType.HOST
    auth.update_profile.assert_called_once_with("user-1", {"user_type": "host", "bio": "Host in Lisbon"}, "access-1")


def test_update_profile_signed_out(session):
    assert session.update_profile({"bio": "x"}).error == "No user logged in"
