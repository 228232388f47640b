from datetime import timedelta

import pytest

from aiquiz.core.exceptions import AuthenticationError, ValidationError
from aiquiz.models import AdminSessionModel, UserSessionModel
from aiquiz.schemas.session import OwnerKind
from aiquiz.utils.auth_manager import AuthManager, strip_bearer
from aiquiz.utils.user_manager import UserManager


@pytest.fixture
def auth(db, utc_clock):
    return AuthManager(db, clock=utc_clock)


def test_strip_bearer():
    assert strip_bearer("Bearer abc") == "abc"
    assert strip_bearer("abc") == "abc"
    assert strip_bearer("Bearer ") is None
    assert strip_bearer("Bearer") is None
    assert strip_bearer("  Bearer   xyz ") == "xyz"
    assert strip_bearer(None) is None


def test_admin_token_valid_until_24_hours(auth, utc_clock):
    admin, token = auth.login_admin("0000")
    assert admin.username == "admin"

    session = auth.verify_admin(f"Bearer {token}")
    assert session.owner_kind == OwnerKind.ADMIN
    assert session.admin.username == "admin"

    utc_clock.advance(hours=24, seconds=-1)
    assert auth.verify_admin(token) is not None

    utc_clock.advance(seconds=1)
    assert auth.verify_admin(token) is None


def test_user_token_valid_for_7_days(db, auth, utc_clock):
    model = UserManager(db).register_user("alice", "secret1", "1234")
    _, token = auth.login_user("alice", "secret1", "1234")

    session = auth.verify_user(token)
    assert session.owner_kind == OwnerKind.USER
    assert session.owner_id == model.id

    utc_clock.advance(days=7, seconds=-1)
    assert auth.verify_user(token) is not None
    utc_clock.advance(seconds=1)
    assert auth.verify_user(token) is None


def test_tokens_do_not_cross_account_kinds(db, auth):
    UserManager(db).register_user("alice", "secret1", "1234")
    _, user_token = auth.login_user("alice", "secret1", "1234")
    _, admin_token = auth.login_admin("0000")

    assert auth.verify_admin(user_token) is None
    assert auth.verify_user(admin_token) is None


def test_login_admin_errors(auth):
    with pytest.raises(ValidationError):
        auth.login_admin("abcd")
    with pytest.raises(ValidationError):
        auth.login_admin(None)
    with pytest.raises(AuthenticationError):
        auth.login_admin("1111")


def test_login_user_errors(db, auth):
    UserManager(db).register_user("alice", "secret1", "1234")
    with pytest.raises(ValidationError):
        auth.login_user("alice", "", "1234")
    with pytest.raises(AuthenticationError):
        auth.login_user("alice", "secret1", "0000")


def test_tokens_are_unique(auth):
    tokens = {auth.login_admin("0000")[1] for _ in range(5)}
    assert len(tokens) == 5


def test_logout_is_idempotent(auth):
    _, token = auth.login_admin("0000")
    auth.logout_admin(token)
    auth.logout_admin(token)
    auth.logout_admin(None)
    assert auth.verify_admin(token) is None


def test_purge_expired_sessions(db, auth, utc_clock):
    UserManager(db).register_user("alice", "secret1", "1234")
    auth.login_admin("0000")
    auth.login_user("alice", "secret1", "1234")

    utc_clock.advance(days=2)
    _, fresh_admin_token = auth.login_admin("0000")

    assert auth.purge_expired_sessions() == 1
    assert db.query(AdminSessionModel).count() == 1
    assert db.query(UserSessionModel).count() == 1
    assert auth.verify_admin(fresh_admin_token) is not None

    utc_clock.advance(days=7)
    assert auth.purge_expired_sessions() == 2
