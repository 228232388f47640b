from datetime import datetime

import pytest
import pytz

from aiquiz.core.exceptions import ConflictError, NotFoundError, ValidationError
from aiquiz.utils.user_manager import UserManager, hash_password, verify_password


def test_password_is_hashed(db):
    model = UserManager(db).register_user("alice", "secret1", "1234")
    assert model.password_hash != "secret1"
    assert verify_password("secret1", model.password_hash)
    assert not verify_password("secret2", model.password_hash)


def test_verify_password_with_corrupt_hash():
    assert verify_password("secret1", "not-a-bcrypt-hash") is False
    assert verify_password("secret1", hash_password("secret1"))


def test_register_requires_all_fields(db):
    with pytest.raises(ValidationError, match="required"):
        UserManager(db).register_user("alice", None, "1234")


def test_register_duplicate_username(db):
    manager = UserManager(db)
    manager.register_user("alice", "secret1", "1234")
    with pytest.raises(ConflictError, match="Username already exists."):
        manager.register_user("Alice", "secret1", "9876")
    # The session is usable after the failed insert
    assert len(manager.list_users()) == 1


def test_create_user_limits(db):
    manager = UserManager(db)
    limited = manager.create_user("bob", "secret1", "1111", daily_ai_limit=3)
    unlimited = manager.create_user("carol", "secret1", "2222", unlimited_ai=True, daily_ai_limit=3)
    assert limited.daily_ai_limit == 3
    assert limited.created_at is not None
    assert unlimited.daily_ai_limit == 999999
    with pytest.raises(ValidationError):
        manager.create_user("dave", "secret1", "3333", daily_ai_limit=-1)


def test_update_email_can_be_cleared(db):
    manager = UserManager(db)
    model = manager.register_user("alice", "secret1", "1234", email="a@example.com")
    updated = manager.update_user(model.id, {"email": None})
    assert updated.email is None


def test_update_ignores_unknown_fields(db):
    manager = UserManager(db)
    model = manager.register_user("alice", "secret1", "1234")
    with pytest.raises(ValidationError, match="No updates provided"):
        manager.update_user(model.id, {"role": "admin", "pin": None})


def test_update_password(db):
    manager = UserManager(db)
    model = manager.register_user("alice", "secret1", "1234")
    manager.update_user(model.id, {"password": "another1"})
    assert verify_password("another1", manager.get_user(model.id).password_hash)


def test_get_unknown_user(db):
    with pytest.raises(NotFoundError):
        UserManager(db).get_user(42)


def test_daily_counter_resets_at_midnight(db, utc_clock):
    utc_clock.now = datetime(2026, 3, 14, 23, 59, 30, tzinfo=pytz.utc)
    manager = UserManager(db, clock=utc_clock)
    user = manager.register_user("alice", "secret1", "1234")

    for _ in range(10):
        assert manager.record_call(user.id) is True
    status = manager.get_daily_calls(user.id)
    assert status.daily_used == 10
    assert status.daily_limit == 10

    utc_clock.advance(seconds=60)
    assert manager.today().isoformat() == "2026-03-15"
    assert manager.get_daily_calls(user.id).daily_used == 0
    manager.record_call(user.id)
    assert manager.get_daily_calls(user.id).daily_used == 1


def test_unlimited_users_are_not_counted(db):
    manager = UserManager(db)
    user = manager.create_user("carol", "secret1", "2222", unlimited_ai=True)
    assert manager.record_call(user.id) is False
    status = manager.get_daily_calls(user.id)
    assert status.unlimited is True
    assert status.daily_limit is None
    assert status.daily_used == 0
