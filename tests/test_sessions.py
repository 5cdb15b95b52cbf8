"""
SESSION MANAGER TESTS
Database and Redis session stores, expiry and token handling.
"""

import json
from datetime import timedelta

import pytest

from medstock.core.exceptions import AuthenticationError
from medstock.models.session import LoginSession
from medstock.services.session_service import (
    DatabaseSessionStore,
    RedisSessionStore,
    SessionManager,
    SessionRecord,
    SessionState,
)
from medstock.utils.datetime_utils import utc_now

from conftest import ADMIN_PASSWORD, FakeRedis


def test_login_creates_authenticated_session(db, session_manager, session_factory):
    token = session_manager.login(db, ADMIN_PASSWORD)

    assert session_manager.validate(token) is SessionState.AUTHENTICATED
    with session_factory() as check:
        row = check.get(LoginSession, token)
        assert row.logged_in is True


def test_wrong_password_creates_no_session(db, session_manager, session_factory):
    with pytest.raises(AuthenticationError):
        session_manager.login(db, "wrong")

    with session_factory() as check:
        assert check.query(LoginSession).count() == 0


def test_session_expires_after_ttl(db, session_factory):
    manager = SessionManager(DatabaseSessionStore(session_factory), timedelta(days=7))
    token = manager.login(db, ADMIN_PASSWORD)

    # Push expiry into the past
    with session_factory() as write:
        row = write.get(LoginSession, token)
        row.expires_at = utc_now() - timedelta(seconds=1)
        write.commit()

    assert manager.validate(token) is SessionState.ANONYMOUS
    with session_factory() as check:
        assert check.get(LoginSession, token) is None


@pytest.mark.parametrize("token", [None, "", "x" * 500, "unknown-token"])
def test_missing_or_garbled_tokens_are_anonymous(session_manager, token):
    assert session_manager.validate(token) is SessionState.ANONYMOUS


def test_logout_of_unknown_token_is_harmless(session_manager):
    session_manager.logout("never-issued")
    session_manager.logout(None)


def test_purge_expired_removes_only_expired_rows(session_factory):
    store = DatabaseSessionStore(session_factory)
    now = utc_now()
    store.save(SessionRecord("live", True, now, now + timedelta(days=1)))
    store.save(SessionRecord("dead", True, now - timedelta(days=8), now - timedelta(days=1)))

    assert store.purge_expired() == 1
    assert store.load("live") is not None
    assert store.load("dead") is None


def test_redis_store_round_trip_and_ttl(db):
    fake = FakeRedis()
    manager = SessionManager(RedisSessionStore(fake), timedelta(days=7))

    token = manager.login(db, ADMIN_PASSWORD)

    key = f"session:{token}"
    assert key in fake.values
    assert 7 * 24 * 3600 - 60 <= fake.ttls[key] <= 7 * 24 * 3600
    assert manager.validate(token) is SessionState.AUTHENTICATED

    manager.logout(token)
    assert key not in fake.values
    assert manager.validate(token) is SessionState.ANONYMOUS


def test_redis_store_ignores_corrupted_records():
    fake = FakeRedis()
    fake.values["session:abc"] = "{not json"
    manager = SessionManager(RedisSessionStore(fake), timedelta(days=7))

    assert manager.validate("abc") is SessionState.ANONYMOUS


def test_redis_store_respects_logged_in_flag():
    fake = FakeRedis()
    now = utc_now()
    fake.values["session:abc"] = json.dumps(
        {
            "logged_in": False,
            "created_at": now.isoformat(),
            "expires_at": (now + timedelta(days=1)).isoformat(),
        }
    )
    manager = SessionManager(RedisSessionStore(fake), timedelta(days=7))

    assert manager.validate("abc") is SessionState.ANONYMOUS
