"""
Tests for the session store.

Tests cover:
- Inserting and reading both session kinds
- Expired rows being invisible to reads
- Token collisions
- Idempotent deletes, lazy purge, and the bulk sweep
"""
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from coursechat.schemas import AdminIdentity, SessionRole, UserIdentity
from coursechat.services.session_store import (
    AdminSessionRecord,
    SessionConflictError,
    SessionStore,
    StoreUnavailableError,
    UserSessionRecord,
)


TOKEN_A = "a" * 64
TOKEN_B = "b" * 64


@pytest.fixture
def store(db, clock):
    return SessionStore(db, clock)


def add_user_session(store, clock, token=TOKEN_A, ttl=timedelta(days=30)):
    now = clock()
    return store.create_user_session(token, "2024001", "CS101", "张三", now, now + ttl)


def add_admin_session(store, clock, token=TOKEN_B, ttl=timedelta(hours=12)):
    now = clock()
    return store.create_admin_session(token, now, now + ttl)


class TestCreateAndGet:
    """Tests for inserting and reading sessions."""

    def test_user_session_round_trip(self, store, clock):
        """Should return a typed record with the stored identity."""
        add_user_session(store, clock)

        record = store.get_user_session(TOKEN_A)

        assert isinstance(record, UserSessionRecord)
        assert record.role is SessionRole.USER
        assert record.identity == UserIdentity(student_id="2024001", course_id="CS101", name="张三")
        assert record.issued_at == clock()
        assert record.expires_at == clock() + timedelta(days=30)

    def test_admin_session_round_trip(self, store, clock):
        add_admin_session(store, clock)

        record = store.get_admin_session(TOKEN_B)

        assert isinstance(record, AdminSessionRecord)
        assert record.identity == AdminIdentity()

    def test_unknown_token_returns_none(self, store):
        assert store.get_user_session(TOKEN_A) is None
        assert store.get_admin_session(TOKEN_A) is None

    def test_tables_are_separate(self, store, clock):
        """A user token should not be found as an admin session and vice versa."""
        add_user_session(store, clock, token=TOKEN_A)
        add_admin_session(store, clock, token=TOKEN_B)

        assert store.get_admin_session(TOKEN_A) is None
        assert store.get_user_session(TOKEN_B) is None

    def test_duplicate_token_raises_conflict(self, store, clock):
        add_user_session(store, clock)

        with pytest.raises(SessionConflictError):
            add_user_session(store, clock)

        # The original row is untouched and the store is still usable
        assert store.count_sessions(SessionRole.USER) == 1
        assert store.get_user_session(TOKEN_A) is not None

    def test_duplicate_admin_token_raises_conflict(self, store, clock):
        add_admin_session(store, clock)

        with pytest.raises(SessionConflictError):
            add_admin_session(store, clock)


class TestExpiryFiltering:
    """Reads must never return expired rows."""

    def test_live_until_expiry(self, store, clock):
        add_user_session(store, clock, ttl=timedelta(hours=1))

        clock.advance(minutes=59, seconds=59)
        assert store.get_user_session(TOKEN_A) is not None

    def test_expired_at_exact_expiry(self, store, clock):
        add_user_session(store, clock, ttl=timedelta(hours=1))

        clock.advance(hours=1)
        assert store.get_user_session(TOKEN_A) is None

    def test_expired_row_is_filtered_but_not_deleted_by_read(self, store, clock):
        add_admin_session(store, clock, ttl=timedelta(hours=1))

        clock.advance(hours=2)

        assert store.get_admin_session(TOKEN_B) is None
        assert store.count_sessions(SessionRole.ADMIN) == 1


class TestDelete:
    """Tests for deletes, purge and sweep."""

    def test_delete_is_idempotent(self, store, clock):
        add_user_session(store, clock)

        assert store.delete_user_session(TOKEN_A) is True
        assert store.delete_user_session(TOKEN_A) is False
        assert store.get_user_session(TOKEN_A) is None

    def test_delete_admin_session(self, store, clock):
        add_admin_session(store, clock)

        assert store.delete_session(TOKEN_B, SessionRole.ADMIN) is True
        assert store.get_admin_session(TOKEN_B) is None

    def test_delete_wrong_role_leaves_row(self, store, clock):
        add_admin_session(store, clock)

        assert store.delete_user_session(TOKEN_B) is False
        assert store.get_admin_session(TOKEN_B) is not None

    def test_purge_if_expired_keeps_live_rows(self, store, clock):
        add_user_session(store, clock)

        assert store.purge_if_expired(TOKEN_A, SessionRole.USER) is False
        assert store.count_sessions(SessionRole.USER) == 1

    def test_purge_if_expired_removes_expired_row(self, store, clock):
        add_user_session(store, clock, ttl=timedelta(minutes=5))
        clock.advance(minutes=5)

        assert store.purge_if_expired(TOKEN_A, SessionRole.USER) is True
        assert store.count_sessions(SessionRole.USER) == 0

    def test_purge_of_unknown_or_live_token_does_not_write(self, store, clock, monkeypatch):
        add_user_session(store, clock)
        commits = []
        monkeypatch.setattr(store.db, "commit", lambda: commits.append(1))

        assert store.purge_if_expired(TOKEN_B, SessionRole.USER) is False
        assert store.purge_if_expired(TOKEN_A, SessionRole.USER) is False
        assert commits == []

    def test_sweep_removes_only_expired_rows(self, store, clock):
        add_user_session(store, clock, token="1" * 64, ttl=timedelta(hours=1))
        add_user_session(store, clock, token="2" * 64, ttl=timedelta(days=30))
        add_admin_session(store, clock, token="3" * 64, ttl=timedelta(hours=1))
        add_admin_session(store, clock, token="4" * 64, ttl=timedelta(hours=12))

        clock.advance(hours=2)

        assert store.sweep_expired() == (1, 1)
        assert store.get_user_session("2" * 64) is not None
        assert store.get_admin_session("4" * 64) is not None
        assert store.count_sessions(SessionRole.USER) == 1
        assert store.count_sessions(SessionRole.ADMIN) == 1

    def test_sweep_with_nothing_expired(self, store, clock):
        add_user_session(store, clock)
        assert store.sweep_expired() == (0, 0)


class TestStoreFaults:
    """Database faults surface as StoreUnavailableError."""

    def test_lookup_failure_is_reported(self, store, monkeypatch):
        def broken_execute(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(store.db, "execute", broken_execute)

        with pytest.raises(StoreUnavailableError):
            store.get_user_session(TOKEN_A)

    def test_insert_failure_is_reported(self, store, clock, monkeypatch):
        def broken_commit():
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        monkeypatch.setattr(store.db, "commit", broken_commit)

        with pytest.raises(StoreUnavailableError):
            add_user_session(store, clock)
