"""
Tests for SessionManager.

Covers primary-account locking, reset semantics and the best-effort
login audit log.
"""

from unittest.mock import MagicMock

import pytest

from core.errors import BackendUnavailable, InvalidCredentials
from core.session_core import SessionManager
from device.interfaces import LOGIN_COLLECTION, RecordStoreInterface
from utils.preferences import FIRST_PASSWORD_KEY, FIRST_USERNAME_KEY


@pytest.fixture
def sessions(preferences, record_store):
    manager = SessionManager(preferences, record_store)
    yield manager
    manager.close()


class TestLogin:
    @pytest.mark.parametrize("username, secret", [("", "pw"), ("alice", ""), ("", "")])
    def test_empty_credentials_rejected(self, sessions, username, secret):
        with pytest.raises(InvalidCredentials):
            sessions.login(username, secret)
        assert sessions.current_session is None
        assert sessions.primary_account is None

    def test_first_login_becomes_primary(self, sessions, preferences):
        session = sessions.login("alice", "pw1")

        assert session.is_primary is True
        assert sessions.is_logged_in
        assert preferences.get(FIRST_USERNAME_KEY) == "alice"
        assert preferences.get(FIRST_PASSWORD_KEY) == "pw1"

    def test_other_credentials_are_not_primary(self, sessions):
        sessions.login("alice", "pw1")
        assert sessions.login("bob", "pw2").is_primary is False
        assert sessions.login("alice", "wrong").is_primary is False
        assert sessions.login("alice", "pw1").is_primary is True
        assert sessions.primary_account.username == "alice"

    def test_secret_hidden_from_repr(self, sessions):
        session = sessions.login("alice", "hunter2")
        assert "hunter2" not in repr(session)

    def test_logout_keeps_primary_account(self, sessions):
        sessions.login("alice", "pw1")
        sessions.logout()
        assert sessions.current_session is None
        assert sessions.primary_account is not None


class TestResetPrimary:
    def test_reset_clears_keys_and_primary_flag(self, sessions, preferences):
        sessions.login("alice", "pw1")
        sessions.reset_primary_account()

        assert preferences.get(FIRST_USERNAME_KEY) is None
        assert preferences.get(FIRST_PASSWORD_KEY) is None
        assert sessions.primary_account is None
        assert sessions.current_session.username == "alice"
        assert sessions.current_session.is_primary is False

    def test_next_login_after_reset_becomes_primary(self, sessions):
        sessions.login("alice", "pw1")
        sessions.reset_primary_account()
        assert sessions.login("bob", "pw2").is_primary is True

    def test_same_credentials_after_reset_become_primary_again(self, sessions, preferences):
        sessions.login("alice", "pw1")
        sessions.reset_primary_account()

        session = sessions.login("alice", "pw1")

        assert session.is_primary is True
        assert sessions.primary_account.username == "alice"
        assert preferences.get(FIRST_USERNAME_KEY) == "alice"
        assert preferences.get(FIRST_PASSWORD_KEY) == "pw1"

    def test_reset_without_session(self, sessions):
        sessions.reset_primary_account()
        assert sessions.current_session is None


class TestListeners:
    def test_listeners_see_every_change(self, sessions):
        seen = []
        sessions.add_listener(seen.append)

        sessions.login("alice", "pw1")
        sessions.reset_primary_account()
        sessions.logout()

        assert [s.is_primary if s else None for s in seen] == [True, False, None]


class TestLoginAudit:
    def test_login_is_recorded(self, sessions, record_store):
        sessions.login("alice", "pw1")
        sessions.flush_audit(timeout=5)

        docs = record_store.fetch_all(LOGIN_COLLECTION)
        assert len(docs) == 1
        assert docs[0].data["username"] == "alice"
        assert docs[0].data["password"] == "pw1"
        assert docs[0].data["timestamp"] is not None

    def test_audit_failure_does_not_fail_login(self, preferences):
        store = MagicMock(spec=RecordStoreInterface)
        store.append.side_effect = BackendUnavailable("offline")
        manager = SessionManager(preferences, store)
        try:
            session = manager.login("alice", "pw1")
            manager.flush_audit(timeout=5)
        finally:
            manager.close()

        assert session.username == "alice"
        store.append.assert_called_once()
