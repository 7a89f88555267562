"""
Tests for session identity resolution
"""

import pytest
import jwt
from datetime import datetime, timezone, timedelta

from fund_ledger.config import LedgerConfig
from fund_ledger.errors import NotAuthenticated, SessionCorrupted
from fund_ledger.identity import Identity, issue_session, resolve_identity


@pytest.fixture
def config():
    return LedgerConfig(session_secret="test-secret", session_expiry_hours=1)


def _token(payload, secret="test-secret"):
    return jwt.encode(payload, secret, algorithm="HS256")


class TestResolveIdentity:
    """Test resolve_identity"""

    def test_issued_session_round_trip(self, config):
        token = issue_session(42, config)
        assert resolve_identity(token, config) == Identity(user_id=42)

    def test_missing_session(self, config):
        with pytest.raises(NotAuthenticated):
            resolve_identity(None, config)

        with pytest.raises(NotAuthenticated):
            resolve_identity("", config)

    def test_session_without_user_id(self, config):
        with pytest.raises(NotAuthenticated):
            resolve_identity(_token({"sub": "someone"}), config)

    def test_expired_session_is_logged_out(self, config):
        expired = _token({
            "user_id": 1,
            "exp": datetime.now(timezone.utc) - timedelta(minutes=5)
        })
        with pytest.raises(NotAuthenticated):
            resolve_identity(expired, config)

    def test_garbage_session_is_corrupted(self, config):
        with pytest.raises(SessionCorrupted):
            resolve_identity("not-a-token", config)

    def test_wrong_signature_is_corrupted(self, config):
        forged = _token({"user_id": 1}, secret="other-secret")
        with pytest.raises(SessionCorrupted):
            resolve_identity(forged, config)

    @pytest.mark.parametrize("user_id", ["1", 1.5, True, -3, [1]])
    def test_malformed_user_id_is_corrupted(self, config, user_id):
        with pytest.raises(SessionCorrupted):
            resolve_identity(_token({"user_id": user_id}), config)

    def test_corrupted_and_logged_out_are_distinct(self):
        assert not issubclass(SessionCorrupted, NotAuthenticated)
        assert SessionCorrupted.status_code != NotAuthenticated.status_code

    def test_identity_is_immutable(self):
        identity = Identity(user_id=5)
        with pytest.raises(AttributeError):
            identity.user_id = 6
