"""Tests for signed cookie sessions."""

import pytest

from cureconnect.errors import ConfigurationError
from cureconnect.http import Response
from cureconnect.sessions import SessionConfig, SessionStore


@pytest.fixture
def store() -> SessionStore:
    return SessionStore(SessionConfig(secret_key="test-secret"))


class TestSessionStore:
    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            SessionStore(SessionConfig(secret_key=""))

    def test_round_trip(self, store: SessionStore) -> None:
        value = store.dumps({"language": "bn", "csrf_token": "abc"})
        assert store.load({"cureconnect_session": value}) == {"language": "bn", "csrf_token": "abc"}

    def test_missing_cookie(self, store: SessionStore) -> None:
        assert store.load({}) == {}

    def test_tampered_cookie(self, store: SessionStore) -> None:
        value = store.dumps({"language": "bn"})
        assert store.load({"cureconnect_session": value + "tampered"}) == {}

    def test_other_secret_rejected(self, store: SessionStore) -> None:
        other = SessionStore(SessionConfig(secret_key="another-secret"))
        assert store.load({"cureconnect_session": other.dumps({"a": 1})}) == {}

    def test_commit_sets_cookie(self, store: SessionStore) -> None:
        response = store.commit(Response("ok"), {"flash": {"type": "success", "message": "Saved"}})
        (cookie,) = response.cookies
        assert cookie.name == "cureconnect_session"
        assert cookie.httponly
        assert cookie.max_age == 86400
        assert store.load({cookie.name: cookie.value})["flash"]["message"] == "Saved"

    def test_secure_flag(self) -> None:
        store = SessionStore(SessionConfig(secret_key="s", secure=True))
        (cookie,) = store.commit(Response(), {}).cookies
        assert "Secure" in cookie.to_header_value()
