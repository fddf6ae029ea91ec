"""Signed cookie sessions.

Session data is serialized as JSON and signed using ``itsdangerous``.
Per-client state (CSRF token, rate-limit counters, language preference,
flash messages) lives here, outside the process.

The transport adapters load the session into ``request.session`` before
dispatch and commit it onto the response afterwards; the dispatcher
itself never touches it.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from cureconnect.errors import ConfigurationError
from cureconnect.http.response import Response


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session cookie configuration.

    ``secret_key`` is required. Sessions are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "cureconnect_session"
    max_age: int = 86400  # 24 hours
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


class SessionStore:
    """Loads and commits signed session cookies.

    Usage::

        store = SessionStore(SessionConfig(secret_key="..."))
        request.session.update(store.load(request.cookies))
        ...
        response = store.commit(response, request.session)
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt="cureconnect.session")

    @property
    def config(self) -> SessionConfig:
        return self._config

    def load(self, cookies: Mapping[str, str]) -> dict[str, Any]:
        """Deserialize and verify the session cookie.

        A missing, expired, or tampered cookie yields an empty session.
        """
        cookie_value = cookies.get(self._config.cookie_name)
        if not cookie_value:
            return {}
        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadSignature:
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def dumps(self, session: Mapping[str, Any]) -> str:
        """Sign *session* into a cookie value."""
        return self._serializer.dumps(dict(session))

    def commit(self, response: Response, session: Mapping[str, Any]) -> Response:
        """Serialize the session dict and set the cookie on the response."""
        cfg = self._config
        return response.with_cookie(
            cfg.cookie_name,
            self.dumps(session),
            max_age=cfg.max_age,
            path=cfg.path,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )
