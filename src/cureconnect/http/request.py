"""HTTP requests.

Controllers and the dispatcher only talk to the ``HttpRequest`` protocol:
method, path, ``query`` and ``form`` accessors with ``get(key, default)``
semantics, headers, cookies, the per-client ``session`` dict, and the
full ``uri``. Two interchangeable variants implement it:

- ``Request``: full-featured, built by the ASGI adapter from a scope and
  the pre-read body.
- ``SimpleRequest``: minimal, built from a CGI/WSGI-style environ or from
  plain keyword arguments (handy in tests and the ``request`` CLI command).

The variant is chosen by whoever constructs the request; nothing checks
which one it received.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlencode

from cureconnect.http.cookies import parse_cookies
from cureconnect.http.headers import Headers
from cureconnect.http.params import Params

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


@runtime_checkable
class HttpRequest(Protocol):
    """What controllers and the dispatcher may rely on."""

    method: str
    path: str
    headers: Headers
    cookies: Mapping[str, str]
    session: dict[str, Any]

    @property
    def query(self) -> Params: ...

    @property
    def form(self) -> Params: ...

    @property
    def uri(self) -> str: ...

    @property
    def client_ip(self) -> str: ...

    def is_method(self, method: str) -> bool: ...


def _parse_form(content_type: str | None, body: bytes) -> Params:
    """Parse a URL-encoded body. Any other content type yields an empty form."""
    if not body:
        return Params()
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type != FORM_CONTENT_TYPE:
        return Params()
    return Params.parse(body)


def _build_uri(scheme: str, host: str, path: str, query: str) -> str:
    uri = f"{scheme}://{host}{path}"
    if query:
        uri = f"{uri}?{query}"
    return uri


# ---------------------------------------------------------------------------
# Full-featured variant (ASGI)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request built from an ASGI scope.

    Metadata is frozen at creation. The body is read by the ASGI adapter
    before dispatch, so form access is synchronous here. The ``session``
    dict is mutable: controllers write CSRF tokens, flash messages, and
    language preferences into it.
    """

    method: str
    path: str
    query: Params
    headers: Headers
    cookies: Mapping[str, str]
    scheme: str = "http"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None
    http_version: str = "1.1"
    body: bytes = b""
    session: dict[str, Any] = field(default_factory=dict, compare=False)

    # Private: parsed form cache
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def form(self) -> Params:
        """Parsed URL-encoded body parameters (cached)."""
        if "_form" not in self._cache:
            self._cache["_form"] = _parse_form(self.content_type, self.body)
        return self._cache["_form"]

    @property
    def host(self) -> str:
        host = self.headers.get("host")
        if host:
            return host
        if self.server:
            name, port = self.server
            default = 443 if self.scheme == "https" else 80
            return name if port == default else f"{name}:{port}"
        return "localhost"

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    @property
    def uri(self) -> str:
        """Full request URI: scheme, host, path, and query string."""
        return _build_uri(self.scheme, self.host, self.path, self.query.raw)

    @property
    def client_ip(self) -> str:
        """The peer address as reported by the server."""
        if self.client:
            return self.client[0]
        return "0.0.0.0"

    def is_method(self, method: str) -> bool:
        return self.method == method.upper()

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body or b"null")

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], body: bytes = b"") -> Request:
        """Create a Request from an ASGI scope and the already-read body."""
        headers = Headers.from_asgi(scope.get("headers", ()))
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"] or "/",
            query=Params.parse(scope.get("query_string", b"")),
            headers=headers,
            cookies=parse_cookies(headers.get("cookie")),
            scheme=scope.get("scheme", "http"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            http_version=scope.get("http_version", "1.1"),
            body=body,
        )


# ---------------------------------------------------------------------------
# Minimal variant (CGI environ / keyword arguments)
# ---------------------------------------------------------------------------


class SimpleRequest:
    """A minimal request built without a server.

    Usage::

        request = SimpleRequest("GET", "/about", query={"lang": "bn"})
        request = SimpleRequest("POST", "/contact", form={"name": "Asha"})
        request = SimpleRequest.from_environ(os.environ, body=sys.stdin.buffer.read())
    """

    __slots__ = (
        "_host",
        "_remote_addr",
        "_scheme",
        "cookies",
        "form",
        "headers",
        "method",
        "path",
        "query",
        "session",
    )

    def __init__(
        self,
        method: str = "GET",
        path: str = "/",
        *,
        query: Mapping[str, str] | str | None = None,
        form: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        session: dict[str, Any] | None = None,
        scheme: str = "http",
        host: str = "localhost",
        remote_addr: str = "127.0.0.1",
    ) -> None:
        self.method = method.upper()
        path, _, inline_query = path.partition("?")
        self.path = path or "/"
        explicit_query = query if isinstance(query, str) else urlencode(dict(query or {}))
        # Inline pairs come first, so get() prefers them and get_list() sees both
        self.query = Params.parse("&".join(part for part in (inline_query, explicit_query) if part))
        self.form = Params(dict(form)) if form else Params()
        self.headers = Headers(tuple((headers or {}).items()))
        self.cookies = parse_cookies(self.headers.get("cookie"))
        self.session = session if session is not None else {}
        self._scheme = scheme
        self._host = self.headers.get("host") or host
        self._remote_addr = remote_addr

    @classmethod
    def from_environ(cls, environ: Mapping[str, str], body: bytes = b"") -> SimpleRequest:
        """Build from a CGI/WSGI-style environ mapping."""
        headers = Headers.from_environ(environ)
        path = environ.get("PATH_INFO") or environ.get("REQUEST_URI", "/").split("?", 1)[0]
        request = cls(
            environ.get("REQUEST_METHOD", "GET"),
            path or "/",
            query=environ.get("QUERY_STRING", ""),
            scheme="https" if environ.get("HTTPS", "").lower() in ("on", "1") else "http",
            host=environ.get("HTTP_HOST") or environ.get("SERVER_NAME", "localhost"),
            remote_addr=environ.get("REMOTE_ADDR", "0.0.0.0"),
        )
        request.headers = headers
        request.cookies = parse_cookies(headers.get("cookie"))
        request.form = _parse_form(environ.get("CONTENT_TYPE"), body)
        return request

    @property
    def uri(self) -> str:
        return _build_uri(self._scheme, self._host, self.path, self.query.raw)

    @property
    def client_ip(self) -> str:
        return self._remote_addr

    def is_method(self, method: str) -> bool:
        return self.method == method.upper()

    def __repr__(self) -> str:
        return f"SimpleRequest({self.method!r}, {self.path!r})"
