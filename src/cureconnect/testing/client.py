"""Async test client for the CureConnect application.

Uses the same Response type as production and drives the ASGI
interface directly. No HTTP involved.
"""

from typing import Any
from urllib.parse import urlencode

from cureconnect.app import Application
from cureconnect.http.response import Response


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client with a cookie jar.

    Cookies set by responses are replayed on later requests, so the
    signed session (CSRF token, flash messages, language, rate-limit
    counters) carries across calls like it would in a browser.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
    """

    __slots__ = ("app", "cookies")

    def __init__(self, app: Application) -> None:
        self.app = app
        self.cookies: dict[str, str] = {}

    async def __aenter__(self) -> "TestClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        self.cookies.clear()

    @property
    def session(self) -> dict[str, Any]:
        """The session as the server last signed it."""
        return self.app.sessions.load(self.cookies)

    async def get(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
    ) -> Response:
        """Send a GET request."""
        if query:
            separator = "&" if "?" in path else "?"
            path = f"{path}{separator}{urlencode(query)}"
        return await self.request("GET", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        form: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send a POST request. ``form`` is URL-encoded into the body."""
        extra_headers: dict[str, str] = {}
        request_body = body or b""
        if form is not None:
            request_body = urlencode(form).encode("utf-8")
            extra_headers["content-type"] = "application/x-www-form-urlencoded"
        merged = {**extra_headers, **(headers or {})}
        return await self.request("POST", path, headers=merged, body=request_body)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send an arbitrary request through the ASGI app."""
        if "?" in path:
            path_part, query_string = path.split("?", 1)
        else:
            path_part = path
            query_string = ""

        outgoing = dict(headers or {})
        if self.cookies and not any(name.lower() == "cookie" for name in outgoing):
            outgoing["cookie"] = "; ".join(f"{name}={value}" for name, value in self.cookies.items())

        raw_headers: list[tuple[bytes, bytes]] = [(b"host", b"testserver")]
        for name, value in outgoing.items():
            raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "scheme": "http",
            "path": path_part,
            "raw_path": path_part.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": raw_headers,
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }

        request_body = body or b""
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            return {"type": "http.disconnect"}

        response_status = 200
        response_headers: list[tuple[bytes, bytes]] = []
        response_body_parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                response_body_parts.append(message.get("body", b""))

        await self.app(scope, receive, send)

        content_type = "text/html; charset=utf-8"
        extra_headers: list[tuple[str, str]] = []
        for name_b, value_b in response_headers:
            name_str = name_b.decode("latin-1")
            value_str = value_b.decode("latin-1")
            if name_str == "content-type":
                content_type = value_str
            elif name_str == "set-cookie":
                self._store_cookie(value_str)
                extra_headers.append((name_str, value_str))
            elif name_str != "content-length":
                extra_headers.append((name_str, value_str))

        return Response(
            body=b"".join(response_body_parts),
            status=response_status,
            content_type=content_type,
            headers=tuple(extra_headers),
        )

    def _store_cookie(self, header: str) -> None:
        pair, _, attributes = header.partition(";")
        name, _, value = pair.strip().partition("=")
        if "max-age=0" in attributes.lower().replace(" ", ""):
            self.cookies.pop(name, None)
        else:
            self.cookies[name] = value
