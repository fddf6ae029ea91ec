"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. Immutable by convention,
built incrementally by design.

A response is written to the wire exactly once. Both senders (the ASGI
sender in ``cureconnect.server.sender`` and the minimal CGI-style
``Response.send()``) claim the response through ``mark_sent()`` first,
which raises ``ResponseAlreadySent`` on a second attempt.
"""

from __future__ import annotations

import json as json_module
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from http import HTTPStatus
from typing import Any, BinaryIO

from cureconnect.errors import ResponseAlreadySent
from cureconnect.http.cookies import SetCookie


def body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status, headers, and cookies. Each call returns a new ``Response``
    with its own send state.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    # Private: send-once guard, fresh per instance (not copied by replace())
    _send_state: dict[str, Any] = field(
        default_factory=lambda: {"sent": False, "lock": threading.Lock()},
        init=False,
        repr=False,
        compare=False,
    )

    # -- Constructors --

    @classmethod
    def json(cls, data: Any, status: int = 200) -> Response:
        """A JSON response."""
        body = json_module.dumps(data, ensure_ascii=False, default=str)
        return cls(body=body, status=status, content_type="application/json")

    @classmethod
    def redirect(cls, url: str, status: int = 302) -> Response:
        """An empty response with a ``Location`` header."""
        return cls(body="", status=status).with_header("Location", url)

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        """Return a new Response with additional headers."""
        new = tuple(headers.items())
        return replace(self, headers=(*self.headers, *new))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    def with_cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        path: str = "/",
        secure: bool = False,
        httponly: bool = True,
        samesite: str = "lax",
    ) -> Response:
        """Return a new Response with an additional Set-Cookie."""
        cookie = SetCookie(
            name=name,
            value=value,
            max_age=max_age,
            path=path,
            secure=secure,
            httponly=httponly,
            samesite=samesite,
        )
        return replace(self, cookies=(*self.cookies, cookie))

    def without_cookie(self, name: str, path: str = "/") -> Response:
        """Return a new Response that deletes a cookie (Max-Age=0)."""
        cookie = SetCookie(name=name, value="", max_age=0, path=path)
        return replace(self, cookies=(*self.cookies, cookie))

    # -- Accessors --

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value of header *name* (case-insensitive)."""
        name_lower = name.lower()
        if name_lower == "content-type":
            return self.content_type
        for key, value in self.headers:
            if key.lower() == name_lower:
                return value
        return default

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    # -- Sending --

    @property
    def sent(self) -> bool:
        return self._send_state["sent"]

    def mark_sent(self) -> None:
        """Claim this response for writing.

        Raises:
            ResponseAlreadySent: If it has already been claimed.
        """
        with self._send_state["lock"]:
            if self._send_state["sent"]:
                msg = f"Response ({self.status}) has already been sent"
                raise ResponseAlreadySent(msg)
            self._send_state["sent"] = True

    def raw_headers(self) -> list[tuple[str, str]]:
        """All outgoing header pairs, including Content-Type, cookies, and length."""
        pairs: list[tuple[str, str]] = [("Content-Type", self.content_type)]
        pairs.extend(self.headers)
        pairs.extend(("Set-Cookie", cookie.to_header_value()) for cookie in self.cookies)
        body = self.body_bytes if body_allowed(self.status) else b""
        pairs.append(("Content-Length", str(len(body))))
        return pairs

    def send(self, stream: BinaryIO) -> None:
        """Write the response CGI-style (``Status:`` line, headers, body) to *stream*."""
        self.mark_sent()
        try:
            reason = HTTPStatus(self.status).phrase
        except ValueError:
            reason = ""
        lines = [f"Status: {self.status} {reason}".rstrip()]
        lines.extend(f"{name}: {value}" for name, value in self.raw_headers())
        head = "\r\n".join(lines) + "\r\n\r\n"
        stream.write(head.encode("latin-1"))
        if body_allowed(self.status):
            stream.write(self.body_bytes)
        stream.flush()
