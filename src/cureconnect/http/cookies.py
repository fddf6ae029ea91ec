"""Cookies on the way in and on the way out.

Both directions go through ``http.cookies`` so quoting is symmetric: a
value that needs quoting is quoted by ``SetCookie`` and unquoted again by
``parse_cookies`` on the next request. The signed session token is plain
URL-safe text and travels unquoted.
"""

from dataclasses import dataclass
from http.cookies import CookieError, SimpleCookie


def parse_cookies(header: str | None) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Each ``;``-separated pair is loaded on its own, so one malformed
    cookie set by some other site on the same host drops only itself.
    Quoted values are unquoted.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        jar = SimpleCookie()
        try:
            jar.load(pair)
        except CookieError:
            continue
        for name, morsel in jar.items():
            cookies[name] = morsel.value
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive attached to a Response."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string.

        Raises:
            CookieError: If ``name`` is not a legal cookie name.
        """
        jar = SimpleCookie()
        jar[self.name] = self.value
        morsel = jar[self.name]
        if self.max_age is not None:
            morsel["max-age"] = self.max_age
        if self.path:
            morsel["path"] = self.path
        morsel["secure"] = self.secure
        morsel["httponly"] = self.httponly
        if self.samesite:
            morsel["samesite"] = self.samesite
        return morsel.OutputString()
