"""Security helpers: escaping, sanitizing, CSRF, rate limiting, slugs.

All state lives in the per-client session dict passed in by the caller,
so these are plain functions with no globals, no ambient request.

CSRF usage::

    token = generate_csrf_token(request.session)   # render into the form
    ...
    if not verify_csrf_token(request.session, request.form.get("csrf_token", "")):
        ...
"""

import html
import ipaddress
import logging
import re
import secrets
import time
from collections.abc import MutableMapping
from typing import Any

from cureconnect.http.request import HttpRequest

logger = logging.getLogger("cureconnect.security")

CSRF_SESSION_KEY = "csrf_token"
CSRF_FIELD_NAME = "csrf_token"
CSRF_TOKEN_BYTES = 32


# ---------------------------------------------------------------------------
# Output escaping and input sanitizing
# ---------------------------------------------------------------------------


def escape_html(value: str) -> str:
    """Escape ``& < > " '`` for safe inclusion in HTML."""
    return html.escape(value, quote=True)


_BACKSLASH_RE = re.compile(r"\\(.?)", re.DOTALL)


def strip_slashes(value: str) -> str:
    """Remove backslash escapes (``\\'`` → ``'``, ``\\\\`` → ``\\``)."""
    return _BACKSLASH_RE.sub(lambda m: m.group(1), value)


def clean_input(value: str | None) -> str:
    """Trim and strip backslashes. For values stored and re-rendered through an escaping renderer."""
    if not value:
        return ""
    return strip_slashes(value.strip())


def sanitize_input(value: str | None) -> str:
    """Trim, strip backslashes, then HTML-escape a raw input value."""
    return escape_html(clean_input(value))


# ---------------------------------------------------------------------------
# CSRF
# ---------------------------------------------------------------------------


def generate_csrf_token(session: MutableMapping[str, Any]) -> str:
    """Return the session's CSRF token, creating it on first use."""
    token = session.get(CSRF_SESSION_KEY)
    if not token:
        token = secrets.token_hex(CSRF_TOKEN_BYTES)
        session[CSRF_SESSION_KEY] = token
    return token


def verify_csrf_token(session: MutableMapping[str, Any], token: str | None) -> bool:
    """Constant-time check of *token* against the session's CSRF token."""
    expected = session.get(CSRF_SESSION_KEY)
    if not expected or not token:
        return False
    return secrets.compare_digest(str(expected), token)


# ---------------------------------------------------------------------------
# Format checks
# ---------------------------------------------------------------------------

# Basic email pattern: checks structure, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9\-]+(\.[a-zA-Z0-9\-]+)*\.[a-zA-Z]{2,}$")
_PHONE_STRIP_RE = re.compile(r"[^0-9+\-\s()]")
_PHONE_RE = re.compile(r"^\+?[0-9\-\s()]{7,20}$")


def validate_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def validate_phone(value: str) -> bool:
    """7–20 characters of digits, spaces, dashes, parentheses, optional leading ``+``."""
    cleaned = _PHONE_STRIP_RE.sub("", value)
    return bool(_PHONE_RE.match(cleaned))


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------

_SLUG_INVALID_RE = re.compile(r"[^a-z0-9\s-]")
_SLUG_SEPARATOR_RE = re.compile(r"[\s-]+")


def generate_slug(value: str) -> str:
    """URL-safe slug: lowercase ASCII letters, digits, single dashes."""
    slug = _SLUG_INVALID_RE.sub("", value.lower())
    slug = _SLUG_SEPARATOR_RE.sub("-", slug)
    return slug.strip("-")


# ---------------------------------------------------------------------------
# Client identity
# ---------------------------------------------------------------------------


def _public_ip(value: str) -> str | None:
    candidate = value.split(",", 1)[0].strip()
    try:
        address = ipaddress.ip_address(candidate)
    except ValueError:
        return None
    if address.is_private or address.is_reserved or address.is_loopback:
        return None
    return candidate


def client_ip(request: HttpRequest) -> str:
    """Best-effort client address.

    Checks ``Client-IP`` then the first hop of ``X-Forwarded-For``,
    accepting only public addresses, and falls back to the peer address.
    """
    for header in ("client-ip", "x-forwarded-for"):
        raw = request.headers.get(header)
        if raw:
            found = _public_ip(raw)
            if found:
                return found
    return request.client_ip


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


def check_rate_limit(
    session: MutableMapping[str, Any],
    key: str,
    max_attempts: int = 5,
    window_seconds: int = 300,
    *,
    now: float | None = None,
) -> bool:
    """Count an attempt against ``rate_limit_<key>`` in the session.

    Returns True while the caller is within *max_attempts* for the
    current window, False once the limit is reached. The counter resets
    when the window has elapsed.
    """
    session_key = f"rate_limit_{key}"
    current = time.time() if now is None else now
    data = session.get(session_key)

    if not isinstance(data, dict) or current - float(data.get("start_time", 0)) > window_seconds:
        session[session_key] = {"count": 1, "start_time": current}
        return True

    count = int(data.get("count", 0))
    if count >= max_attempts:
        logger.info("Rate limit reached for %s (%d attempts)", key, count)
        return False

    session[session_key] = {"count": count + 1, "start_time": data["start_time"]}
    return True
