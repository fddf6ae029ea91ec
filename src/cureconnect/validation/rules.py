"""Built-in validation rules.

Each validator is a callable with the signature::

    def rule(value: str) -> str | None:
        '''Return error message, or None if valid.'''

Parameterized validators are factory functions that return a validator::

    def max_length(n: int) -> Validator:
        def check(value: str) -> str | None:
            if len(value) > n:
                return f"Must be at most {n} characters"
            return None
        return check

Custom validators follow the same protocol: any callable matching
``(str) -> str | None`` works with ``validate()``.
"""

import re
from collections.abc import Callable
from datetime import date, datetime

from cureconnect.security import validate_email

# Type alias for a validator function
type Validator = Callable[[str], str | None]


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: str) -> str | None:
    """Field must be present and non-empty."""
    if not value or not value.strip():
        return "This field is required"
    return None


def optional(*validators: Validator) -> Validator:
    """Run *validators* only when the value is non-empty."""

    def check(value: str) -> str | None:
        if not value:
            return None
        for validator in validators:
            error = validator(value)
            if error is not None:
                return error
        return None

    return check


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Validator:
    """String must be at most *n* characters."""

    def check(value: str) -> str | None:
        if len(value) > n:
            return f"Must be at most {n} characters"
        return None

    return check


def min_length(n: int) -> Validator:
    """String must be at least *n* characters."""

    def check(value: str) -> str | None:
        if len(value) < n:
            return f"Must be at least {n} characters"
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------


def email(value: str) -> str | None:
    """Value must be a valid email address (basic format check)."""
    if not validate_email(value):
        return "Must be a valid email address"
    return None


def matches(pattern: str, message: str | None = None) -> Validator:
    """Value must match the given regex pattern."""
    compiled = re.compile(pattern)

    def check(value: str) -> str | None:
        if not compiled.match(value):
            return message or f"Must match pattern: {pattern}"
        return None

    return check


def date_format(fmt: str = "%Y-%m-%d", message: str = "Must be a valid date") -> Validator:
    """Value must parse with *fmt* and round-trip unchanged (no ``2025-2-30``)."""

    def check(value: str) -> str | None:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            return message
        if parsed.strftime(fmt) != value:
            return message
        return None

    return check


def time_format(fmt: str = "%H:%M", message: str = "Must be a valid time") -> Validator:
    """Value must be a time in *fmt* (24-hour ``HH:MM`` by default)."""
    return date_format(fmt, message)


def not_past(
    today: Callable[[], date] = date.today,
    fmt: str = "%Y-%m-%d",
    message: str = "Date cannot be in the past",
) -> Validator:
    """A date value must be today or later. Unparsable values pass (pair with ``date_format``)."""

    def check(value: str) -> str | None:
        try:
            parsed = datetime.strptime(value, fmt).date()
        except ValueError:
            return None
        if parsed < today():
            return message
        return None

    return check


# ---------------------------------------------------------------------------
# Choice
# ---------------------------------------------------------------------------


def one_of(*choices: str) -> Validator:
    """Value must be one of the given choices."""
    allowed = frozenset(choices)

    def check(value: str) -> str | None:
        if value not in allowed:
            options = ", ".join(sorted(allowed))
            return f"Must be one of: {options}"
        return None

    return check
