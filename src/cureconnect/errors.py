"""CureConnect exception hierarchy.

Shared across the application, data layer, renderers, and controllers so
every module raises and catches the same types. Boot failures are
attributable by type: ``ConfigurationError`` vs ``DatabaseConnectionError``
vs ``TemplateError``.
"""

from dataclasses import dataclass


class CureConnectError(Exception):
    """Base for all cureconnect-specific errors."""


class ConfigurationError(CureConnectError):
    """Raised when configuration is missing, malformed, or invalid.

    Typically raised during ``Application.boot()``.
    """


class ResponseAlreadySent(CureConnectError):  # noqa: N818
    """Raised when a response is written to the wire a second time."""


# -- Data layer --


class DataError(CureConnectError):
    """Base for all storage errors."""


class DatabaseConnectionError(DataError):
    """Raised when the storage handle cannot be opened."""


class QueryError(DataError):
    """Raised when a SQL statement fails."""


class MigrationError(DataError):
    """Raised when a migration file is invalid or fails to apply."""


# -- Templating --


class TemplateError(CureConnectError):
    """Base for template loading and parsing errors."""


class TemplateNotFound(TemplateError):  # noqa: N818
    """Raised when a template (or the parent it extends) does not exist."""

    def __init__(self, path: str, *, parent: bool = False) -> None:
        self.path = path
        self.parent = parent
        prefix = "Base template not found" if parent else "Template not found"
        super().__init__(f"{prefix}: {path}")


class TemplateSyntaxError(TemplateError):
    """Raised when a template cannot be parsed.

    Carries the template name and 1-based line number so the debug page
    can point at the offending tag.
    """

    def __init__(self, message: str, *, name: str | None = None, lineno: int | None = None) -> None:
        self.message = message
        self.name = name
        self.lineno = lineno
        location = name or "<string>"
        if lineno is not None:
            location = f"{location}:{lineno}"
        super().__init__(f"{message} ({location})")


# -- HTTP --


@dataclass(frozen=True, slots=True)
class HTTPError(CureConnectError):
    """An error that maps directly to an HTTP status code.

    Raised by controllers. The dispatcher renders the not-found page for
    404 and the generic error page for every other status.
    """

    status: int
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class BadRequest(HTTPError):  # noqa: N818
    """400: malformed or invalid request parameters."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class Forbidden(HTTPError):  # noqa: N818
    """403: the request failed a security check."""

    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(status=403, detail=detail)


class NotFound(HTTPError):  # noqa: N818
    """404: no route or resource matched the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
