"""Request-scoped context via ContextVar.

``request_var`` holds the request being dispatched on the current thread
or task. ``Application.handle_request()`` sets it before invoking a
controller and resets it afterwards, so helpers that have no request
argument (the translator's language resolution, the template globals)
can still see it.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local for the
    worker threads anyio dispatches to. No locks needed.
"""

from contextvars import ContextVar

from cureconnect.http.request import HttpRequest

request_var: ContextVar[HttpRequest] = ContextVar("cureconnect_request")
"""The current request. Set by the dispatcher."""


def get_request() -> HttpRequest:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


def current_request() -> HttpRequest | None:
    """Return the current request, or None outside a request context."""
    return request_var.get(None)
