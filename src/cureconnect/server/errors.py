"""Error handling pipeline for dispatched requests.

Maps ``HTTPError`` exceptions and unexpected failures to complete
Response objects. Every function here returns a Response; none of them
raises, so the dispatcher can always hand something sendable back.
"""

import logging
from collections.abc import Mapping
from typing import Any

from cureconnect.errors import HTTPError
from cureconnect.http.request import HttpRequest
from cureconnect.http.response import Response
from cureconnect.server.debug_page import render_debug_page
from cureconnect.templating import Renderer

logger = logging.getLogger("cureconnect.server")

NOT_FOUND_TEMPLATE = "errors/404.html"
SERVER_ERROR_TEMPLATE = "errors/500.html"
ERROR_TEMPLATE = "errors/error.html"

# Rendered when even the 500 template cannot be.
MINIMAL_500_BODY = (
    "<!DOCTYPE html><html><head><title>Internal Server Error</title></head>"
    "<body><h1>Internal Server Error</h1>"
    "<p>Something went wrong. Please try again later.</p></body></html>"
)


def handle_not_found(
    exc: HTTPError,
    request: HttpRequest,
    renderer: Renderer,
    context: Mapping[str, Any],
) -> Response:
    """Render the not-found page with status 404."""
    logger.debug("404 %s %s: %s", request.method, request.path, exc.detail)
    body = renderer.render(
        NOT_FOUND_TEMPLATE,
        {**context, "title": "Page Not Found", "path": request.path},
    )
    return Response(body=body, status=404)


def handle_http_error(
    exc: HTTPError,
    request: HttpRequest,
    renderer: Renderer,
    context: Mapping[str, Any],
) -> Response:
    """Render the generic error page with the exception's status."""
    if exc.status == 404:
        return handle_not_found(exc, request, renderer, context)
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    body = renderer.render(
        ERROR_TEMPLATE,
        {**context, "title": exc.detail or f"Error {exc.status}", "status": exc.status, "detail": exc.detail},
    )
    return Response(body=body, status=exc.status)


def handle_internal_error(
    exc: BaseException,
    request: HttpRequest | None,
    renderer: Renderer | None,
    context: Mapping[str, Any],
    *,
    debug: bool,
) -> Response:
    """Handle an unexpected exception as a 500.

    With ``debug`` on, the page shows the message and traceback.
    Otherwise the opaque 500 template is rendered, falling back to a
    static page if that fails too.
    """
    if request is not None:
        logger.exception("500 %s %s", request.method, request.path, exc_info=exc)
    else:
        logger.exception("500 during dispatch", exc_info=exc)

    if debug:
        return Response(body=render_debug_page(exc, request), status=500)

    if renderer is not None:
        try:
            body = renderer.render(SERVER_ERROR_TEMPLATE, {**context, "title": "Internal Server Error"})
        except Exception:
            logger.exception("Could not render %s", SERVER_ERROR_TEMPLATE)
        else:
            return Response(body=body, status=500)

    return Response(body=MINIMAL_500_BODY, status=500)
