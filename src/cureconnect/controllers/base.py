"""Shared controller plumbing.

A controller is constructed per request with the application (config,
renderer, translator, storage handle) and the request, then one action
method is called. Actions return a ``Response``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from cureconnect.http.request import HttpRequest
from cureconnect.http.response import Response
from cureconnect.security import generate_csrf_token
from cureconnect.server.errors import ERROR_TEMPLATE

if TYPE_CHECKING:
    from cureconnect.app import Application

FLASH_KEY = "flash"


def build_meta(
    app_name: str,
    url: str,
    title: str = "",
    description: str = "",
    keywords: str = "",
    image: str = "",
) -> dict[str, str]:
    """Page title plus Open Graph and Twitter card fields."""
    return {
        "title": f"{title} - {app_name}" if title else app_name,
        "description": description,
        "keywords": keywords,
        "og_title": title or app_name,
        "og_description": description,
        "og_image": image,
        "og_url": url,
        "twitter_title": title or app_name,
        "twitter_description": description,
    }


class BaseController:
    """Base for every controller in the route table."""

    __slots__ = ("app", "request")

    def __init__(self, app: Application, request: HttpRequest) -> None:
        self.app = app
        self.request = request

    # -- Responses --

    def render(self, template: str, data: Mapping[str, Any] | None = None, status: int = 200) -> Response:
        """Render *template* with the shared page context merged under *data*."""
        context: dict[str, Any] = {
            **self.app.base_context(self.request),
            "flash": self.pop_flash(),
            "csrf_token": generate_csrf_token(self.request.session),
        }
        if data:
            context.update(data)
        body = self.app.renderer.render(template, context)
        return Response(body=body, status=status)

    def json(self, data: Any, status: int = 200) -> Response:
        return Response.json(data, status=status)

    def redirect(self, url: str, status: int = 302) -> Response:
        return Response.redirect(url, status=status)

    def error(self, message: str, status: int = 500) -> Response:
        """Render the generic error page with *message*."""
        return self.render(
            ERROR_TEMPLATE,
            {"title": message, "status": status, "detail": message},
            status=status,
        )

    # -- Flash messages --

    def flash(self, message: str, kind: str = "success") -> None:
        """Queue a one-shot message for the next rendered page."""
        self.request.session[FLASH_KEY] = {"type": kind, "message": message}

    def pop_flash(self) -> dict[str, str] | None:
        return self.request.session.pop(FLASH_KEY, None)

    # -- Language --

    def language(self) -> str:
        return self.app.translator.current_language(self.request)

    def trans(self, key: str, params: Mapping[str, Any] | None = None) -> str:
        return self.app.translator.translate(key, self.language(), params)

    # -- Metadata --

    def meta_tags(
        self,
        title: str = "",
        description: str = "",
        keywords: str = "",
        image: str = "",
    ) -> dict[str, str]:
        return build_meta(self.app.config.app.name, self.request.uri, title, description, keywords, image)
