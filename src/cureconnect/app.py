"""The CureConnect application.

One ``Application`` per process. ``Application.boot()`` builds it on the
first call, following a fixed sequence:

1. configuration (``APP_ENV=testing`` selects the hermetic config)
2. the storage handle (connect, then apply bundled migrations)
3. the renderer, with the ``app_name``/``assets_url``/``base_url`` globals
4. the translator
5. the route table
6. the session store

Later calls return the same instance. ``reset_for_testing()`` tears it
down so the next ``boot()`` starts fresh. If any step after the storage
handle fails, the handle is closed before the error propagates.

The root path is the resource root (bundled templates, lang files,
migrations). Configuration files and a relative SQLite file live under
the instance path, which defaults to ``config.instance_root()``.

The instance is also the ASGI callable. HTTP requests are read, given a
session, dispatched through ``handle_request()`` on a worker thread, and
sent. ``handle_request()`` never raises: route misses render the 404
page, ``HTTPError`` renders its status, and anything else renders 500.

Thread safety:
    Construction is guarded by a class-level lock with a double check,
    so concurrent first requests cannot build two storage handles.
    After boot the instance is read-only; per-request state travels in
    the request object and ``request_var``.
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar

import anyio.to_thread

from cureconnect.config import Config, instance_root, load_config
from cureconnect.context import current_request, request_var
from cureconnect.controllers.base import build_meta
from cureconnect.data import Database, migrate
from cureconnect.errors import HTTPError, NotFound
from cureconnect.http.request import HttpRequest, Request
from cureconnect.http.response import Response
from cureconnect.i18n import Translator
from cureconnect.routes import build_routes
from cureconnect.routing import RouteTable
from cureconnect.server.asgi import Receive, Scope, Send, read_body
from cureconnect.server.errors import handle_http_error, handle_internal_error
from cureconnect.server.sender import send_response
from cureconnect.sessions import SessionConfig, SessionStore
from cureconnect.templating import Renderer, create_renderer

logger = logging.getLogger("cureconnect.server")

PACKAGE_ROOT = Path(__file__).resolve().parent
"""Conventional root path: bundled templates, lang files and migrations live here."""


class Application:
    """The booted application: config, storage, renderer, translator, routes."""

    __slots__ = (
        "_closed",
        "config",
        "db",
        "instance_path",
        "renderer",
        "root_path",
        "routes",
        "sessions",
        "translator",
    )

    _instance: ClassVar["Application | None"] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(
        self,
        root_path: str | Path,
        config: Config | None = None,
        *,
        instance_path: str | Path | None = None,
    ) -> None:
        self.root_path = Path(root_path)
        self.instance_path = Path(instance_path) if instance_path is not None else instance_root()
        self._closed = False

        self.config = config if config is not None else load_config(self.instance_path)
        app_settings = self.config.app

        self.db = Database(self.config.database, self.instance_path)
        self.db.connect()
        try:
            if self.config.database.migrate:
                result = migrate(self.db, self.root_path / "migrations" / self.db.driver)
                logger.debug("%s", result.summary)

            self.renderer: Renderer = create_renderer(app_settings, self.resolve(app_settings.templates_path))
            self.renderer.add_global("app_name", app_settings.name)
            self.renderer.add_global("assets_url", app_settings.assets_url)
            self.renderer.add_global("base_url", app_settings.base_url)

            self.translator = Translator(self.resolve(app_settings.lang_path), app_settings.default_language)
            self.routes: RouteTable = build_routes()
            self.sessions = SessionStore(
                SessionConfig(
                    secret_key=app_settings.secret_key,
                    secure=app_settings.base_url.startswith("https://"),
                )
            )
        except BaseException:
            self.db.disconnect()
            raise

        logger.info(
            "Booted %s (%s, %s storage, %s templates, %d routes)",
            app_settings.name,
            app_settings.environment,
            self.db.driver,
            app_settings.template_engine,
            len(self.routes),
        )

    # -- Lifecycle --

    @classmethod
    def boot(
        cls,
        root_path: str | Path | None = None,
        *,
        config: Config | None = None,
        instance_path: str | Path | None = None,
    ) -> "Application":
        """Return the process-wide instance, building it on first call.

        Arguments are ignored once an instance exists.
        """
        instance = cls._instance
        if instance is not None:
            return instance
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls(
                    root_path if root_path is not None else PACKAGE_ROOT,
                    config,
                    instance_path=instance_path,
                )
            return cls._instance

    @classmethod
    def get_instance(cls) -> "Application":
        """The existing instance, or one booted from the package root."""
        return cls.boot()

    @classmethod
    def reset_for_testing(cls) -> None:
        """Shut down and forget the process-wide instance."""
        with cls._instance_lock:
            instance, cls._instance = cls._instance, None
        if instance is not None:
            instance.shutdown()

    def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.db.disconnect()
        logger.info("Shut down %s", self.config.app.name)

    def resolve(self, path: str | Path) -> Path:
        """*path* as-is when absolute, else relative to the resource root."""
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.root_path / candidate

    @property
    def current_request(self) -> HttpRequest | None:
        return current_request()

    # -- Rendering context --

    def base_context(self, request: HttpRequest) -> dict[str, Any]:
        """Variables every page template can rely on."""
        language = self.translator.current_language(request)
        return {
            "lang": language,
            "dir": self.translator.direction(language),
            "languages": [
                {"code": code, "name": name, "active": code == language}
                for code, name in self.translator.supported_languages().items()
            ],
            "current_path": request.path,
            "config": self.config.as_dict(),
            "t": self.translator.translations(language),
            "year": datetime.now().year,
            "meta": build_meta(self.config.app.name, request.uri),
            "body_class": "",
            "flash": None,
            "csrf_token": "",
        }

    # -- Dispatch --

    def handle_request(self, request: HttpRequest) -> Response:
        """Dispatch *request* to its controller action. Always returns a Response."""
        token = request_var.set(request)
        try:
            return self._dispatch(request)
        finally:
            request_var.reset(token)

    def _dispatch(self, request: HttpRequest) -> Response:
        try:
            route = self.routes.match(request.path)
            if route is None:
                raise NotFound(f"No route for {request.path}")
            controller = route.controller(self, request)
            return getattr(controller, route.action)()
        except HTTPError as exc:
            try:
                return handle_http_error(exc, request, self.renderer, self.base_context(request))
            except Exception as render_exc:
                return self._internal_error(render_exc, request)
        except Exception as exc:
            return self._internal_error(exc, request)

    def _internal_error(self, exc: Exception, request: HttpRequest) -> Response:
        try:
            context = self.base_context(request)
        except Exception:
            logger.exception("Could not build the error page context")
            context = {}
        return handle_internal_error(exc, request, self.renderer, context, debug=self.config.app.debug)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        body = await read_body(receive)
        request = Request.from_asgi(scope, body)
        request.session.update(self.sessions.load(request.cookies))
        response = await anyio.to_thread.run_sync(self.handle_request, request)
        response = self.sessions.commit(response, request.session)
        await send_response(response, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return
