"""Process entry points.

- ``create_app()``: ASGI factory (``uvicorn --factory cureconnect.main:create_app``).
- ``serve_cgi()``: handle a single CGI-style request from the environment,
  stdin and stdout. ``python -m cureconnect.main`` runs it.

Both call ``prepare_environment()`` first: load ``.env``, pick the
logging policy for the environment, fix the process timezone. Both boot
from the bundled resources in the package and the deployment files under
the instance root (``$CURECONNECT_ROOT`` or the working directory).
"""

import logging
import os
import sys
import time
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import BinaryIO

from dotenv import load_dotenv

from cureconnect.app import PACKAGE_ROOT, Application
from cureconnect.config import Config, instance_root, load_config
from cureconnect.http.request import SimpleRequest
from cureconnect.http.response import Response
from cureconnect.server.debug_page import render_debug_page
from cureconnect.server.errors import MINIMAL_500_BODY

logger = logging.getLogger("cureconnect.server")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
ERROR_LOG_NAME = "error.log"

# Handlers installed by configure_logging(), replaced on reconfiguration
_installed_handlers: list[logging.Handler] = []


def reset_logging() -> None:
    """Detach and close the handlers installed by ``configure_logging()``."""
    package_logger = logging.getLogger("cureconnect")
    for handler in _installed_handlers:
        package_logger.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()


def configure_logging(config: Config, instance_path: str | Path | None = None) -> None:
    """Production logs warnings to stderr and ``<logs_path>/error.log``; elsewhere DEBUG to stderr."""
    reset_logging()
    package_logger = logging.getLogger("cureconnect")

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.app.is_production:
        level = logging.WARNING
        logs_dir = Path(config.app.logs_path)
        if not logs_dir.is_absolute():
            base = Path(instance_path) if instance_path is not None else instance_root()
            logs_dir = base / logs_dir
        logs_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(logs_dir / ERROR_LOG_NAME, encoding="utf-8"))
    else:
        level = logging.DEBUG

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
        _installed_handlers.append(handler)
    package_logger.setLevel(level)


def set_timezone(timezone: str, environ: MutableMapping[str, str] | None = None) -> None:
    environ = os.environ if environ is None else environ
    environ["TZ"] = timezone
    if environ is os.environ and hasattr(time, "tzset"):
        time.tzset()


def prepare_environment(
    instance_path: str | Path | None = None,
    *,
    env_file: str | Path | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> Config:
    """Load ``.env``, then the configuration, then apply its logging and timezone policy.

    Variables already set in the environment win over ``.env`` entries.
    The ``.env`` file and ``config/`` are read from the instance root.
    """
    environ = os.environ if environ is None else environ
    instance = Path(instance_path) if instance_path is not None else instance_root(environ)
    env_path = Path(env_file) if env_file is not None else instance / ".env"
    if env_path.is_file() and environ is os.environ:
        load_dotenv(env_path, override=False)

    config = load_config(instance, environ)
    configure_logging(config, instance)
    set_timezone(config.app.timezone, environ)
    return config


def create_app() -> Application:
    """ASGI application factory."""
    instance = instance_root()
    config = prepare_environment(instance)
    return Application.boot(PACKAGE_ROOT, config=config, instance_path=instance)


def boot_error_response(exc: BaseException, *, production: bool) -> Response:
    """The page sent when the application cannot boot."""
    logger.critical("Application boot failed: %s", exc, exc_info=exc)
    if production:
        return Response(body=MINIMAL_500_BODY, status=500)
    return Response(body=render_debug_page(exc), status=500)


def serve_cgi(
    environ: Mapping[str, str] | None = None,
    stdin: BinaryIO | None = None,
    stdout: BinaryIO | None = None,
    *,
    root_path: str | Path = PACKAGE_ROOT,
    instance_path: str | Path | None = None,
) -> int:
    """Boot, dispatch one request, and write the response CGI-style.

    Returns the process exit status: 0 once a response was dispatched,
    1 when boot failed (an error page is still written).
    """
    environ = os.environ if environ is None else environ
    stdin = sys.stdin.buffer if stdin is None else stdin
    stdout = sys.stdout.buffer if stdout is None else stdout
    instance = Path(instance_path) if instance_path is not None else instance_root(environ)

    try:
        config = prepare_environment(instance, environ=dict(environ) if environ is not os.environ else None)
        app = Application.boot(root_path, config=config, instance_path=instance)
    except Exception as exc:
        production = environ.get("APP_ENV", "") == "production"
        boot_error_response(exc, production=production).send(stdout)
        return 1

    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    body = stdin.read(length) if length > 0 else b""

    request = SimpleRequest.from_environ(environ, body)
    request.session.update(app.sessions.load(request.cookies))
    response = app.handle_request(request)
    app.sessions.commit(response, request.session).send(stdout)
    return 0


def main() -> int:
    return serve_cgi()


if __name__ == "__main__":
    raise SystemExit(main())
