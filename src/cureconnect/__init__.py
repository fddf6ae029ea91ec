"""CureConnect: a multilingual medical-tourism portal.

Server-rendered pages (home, about, contact, gallery, government
schemes, articles) plus appointment management, served by one
``Application`` over ASGI or a single CGI-style request.

Basic usage::

    from cureconnect import Application

    app = Application.boot()
    response = app.handle_request(SimpleRequest("GET", "/about"))

Serving::

    cureconnect run --port 8000
"""

__version__ = "1.0.0"
__all__ = [
    "Application",
    "Config",
    "Request",
    "Response",
    "SimpleRequest",
    "Translator",
    "get_request",
    "load_config",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import cureconnect`` fast while providing a clean top-level API.
    """
    if name == "Application":
        from cureconnect.app import Application

        return Application

    if name in ("Config", "load_config"):
        from cureconnect import config as _config

        return getattr(_config, name)

    if name in ("Request", "SimpleRequest", "Response"):
        from cureconnect import http as _http

        return getattr(_http, name)

    if name == "Translator":
        from cureconnect.i18n import Translator

        return Translator

    if name == "get_request":
        from cureconnect.context import get_request

        return get_request

    msg = f"module 'cureconnect' has no attribute {name!r}"
    raise AttributeError(msg)
