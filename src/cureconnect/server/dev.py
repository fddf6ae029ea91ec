"""Development server.

Starts a uvicorn ASGI server. With a live application object uvicorn
serves it directly; reloading needs an import string instead, so
``--reload`` serves the ``cureconnect.main:create_app`` factory.
"""

from typing import Any

APP_FACTORY = "cureconnect.main:create_app"


def run_dev_server(
    app: Any,
    host: str,
    port: int,
    *,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """Start a uvicorn server for *app*.

    Args:
        app: The ASGI application (an ``Application`` instance).
        host: Bind host address.
        port: Bind port number.
        reload: Restart on source changes.
        log_level: uvicorn log level.
    """
    import uvicorn

    if reload:
        uvicorn.run(APP_FACTORY, host=host, port=port, reload=True, factory=True, log_level=log_level)
        return
    uvicorn.run(app, host=host, port=port, log_level=log_level)
