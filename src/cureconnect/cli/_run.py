"""``cureconnect run``: start the development server."""

import argparse

from cureconnect.cli._boot import boot_or_exit
from cureconnect.server.dev import run_dev_server


def run_server(args: argparse.Namespace) -> None:
    """Boot the app and serve it with uvicorn.

    ``--host``/``--port`` override ``app.host``/``app.port`` from config.
    """
    app = boot_or_exit()
    settings = app.config.app
    run_dev_server(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level="debug" if settings.debug else "info",
    )
