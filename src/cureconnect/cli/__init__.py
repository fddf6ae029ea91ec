"""CureConnect CLI: dev server, route listing, one-off requests, migrations.

Entry point registered as ``cureconnect`` in ``pyproject.toml``::

    [project.scripts]
    cureconnect = "cureconnect.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``cureconnect`` command."""
    parser = argparse.ArgumentParser(
        prog="cureconnect",
        description="CureConnect medical tourism portal.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- cureconnect run --------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Start the development server")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument("--reload", action="store_true", help="Restart on source changes")

    # -- cureconnect routes -----------------------------------------------
    subparsers.add_parser("routes", help="List the route table")

    # -- cureconnect request ----------------------------------------------
    request_parser = subparsers.add_parser("request", help="Dispatch one request and print the response")
    request_parser.add_argument("path", help="Request path, optionally with a query string")
    request_parser.add_argument("-X", "--method", default="GET", help="HTTP method (default GET)")
    request_parser.add_argument(
        "-d",
        "--data",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Form field for the request body (repeatable)",
    )
    request_parser.add_argument("-i", "--include", action="store_true", help="Print response headers")

    # -- cureconnect migrate ----------------------------------------------
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from cureconnect.cli._run import run_server

        run_server(args)
    elif args.command == "routes":
        from cureconnect.cli._routes import run_routes

        run_routes(args)
    elif args.command == "request":
        from cureconnect.cli._request import run_request

        run_request(args)
    elif args.command == "migrate":
        from cureconnect.cli._migrate import run_migrate

        run_migrate(args)
