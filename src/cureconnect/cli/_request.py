"""``cureconnect request``: dispatch one request without a server.

Uses the minimal ``SimpleRequest`` variant, so it exercises exactly the
path the CGI entry point takes::

    cureconnect request /about
    cureconnect request "/articles?q=cardiac" -i
    cureconnect request /contact -X POST -d name=Asha -d email=asha@example.com
"""

import argparse
import sys

from cureconnect.cli._boot import boot_or_exit
from cureconnect.http.request import SimpleRequest


def _parse_fields(pairs: list[str]) -> dict[str, str]:
    fields: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            print(f"Error: expected KEY=VALUE, got {pair!r}", file=sys.stderr)
            raise SystemExit(2)
        fields[key] = value
    return fields


def run_request(args: argparse.Namespace) -> None:
    app = boot_or_exit()
    request = SimpleRequest(args.method, args.path, form=_parse_fields(args.data))
    response = app.handle_request(request)

    print(f"HTTP {response.status}")
    if args.include:
        for name, value in response.raw_headers():
            print(f"{name}: {value}")
    print()
    print(response.text)
    if response.status >= 500:
        raise SystemExit(1)
